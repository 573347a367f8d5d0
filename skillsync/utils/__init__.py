from .case_converter import camel_to_snake_case
from .rate_limiter import PermissionCancelled, QuotaExceeded, RateGovernor, RateLimitError

__all__ = [
    "camel_to_snake_case",
    "PermissionCancelled",
    "QuotaExceeded",
    "RateGovernor",
    "RateLimitError",
]
