from .rate_limit_schemas import RateLimitStatus
from .recommendation_schemas import RecommendationOut

__all__ = ["RateLimitStatus", "RecommendationOut"]
