from .timestamp_mixins import CommonMixin, TimeStampMixin

__all__ = ["CommonMixin", "TimeStampMixin"]
