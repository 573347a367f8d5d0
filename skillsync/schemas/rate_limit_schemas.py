from pydantic import BaseModel


class RateLimitStatus(BaseModel):
    requests_per_minute: int
    requests_today: int
    max_per_minute: int
    max_per_day: int
