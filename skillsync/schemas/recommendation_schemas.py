from datetime import datetime

from pydantic import BaseModel


class RecommendationOut(BaseModel):
    id: int
    title: str
    content: str
    type: str
    generated_at: datetime
    is_active: bool
