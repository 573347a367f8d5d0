from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .enums import RecommendationType
from .mixins import CommonMixin, TimeStampMixin
from .base import Base


class AIRecommendation(CommonMixin, TimeStampMixin, Base):
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    # markdown returned by the model
    content: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[RecommendationType] = mapped_column(Enum(RecommendationType), index=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True, nullable=False)
    # comma-separated skill ids
    related_skill_ids: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
