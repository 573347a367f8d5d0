from __future__ import annotations

from typing import Optional

from sqlalchemy import Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .enums import ActivityStatus, ActivityType
from .mixins import CommonMixin, TimeStampMixin
from .base import Base


class Activity(CommonMixin, TimeStampMixin, Base):
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[ActivityType] = mapped_column(Enum(ActivityType), default=ActivityType.other)
    status: Mapped[ActivityStatus] = mapped_column(
        Enum(ActivityStatus), index=True, default=ActivityStatus.not_started
    )
    duration_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    skill_id: Mapped[int] = mapped_column(ForeignKey("skills.id"), nullable=False)
    skill: Mapped["Skill"] = relationship(back_populates="activities")  # noqa: F821
