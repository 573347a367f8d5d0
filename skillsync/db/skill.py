from __future__ import annotations

from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .mixins import CommonMixin, TimeStampMixin
from .base import Base


class SkillCategory(Base):
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    skills: Mapped[List["Skill"]] = relationship(back_populates="category")


class Skill(CommonMixin, TimeStampMixin, Base):
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # 1-5 scale
    proficiency_level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    target_level: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True, nullable=False)

    category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("skill_categories.id"),
        nullable=True,
    )
    category: Mapped[Optional[SkillCategory]] = relationship(back_populates="skills")
    activities: Mapped[List["Activity"]] = relationship(  # noqa: F821
        back_populates="skill",
        cascade="all, delete-orphan",
    )

    @property
    def gap(self) -> int:
        return self.target_level - self.proficiency_level
