from .skill import Skill, SkillCategory
from .activity import Activity
from .recommendation import AIRecommendation
from .session import get_session, init_db
from .enums import ActivityStatus, ActivityType, RecommendationType
from .base import Base

__all__ = (
    "Skill",
    "SkillCategory",
    "Activity",
    "AIRecommendation",
    "get_session",
    "init_db",
    "ActivityStatus",
    "ActivityType",
    "RecommendationType",
    "Base",
)
