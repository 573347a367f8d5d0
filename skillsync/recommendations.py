from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from skillsync.db import AIRecommendation, RecommendationType, Skill
from skillsync.prompts import (
    build_learning_path_prompt,
    build_skill_gap_prompt,
    build_weekly_schedule_prompt,
)
from skillsync.schemas import RecommendationOut

log = logging.getLogger("skillsync.recommendations")

DEFAULT_LIST_LIMIT = 20

NO_SKILLS_SCHEDULE = "You don't have any active skills yet. Add some skills to get a personalized schedule!"
NO_SKILLS_GAP = "You don't have any skills tracked yet. Add some skills to get a gap analysis!"


class GenerationError(RuntimeError):
    pass


class SkillNotFound(LookupError):
    pass


class RecommendationNotFound(LookupError):
    pass


def _generate(model, prompt: str, cancel: Optional[threading.Event]) -> str:
    out = model.generate_content(prompt, cancel=cancel)
    text = (getattr(out, "text", "") or "").strip()
    if not text:
        raise GenerationError("Failed to generate AI recommendation. Please try again.")
    return text


def _save(
    session: Session,
    *,
    user_id: str,
    title: str,
    content: str,
    rtype: RecommendationType,
    related: Sequence[int] = (),
) -> AIRecommendation:
    rec = AIRecommendation(
        user_id=user_id,
        title=title,
        content=content,
        type=rtype,
        generated_at=datetime.now(timezone.utc),
        is_active=True,
        related_skill_ids=",".join(str(i) for i in related) or None,
    )
    session.add(rec)
    session.commit()
    return rec


def _active_skills(session: Session, user_id: str) -> List[Skill]:
    stmt = (
        select(Skill)
        .options(selectinload(Skill.category))
        .where(Skill.user_id == user_id, Skill.is_active.is_(True))
        .order_by(Skill.id)
    )
    return list(session.scalars(stmt))


def generate_learning_path(
    session: Session,
    model,
    user_id: str,
    skill_id: int,
    cancel: Optional[threading.Event] = None,
) -> str:
    skill = session.scalar(
        select(Skill)
        .options(selectinload(Skill.category), selectinload(Skill.activities))
        .where(Skill.id == skill_id, Skill.user_id == user_id)
    )
    if skill is None:
        raise SkillNotFound("Skill not found")

    start_time = time.time()
    text = _generate(model, build_learning_path_prompt(skill), cancel)

    rec = _save(
        session,
        user_id=user_id,
        title=f"Learning Path: {skill.name}",
        content=text,
        rtype=RecommendationType.learning_path,
        related=[skill.id],
    )
    log.info(
        "Generated learning path for skill %s",
        skill_id,
        extra={
            "event": "learning_path_generated",
            "user_id": user_id,
            "skill_id": skill_id,
            "recommendation_id": rec.id,
            "elapsed": round(time.time() - start_time, 2),
        },
    )
    return text


def _generate_for_portfolio(
    session: Session,
    model,
    user_id: str,
    *,
    cancel: Optional[threading.Event],
    empty_text: str,
    build_prompt: Callable[[Sequence[Skill]], str],
    title: str,
    rtype: RecommendationType,
    link_skills: bool,
) -> str:
    skills = _active_skills(session, user_id)
    if not skills:
        return empty_text

    text = _generate(model, build_prompt(skills), cancel)
    rec = _save(
        session,
        user_id=user_id,
        title=title,
        content=text,
        rtype=rtype,
        related=[s.id for s in skills] if link_skills else (),
    )
    log.info(
        "Generated %s for user %s",
        rtype.value,
        user_id,
        extra={"event": "recommendation_generated", "user_id": user_id, "recommendation_id": rec.id},
    )
    return text


def generate_weekly_schedule(
    session: Session,
    model,
    user_id: str,
    cancel: Optional[threading.Event] = None,
) -> str:
    return _generate_for_portfolio(
        session,
        model,
        user_id,
        cancel=cancel,
        empty_text=NO_SKILLS_SCHEDULE,
        build_prompt=build_weekly_schedule_prompt,
        title="Weekly Study Schedule",
        rtype=RecommendationType.weekly_schedule,
        link_skills=True,
    )


def generate_skill_gap_analysis(
    session: Session,
    model,
    user_id: str,
    cancel: Optional[threading.Event] = None,
) -> str:
    return _generate_for_portfolio(
        session,
        model,
        user_id,
        cancel=cancel,
        empty_text=NO_SKILLS_GAP,
        build_prompt=build_skill_gap_prompt,
        title="Skill Gap Analysis",
        rtype=RecommendationType.skill_gap_analysis,
        link_skills=False,
    )


def _to_out(rec: AIRecommendation) -> RecommendationOut:
    return RecommendationOut(
        id=rec.id,
        title=rec.title,
        content=rec.content,
        type=rec.type.value,
        generated_at=rec.generated_at,
        is_active=rec.is_active,
    )


def list_recommendations(session: Session, user_id: str, limit: int = DEFAULT_LIST_LIMIT) -> List[RecommendationOut]:
    stmt = (
        select(AIRecommendation)
        .where(AIRecommendation.user_id == user_id, AIRecommendation.is_active.is_(True))
        .order_by(AIRecommendation.generated_at.desc(), AIRecommendation.id.desc())
        .limit(limit)
    )
    return [_to_out(r) for r in session.scalars(stmt)]


def get_recommendation(session: Session, recommendation_id: int, user_id: str) -> Optional[RecommendationOut]:
    rec = session.scalar(
        select(AIRecommendation).where(
            AIRecommendation.id == recommendation_id,
            AIRecommendation.user_id == user_id,
        )
    )
    return _to_out(rec) if rec is not None else None
