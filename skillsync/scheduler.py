from __future__ import annotations
import logging
from typing import List, Tuple

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from pytz import timezone
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skillsync.core.logger import setup_logging
from skillsync.core.config import settings
from skillsync.db import Skill, get_session
from skillsync.recommendations import GenerationError, generate_weekly_schedule
from skillsync.clients.genai_client import get_model
from skillsync.utils import QuotaExceeded, RateGovernor

log = logging.getLogger("skillsync.scheduler")


def users_with_active_skills(session: Session) -> List[str]:
    stmt = (
        select(Skill.user_id)
        .where(Skill.is_active.is_(True))
        .distinct()
        .order_by(Skill.user_id)
    )
    return list(session.scalars(stmt))


def refresh_weekly_schedules(session: Session, model) -> Tuple[int, int]:
    """
    Regenerate the weekly schedule for every user with active skills.

    Returns (generated, failed). The daily quota ends the run early; the
    remaining users are picked up by the next run.
    """
    users = users_with_active_skills(session)
    generated = 0
    failed = 0

    for user_id in users:
        try:
            generate_weekly_schedule(session, model, user_id)
            generated += 1
        except QuotaExceeded as e:
            log.warning(
                "Daily AI quota reached, stopping weekly run",
                extra={"event": "weekly_quota_hit", "retry_after": e.retry_after, "generated": generated},
            )
            break
        except GenerationError:
            failed += 1
            log.exception("Weekly schedule generation failed", extra={"user_id": user_id})
        except SQLAlchemyError:
            session.rollback()
            failed += 1
            log.exception("Failed to store weekly schedule", extra={"user_id": user_id})
        except Exception:
            session.rollback()
            failed += 1
            log.exception("Unexpected error in weekly schedule for user", extra={"user_id": user_id})

    log.info(
        "Weekly schedules refreshed: %s generated, %s failed",
        generated, failed,
        extra={"event": "weekly_refresh_done", "users": len(users), "generated": generated, "failed": failed},
    )
    return generated, failed


def job_weekly_schedules(governor: RateGovernor) -> None:
    model = get_model(governor)
    with get_session() as s:
        refresh_weekly_schedules(s, model)
    status = governor.status()
    print(f"🧠 Weekly run done | usage: {status.requests_per_minute}/{status.max_per_minute} RPM, "
          f"{status.requests_today}/{status.max_per_day} RPD")


def main():
    setup_logging()
    cfg = settings.scheduler
    tz = timezone(cfg.timezone)
    # one governor for the whole process
    governor = RateGovernor.from_settings(settings.rate_limit)

    sched = BlockingScheduler(timezone=tz)
    sched.add_job(
        job_weekly_schedules,
        CronTrigger(day_of_week=cfg.day_of_week, hour=cfg.hour, minute=cfg.minute, timezone=tz),
        args=[governor],
        max_instances=1,
        coalesce=True,
    )

    print(f"⏱  APScheduler started ({cfg.timezone}). Jobs:")
    print(f"   {cfg.day_of_week} {cfg.hour:02d}:{cfg.minute:02d} — weekly study schedules")

    try:
        sched.start()
    except (KeyboardInterrupt, SystemExit):
        print("🛑 Scheduler stopped")


if __name__ == "__main__":
    main()
