from __future__ import annotations

import argparse
import logging

from skillsync.core.config import settings
from skillsync.core.logger import setup_logging
from skillsync.db import get_session, init_db
from skillsync.recommendations import (
    GenerationError,
    RecommendationNotFound,
    SkillNotFound,
    generate_learning_path,
    generate_skill_gap_analysis,
    generate_weekly_schedule,
    get_recommendation,
    list_recommendations,
)
from skillsync.clients.genai_client import get_model
from skillsync.utils import QuotaExceeded, RateGovernor

log = logging.getLogger("skillsync.run_recommendations")


def cmd_init_db(args, governor: RateGovernor) -> None:
    init_db()
    print("✅ tables created")


def cmd_learning_path(args, governor: RateGovernor) -> None:
    """
    Learning path for one skill of the user.
    """
    model = get_model(governor, token_override=args.token)
    with get_session() as s:
        text = generate_learning_path(s, model, args.user, args.skill)
    print(text)


def cmd_weekly_schedule(args, governor: RateGovernor) -> None:
    model = get_model(governor, token_override=args.token)
    with get_session() as s:
        text = generate_weekly_schedule(s, model, args.user)
    print(text)


def cmd_skill_gap(args, governor: RateGovernor) -> None:
    model = get_model(governor, token_override=args.token)
    with get_session() as s:
        text = generate_skill_gap_analysis(s, model, args.user)
    print(text)


def cmd_list(args, governor: RateGovernor) -> None:
    with get_session() as s:
        items = list_recommendations(s, args.user, limit=args.limit)
    if not items:
        print("No recommendations yet")
        return
    for r in items:
        print(f"#{r.id} [{r.type}] {r.title} — {r.generated_at:%Y-%m-%d %H:%M}")


def cmd_get(args, governor: RateGovernor) -> None:
    with get_session() as s:
        rec = get_recommendation(s, args.id, args.user)
    if rec is None:
        raise RecommendationNotFound(f"Recommendation {args.id} not found")
    print(f"# {rec.title} [{rec.type}]")
    print(rec.content)


def cmd_status(args, governor: RateGovernor) -> None:
    """
    Ceilings and usage of this process's governor. Usage is kept in memory,
    so a fresh process always starts from zero.
    """
    st = governor.status()
    print(f"RPM: {st.requests_per_minute}/{st.max_per_minute}")
    print(f"RPD: {st.requests_today}/{st.max_per_day}")
    print(f"min interval: {governor.min_interval:.1f}s")


def _add_token(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--token",
        dest="token",
        help="Gemini API key (defaults to APP__API_KEYS__GEMINI_TOKEN from .env)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SkillSync AI recommendations (manual run)."
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init-db", help="Create database tables")
    p_init.set_defaults(func=cmd_init_db)

    p_lp = sub.add_parser("learning-path", help="Generate a learning path for a skill")
    p_lp.add_argument("--user", required=True)
    p_lp.add_argument("--skill", required=True, type=int)
    _add_token(p_lp)
    p_lp.set_defaults(func=cmd_learning_path)

    p_ws = sub.add_parser("weekly-schedule", help="Generate a weekly study schedule")
    p_ws.add_argument("--user", required=True)
    _add_token(p_ws)
    p_ws.set_defaults(func=cmd_weekly_schedule)

    p_gap = sub.add_parser("skill-gap", help="Generate a skill gap analysis")
    p_gap.add_argument("--user", required=True)
    _add_token(p_gap)
    p_gap.set_defaults(func=cmd_skill_gap)

    p_list = sub.add_parser("list", help="List stored recommendations")
    p_list.add_argument("--user", required=True)
    p_list.add_argument("--limit", type=int, default=20)
    p_list.set_defaults(func=cmd_list)

    p_get = sub.add_parser("get", help="Show one stored recommendation")
    p_get.add_argument("--user", required=True)
    p_get.add_argument("--id", required=True, type=int)
    p_get.set_defaults(func=cmd_get)

    p_status = sub.add_parser("status", help="Show rate limit ceilings and usage")
    p_status.set_defaults(func=cmd_status)

    return parser


def main(argv=None) -> int:
    setup_logging()
    args = build_parser().parse_args(argv)
    governor = RateGovernor.from_settings(settings.rate_limit)

    try:
        args.func(args, governor)
    except QuotaExceeded as e:
        print(f"⛔ {e} (retry in {e.retry_after / 3600.0:.1f}h)")
        return 2
    except (SkillNotFound, RecommendationNotFound, GenerationError) as e:
        print(f"❌ {e}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
