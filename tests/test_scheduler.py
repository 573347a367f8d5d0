from sqlalchemy import func, select

from skillsync.db import AIRecommendation
from skillsync.scheduler import refresh_weekly_schedules, users_with_active_skills
from skillsync.utils import QuotaExceeded

from conftest import FakeModel


def _count(session):
    return session.scalar(select(func.count()).select_from(AIRecommendation))


def test_users_with_active_skills(session, portfolio):
    assert users_with_active_skills(session) == ["u1", "u2"]


def test_refresh_generates_for_every_user(session, portfolio):
    model = FakeModel("schedule")

    assert refresh_weekly_schedules(session, model) == (2, 0)
    assert len(model.prompts) == 2
    assert _count(session) == 2


def test_quota_ends_the_run(session, portfolio):
    model = FakeModel("schedule", QuotaExceeded(1500, 60.0))

    assert refresh_weekly_schedules(session, model) == (1, 0)
    assert _count(session) == 1


def test_failed_user_is_skipped(session, portfolio):
    model = FakeModel("", "schedule")

    assert refresh_weekly_schedules(session, model) == (1, 1)
    rec = session.scalar(select(AIRecommendation))
    assert rec.user_id == "u2"


def test_unexpected_error_skips_only_that_user(session, portfolio):
    model = FakeModel(ConnectionError("reset by peer"), "schedule")

    assert refresh_weekly_schedules(session, model) == (1, 1)
    rec = session.scalar(select(AIRecommendation))
    assert rec.user_id == "u2"
