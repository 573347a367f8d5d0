"""
Shared fixtures: a controllable clock for the rate governor, an in-memory
SQLite session and a scripted stand-in for the Gemini adapter.
"""

import threading
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from skillsync.db import Activity, ActivityStatus, Base, Skill, SkillCategory
from skillsync.utils import RateGovernor


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self._now = start
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self._now

    def advance(self, seconds: float) -> None:
        with self._lock:
            self._now += seconds


class FakeModel:
    """Returns (or raises) the scripted items in order; the last one repeats."""

    def __init__(self, *script):
        self.script = list(script) or ["## Plan\n- step one"]
        self.prompts = []

    def generate_content(self, prompt, cancel=None):
        self.prompts.append(prompt)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return SimpleNamespace(text=item)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_governor(clock, sleeps):
    def sleeper(seconds, cancel):
        sleeps.append(seconds)
        clock.advance(seconds)
        return False

    def factory(**kwargs):
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("sleeper", sleeper)
        return RateGovernor(**kwargs)

    return factory


@pytest.fixture
def session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with Session() as s:
        yield s
    engine.dispose()


@pytest.fixture
def portfolio(session):
    backend = SkillCategory(name="Backend")
    python = Skill(
        user_id="u1",
        name="Python",
        description="Async services",
        proficiency_level=2,
        target_level=5,
        is_active=True,
        category=backend,
    )
    docker = Skill(user_id="u1", name="Docker", proficiency_level=4, target_level=4, is_active=True)
    archived = Skill(user_id="u1", name="Perl", proficiency_level=1, target_level=2, is_active=False)
    other = Skill(user_id="u2", name="Go", proficiency_level=1, target_level=3, is_active=True)
    session.add_all([python, docker, archived, other])
    session.flush()

    session.add_all([
        Activity(
            user_id="u1",
            skill=python,
            title="FastAPI course",
            status=ActivityStatus.completed,
            duration_minutes=90,
        ),
        Activity(
            user_id="u1",
            skill=python,
            title="Side project",
            status=ActivityStatus.in_progress,
            duration_minutes=30,
        ),
    ])
    session.commit()
    return SimpleNamespace(python=python, docker=docker, archived=archived, other=other)
