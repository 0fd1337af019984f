"""
Shared fixtures for the planner tests.

The database URL is pointed at an in-memory SQLite database before any
application module is imported.
"""
import os
import tempfile

os.environ.setdefault("SIMPLEPLAN_DB_URL", "sqlite://")
os.environ.setdefault("SIMPLEPLAN_LOG_DIR", tempfile.gettempdir())
os.environ.setdefault("SIMPLEPLAN_API_KEY", "test-key")

import pytest
from datetime import date, datetime, timedelta

from simpleplan.database import Base, engine, SessionLocal
from simpleplan import models  # noqa: F401  registers tables
from simpleplan.schemas import (
    Action, Completion, DailyRecurrence, Goal, PlanState, Todo
)


@pytest.fixture
def db_session():
    """Fresh schema and session per test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def today():
    # A Wednesday
    return date(2024, 1, 10)


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


def make_action(
    action_id="a1",
    goal_id="g1",
    name="Run",
    recurrence=None,
    created_at=datetime(2024, 1, 1, 9, 0),
    completed_days=()
):
    """Action snapshot with completed records for the given days"""
    return Action(
        id=action_id,
        goal_id=goal_id,
        name=name,
        recurrence=recurrence or DailyRecurrence(),
        created_at=created_at,
        completions=[Completion(day=day, completed=True) for day in completed_days],
    )


def make_goal(
    goal_id="g1",
    title="Get fit",
    target_date=None,
    created_at=datetime(2024, 1, 1, 9, 0),
    actions=(),
    completed=False
):
    return Goal(
        id=goal_id,
        title=title,
        target_date=target_date,
        created_at=created_at,
        completed=completed,
        actions=list(actions),
    )


def make_state(goals=(), todos=()):
    return PlanState(goals=list(goals), todos=list(todos))


def make_todo(todo_id="t1", text="Buy milk", completed=False, position=0):
    return Todo(id=todo_id, text=text, completed=completed, position=position)
