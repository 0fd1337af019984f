"""
Legacy data normalization.
Converts stored plans of any historical shape into a canonical PlanState.

Handled shapes:
- a bare list of goals, or {"goals": [...], "todos": [...]}
- goals keeping their actions under the old "habits" key
- recurrence stored as a bare string ("daily", "weekly", "weekdays")
- camelCase keys (goalId, createdAt, targetDate, weeklyDay, customDays, ...)
- completion records keyed "date" instead of "day"

Runs once at ingestion; nothing downstream looks at raw data.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from simpleplan.constants import (
    LEGACY_WEEKLY_DEFAULT_DAY, RECURRENCE_DAILY, RECURRENCE_WEEKDAYS,
    RECURRENCE_WEEKLY, RECURRENCE_UNRECOGNIZED
)
from simpleplan.exceptions import InvalidRecurrenceException, ValidationException
from simpleplan.schemas import (
    Action, Completion, CustomRecurrence, DailyRecurrence, Goal, PlanState,
    Recurrence, Todo, UnrecognizedRecurrence, WeekdaysRecurrence, WeeklyRecurrence
)
from simpleplan.services.date_service import DateService
from simpleplan.services.recurrence_service import RecurrenceService

logger = logging.getLogger("simpleplan.normalize")

CANONICAL_RECURRENCES = (
    DailyRecurrence, WeekdaysRecurrence, WeeklyRecurrence, CustomRecurrence,
    UnrecognizedRecurrence,
)

CAMEL_CASE_KEYS = {
    "goalId": "goal_id",
    "createdAt": "created_at",
    "targetDate": "target_date",
    "completedAt": "completed_at",
    "weeklyDay": "weekly_day",
    "customDays": "custom_days",
    "actionId": "action_id",
}


def _snake_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    result = {}
    for key, value in data.items():
        snake = CAMEL_CASE_KEYS.get(key, key)
        # An explicit snake_case key wins over its camelCase twin
        if snake in result and key != snake:
            continue
        result[snake] = value
    return result


def normalize_recurrence(raw: Any) -> Recurrence:
    """
    Canonical recurrence from a stored value.

    Anything that cannot be read is quarantined as UnrecognizedRecurrence and
    logged; it never becomes a valid rule.
    """
    if raw is None:
        return RecurrenceService.build_recurrence(RECURRENCE_DAILY)

    if isinstance(raw, CANONICAL_RECURRENCES):
        return raw

    if isinstance(raw, str):
        if raw == RECURRENCE_WEEKLY:
            return RecurrenceService.build_recurrence(
                RECURRENCE_WEEKLY, weekly_day=LEGACY_WEEKLY_DEFAULT_DAY
            )
        if raw in (RECURRENCE_DAILY, RECURRENCE_WEEKDAYS):
            return RecurrenceService.build_recurrence(raw)
        logger.warning(f"Unrecognized legacy recurrence string '{raw}'")
        return UnrecognizedRecurrence(raw=raw)

    if isinstance(raw, dict):
        data = _snake_keys(raw)
        kind = data.get("type")
        if kind == RECURRENCE_UNRECOGNIZED:
            return UnrecognizedRecurrence(raw=data.get("raw"))
        try:
            return RecurrenceService.build_recurrence(
                kind,
                weekly_day=data.get("weekly_day"),
                custom_days=data.get("custom_days"),
            )
        except InvalidRecurrenceException as e:
            logger.warning(f"Unreadable recurrence {raw!r}: {e.reason}")
            return UnrecognizedRecurrence(raw=raw)

    logger.warning(f"Unreadable recurrence {raw!r}")
    return UnrecognizedRecurrence(raw=raw)


def _normalize_completions(raw_completions: Any) -> List[Completion]:
    """Completions with one record per day; the last record for a day wins"""
    by_day: Dict[Any, Completion] = {}
    for raw in raw_completions or []:
        if isinstance(raw, Completion):
            record = raw
        else:
            data = dict(raw)
            day = data.get("day", data.get("date"))
            if day is None:
                logger.warning(f"Dropping completion without a day: {raw!r}")
                continue
            try:
                record = Completion(
                    day=DateService.to_day(day),
                    completed=bool(data.get("completed", True)),
                )
            except ValidationException as e:
                logger.warning(f"Dropping completion with bad day: {e}")
                continue
        by_day.pop(record.day, None)
        by_day[record.day] = record
    return list(by_day.values())


def _parse_timestamp(value: Any, default: datetime) -> datetime:
    """Naive local timestamp; aware values are converted to the local zone"""
    if value is None:
        return default
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unparseable timestamp '{value}', using {default}")
            return default

    if parsed.tzinfo is not None:
        return parsed.astimezone().replace(tzinfo=None)
    return parsed


def _normalize_action(raw: Dict[str, Any], goal_id: str, default_created: datetime) -> Action:
    data = _snake_keys(raw)
    return Action(
        id=str(data["id"]),
        goal_id=str(data.get("goal_id") or goal_id),
        name=data.get("name") or data.get("title") or "",
        recurrence=normalize_recurrence(data.get("recurrence")),
        created_at=_parse_timestamp(data.get("created_at"), default_created),
        completions=_normalize_completions(data.get("completions")),
    )


def _normalize_goal(raw: Dict[str, Any], now: datetime) -> Goal:
    data = _snake_keys(raw)
    created_at = _parse_timestamp(data.get("created_at"), now)

    raw_actions = data.get("actions")
    if raw_actions is None:
        raw_actions = data.get("habits") or []

    target_date = data.get("target_date")
    completed_at = data.get("completed_at")

    return Goal(
        id=str(data["id"]),
        title=data.get("title") or "",
        target_date=DateService.to_day(target_date) if target_date else None,
        created_at=created_at,
        completed=bool(data.get("completed", False)),
        completed_at=_parse_timestamp(completed_at, now) if completed_at else None,
        actions=[
            _normalize_action(action, str(data["id"]), created_at)
            for action in raw_actions
        ],
    )


def _normalize_todos(raw_todos: Any) -> List[Todo]:
    todos = []
    for raw in raw_todos or []:
        data = _snake_keys(raw)
        # Day projections of actions were sometimes saved with the todos
        if data.get("action_id"):
            continue
        todos.append(Todo(
            id=str(data["id"]),
            text=data.get("text") or "",
            completed=bool(data.get("completed", False)),
            position=len(todos),
        ))
    return todos


def normalize_state(raw: Any, now: Optional[datetime] = None) -> PlanState:
    """
    Build a canonical PlanState from stored data of any known shape.

    Args:
        raw: List of goals or dict with "goals" and optional "todos"
        now: Fallback timestamp for records missing created_at

    Returns:
        Canonical PlanState

    Raises:
        ValidationException: If the input is not a recognizable plan
    """
    now = _parse_timestamp(now, datetime.now())

    if isinstance(raw, PlanState):
        return raw
    if isinstance(raw, list):
        raw_goals, raw_todos = raw, []
    elif isinstance(raw, dict):
        raw_goals, raw_todos = raw.get("goals") or [], raw.get("todos") or []
    else:
        raise ValidationException("state", f"expected a list or object, got {type(raw).__name__}")

    goals = []
    seen = set()
    try:
        for raw_goal in raw_goals:
            goal = _normalize_goal(raw_goal, now)
            if goal.id in seen:
                logger.warning(f"Dropping duplicate goal {goal.id}")
                continue
            seen.add(goal.id)
            goals.append(goal)
        todos = _normalize_todos(raw_todos)
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise ValidationException("state", str(e))

    return PlanState(goals=goals, todos=todos)
