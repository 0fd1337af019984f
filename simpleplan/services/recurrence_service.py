"""
Recurrence resolution service.
Decides whether an action applies on a given day and builds validated rules.
"""
import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from simpleplan.constants import (
    RECURRENCE_DAILY, RECURRENCE_WEEKDAYS, RECURRENCE_WEEKLY, RECURRENCE_CUSTOM,
    WEEKDAY_SHORT_NAMES, WORKING_WEEKDAYS
)
from simpleplan.exceptions import InvalidRecurrenceException
from simpleplan.schemas import (
    Action, CustomRecurrence, DailyRecurrence, Recurrence, WeekdaysRecurrence,
    WeeklyRecurrence
)
from simpleplan.services.date_service import DateService, DayLike, DayOrder

logger = logging.getLogger("simpleplan.recurrence")


class RecurrenceService:
    """Service for recurrence rules"""

    @staticmethod
    def is_applicable(
        recurrence: Recurrence,
        action_created_day: DayLike,
        target_day: DayLike
    ) -> bool:
        """
        Check whether a recurrence rule applies on target_day.

        An action never applies before the day it was created. Malformed or
        unknown rules resolve to False and are logged, never raised, because
        this guards rendering paths.

        Args:
            recurrence: Rule to evaluate
            action_created_day: Creation date/timestamp of the action
            target_day: Day being asked about

        Returns:
            True if the action runs on target_day
        """
        if DateService.compare_days(target_day, action_created_day) == DayOrder.BEFORE:
            return False

        kind = getattr(recurrence, "type", None)
        weekday = DateService.weekday_index(target_day)

        if kind == RECURRENCE_DAILY:
            return True

        if kind == RECURRENCE_WEEKDAYS:
            return weekday in WORKING_WEEKDAYS

        if kind == RECURRENCE_WEEKLY:
            return weekday == recurrence.weekly_day

        if kind == RECURRENCE_CUSTOM:
            days = recurrence.custom_days or []
            if not days:
                logger.warning("Custom recurrence with no days treated as not applicable")
                return False
            return weekday in days

        logger.warning(f"Unknown recurrence {recurrence!r} treated as not applicable")
        return False

    @staticmethod
    def is_action_applicable(action: Action, day: DayLike) -> bool:
        """Check applicability of an action on a day using its creation date"""
        return RecurrenceService.is_applicable(action.recurrence, action.created_at, day)

    @staticmethod
    def build_recurrence(
        recurrence_type: str,
        weekly_day: Optional[int] = None,
        custom_days: Optional[Iterable[int]] = None
    ) -> Recurrence:
        """
        Construct a validated recurrence rule.

        Raises:
            InvalidRecurrenceException: Unknown type, weekly without a day,
                custom with no days or a day outside 0-6
        """
        try:
            if recurrence_type == RECURRENCE_DAILY:
                return DailyRecurrence()
            if recurrence_type == RECURRENCE_WEEKDAYS:
                return WeekdaysRecurrence()
            if recurrence_type == RECURRENCE_WEEKLY:
                if weekly_day is None:
                    raise InvalidRecurrenceException("weekly recurrence requires a weekday")
                return WeeklyRecurrence(weekly_day=weekly_day)
            if recurrence_type == RECURRENCE_CUSTOM:
                if custom_days is not None and not isinstance(custom_days, (list, tuple, set, frozenset)):
                    raise InvalidRecurrenceException("custom recurrence days must be a list of weekdays")
                days = list(custom_days or [])
                if not days:
                    raise InvalidRecurrenceException("custom recurrence requires at least one weekday")
                return CustomRecurrence(custom_days=days)
        except ValidationError as e:
            raise InvalidRecurrenceException(str(e.errors()[0]["msg"]))

        raise InvalidRecurrenceException(f"unknown recurrence type '{recurrence_type}'")

    @staticmethod
    def format_recurrence(recurrence: Recurrence) -> str:
        """Human readable label, e.g. 'Every Mon' or 'Mon, Wed'"""
        kind = getattr(recurrence, "type", None)

        if kind == RECURRENCE_WEEKDAYS:
            return "Weekdays"
        if kind == RECURRENCE_WEEKLY:
            return f"Every {WEEKDAY_SHORT_NAMES[recurrence.weekly_day]}"
        if kind == RECURRENCE_CUSTOM:
            if recurrence.custom_days:
                return ", ".join(WEEKDAY_SHORT_NAMES[day] for day in recurrence.custom_days)
            return "Custom"
        return "Daily"
