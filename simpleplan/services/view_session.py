"""
Daily view session.
Tracks the selected day and drops async load results that arrive after the
user has moved on to another day.
"""
import logging
from datetime import date
from typing import Awaitable, Callable, Optional

from simpleplan.schemas import DailyView, PlanState
from simpleplan.services.daily_view_service import DailyViewService
from simpleplan.services.date_service import DateService, DayLike

logger = logging.getLogger("simpleplan.view")

StateLoader = Callable[[date], Awaitable[PlanState]]


class DailyViewSession:
    """Holds the selected day; every load is tagged with the day it was made for"""

    def __init__(self, selected_day: DayLike):
        self.selected_day = DateService.to_day(selected_day)
        self.view: Optional[DailyView] = None

    def select_day(self, day: DayLike) -> date:
        self.selected_day = DateService.to_day(day)
        return self.selected_day

    def is_current(self, day: DayLike) -> bool:
        return DateService.to_day(day) == self.selected_day

    async def load(self, day: DayLike, fetch: StateLoader) -> Optional[DailyView]:
        """
        Load state for a day and build its view.

        If the selected day changed while fetch was running the result is
        discarded and None is returned. No timeout or retry is applied here.
        """
        requested = DateService.to_day(day)
        state = await fetch(requested)

        if not self.is_current(requested):
            logger.debug(
                f"Discarding stale load for {requested}, selected day is {self.selected_day}"
            )
            return None

        self.view = DailyViewService.merge_day(state, requested)
        return self.view
