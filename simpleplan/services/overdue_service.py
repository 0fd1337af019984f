"""
Overdue evaluation service.
Decides whether goals and their actions missed their target day.
"""
from simpleplan.schemas import Action, Goal
from simpleplan.services.completion_service import CompletionLedger
from simpleplan.services.date_service import DateService, DayLike, DayOrder
from simpleplan.services.recurrence_service import RecurrenceService


class OverdueService:
    """Service for overdue checks"""

    @staticmethod
    def is_goal_overdue(goal: Goal, today: DayLike) -> bool:
        """Target day strictly before today and goal not completed"""
        if goal.completed or not goal.target_date:
            return False
        return DateService.compare_days(goal.target_date, today) == DayOrder.BEFORE

    @staticmethod
    def overdue_days(goal: Goal, today: DayLike) -> int:
        """Whole days past the target day, 0 if not overdue"""
        if not OverdueService.is_goal_overdue(goal, today):
            return 0
        return DateService.days_between(goal.target_date, today)

    @staticmethod
    def is_action_overdue(action: Action, goal: Goal, today: DayLike) -> bool:
        """
        Check whether an action missed the goal's finish line.

        Only the goal's target day is inspected, not every missed occurrence:
        the action is overdue if it was supposed to run on the target day and
        was not completed on it.
        """
        if not OverdueService.is_goal_overdue(goal, today):
            return False

        if not RecurrenceService.is_action_applicable(action, goal.target_date):
            return False

        return not CompletionLedger.is_completed(action, goal.target_date)
