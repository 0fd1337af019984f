"""
Progress and streak calculation service.
Aggregates applicability x completion into counts, percentages and streaks.
"""
from datetime import datetime, date, time, timedelta
from typing import Iterable, List, Optional

from simpleplan.constants import HEATMAP_MAX_INTENSITY, STREAK_LOOKBACK_DAYS
from simpleplan.schemas import (
    Action, ActionProgress, ActionReport, DayIntensity, Goal, GoalProgressPolicy,
    GoalReport, Timeframe
)
from simpleplan.services.completion_service import CompletionLedger
from simpleplan.services.date_service import DateService, DayLike, DayOrder
from simpleplan.services.overdue_service import OverdueService
from simpleplan.services.recurrence_service import RecurrenceService


def round_percentage(numerator: int, denominator: int) -> int:
    """numerator/denominator as a percentage, rounded half-up; 0 if denominator is 0"""
    if denominator <= 0:
        return 0
    return (numerator * 200 + denominator) // (2 * denominator)


def _local_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class ProgressService:
    """Service for progress, streaks and heatmap data"""

    @staticmethod
    def action_progress(action: Action, days: Iterable[DayLike]) -> ActionProgress:
        """
        Progress of an action over a set of days.

        Only days on which the action is applicable count.

        Returns:
            ActionProgress with completed/applicable counts and percentage
        """
        applicable = [
            day for day in days
            if RecurrenceService.is_action_applicable(action, day)
        ]
        completed = sum(1 for day in applicable if CompletionLedger.is_completed(action, day))

        return ActionProgress(
            completed_count=completed,
            applicable_count=len(applicable),
            percentage=round_percentage(completed, len(applicable))
        )

    @staticmethod
    def goal_action_progress(goal: Goal, days: Iterable[DayLike]) -> ActionProgress:
        """Totals across all of a goal's actions over a set of days"""
        days = list(days)
        completed = 0
        applicable = 0
        for action in goal.actions:
            progress = ProgressService.action_progress(action, days)
            completed += progress.completed_count
            applicable += progress.applicable_count

        return ActionProgress(
            completed_count=completed,
            applicable_count=applicable,
            percentage=round_percentage(completed, applicable)
        )

    @staticmethod
    def time_elapsed_progress(goal: Goal, now: Optional[datetime] = None) -> int:
        """
        How far the goal is through its timeline, 0-100.

        No target date gives 0. A target on or before the creation timestamp
        is a degenerate duration and gives 100.
        """
        if not goal.target_date:
            return 0

        now = _local_naive(now or datetime.now())
        created = _local_naive(goal.created_at)
        target = datetime.combine(goal.target_date, time.min)

        total = (target - created).total_seconds()
        if total <= 0:
            return 100

        elapsed = (now - created).total_seconds()
        ratio = min(1.0, max(0.0, elapsed / total))
        return int(ratio * 100 + 0.5)

    @staticmethod
    def completion_ratio_progress(goal: Goal) -> int:
        """Share of the goal's actions completed at least once, 0-100"""
        if not goal.actions:
            return 0

        done = sum(1 for action in goal.actions if CompletionLedger.has_any_completion(action))
        return round_percentage(done, len(goal.actions))

    @staticmethod
    def goal_progress(
        goal: Goal,
        policy: GoalProgressPolicy = GoalProgressPolicy.TIME_ELAPSED,
        now: Optional[datetime] = None
    ) -> int:
        """Goal progress under the chosen policy"""
        if policy == GoalProgressPolicy.COMPLETION_RATIO:
            return ProgressService.completion_ratio_progress(goal)
        return ProgressService.time_elapsed_progress(goal, now)

    @staticmethod
    def current_streak(
        action: Action,
        as_of_day: DayLike,
        lookback_days: int = STREAK_LOOKBACK_DAYS
    ) -> int:
        """
        Count consecutive completed applicable days walking back from as_of_day.

        Inapplicable days are skipped without breaking the streak. The first
        applicable day that is not completed ends the walk. At most
        lookback_days days are inspected.
        """
        anchor = DateService.to_day(as_of_day)
        streak = 0

        for offset in range(lookback_days):
            day = anchor - timedelta(days=offset)
            if not RecurrenceService.is_action_applicable(action, day):
                continue
            if not CompletionLedger.is_completed(action, day):
                break
            streak += 1

        return streak

    @staticmethod
    def completion_intensity(
        actions: Iterable[Action],
        day: DayLike,
        goal_created_at: DayLike
    ) -> DayIntensity:
        """
        Heatmap bucket for one day across a goal's actions.

        Returns:
            DayIntensity with completed count and intensity 0-4
        """
        target = DateService.to_day(day)
        if DateService.compare_days(target, goal_created_at) == DayOrder.BEFORE:
            return DayIntensity(day=target)

        completed = 0
        applicable = 0
        for action in actions:
            if not RecurrenceService.is_action_applicable(action, target):
                continue
            applicable += 1
            if CompletionLedger.is_completed(action, target):
                completed += 1

        if applicable == 0:
            return DayIntensity(day=target)

        intensity = min(
            HEATMAP_MAX_INTENSITY,
            completed * HEATMAP_MAX_INTENSITY // applicable
        )
        return DayIntensity(day=target, count=completed, intensity=intensity)

    @staticmethod
    def month_heatmap(goal: Goal, today: DayLike) -> List[DayIntensity]:
        """Intensity for every day of the month grid containing today"""
        return [
            ProgressService.completion_intensity(goal.actions, day, goal.created_at)
            for day in DateService.get_month_grid(today)
        ]

    @staticmethod
    def goal_report(
        goal: Goal,
        today: date,
        timeframe: Timeframe = Timeframe.MONTH,
        policy: GoalProgressPolicy = GoalProgressPolicy.TIME_ELAPSED,
        now: Optional[datetime] = None
    ) -> GoalReport:
        """Per-action progress, streaks and overdue flags for a goal"""
        days = DateService.filter_timeframe(
            DateService.get_relevant_dates(today), today, timeframe
        )
        time_elapsed = ProgressService.time_elapsed_progress(goal, now)
        completion_ratio = ProgressService.completion_ratio_progress(goal)

        reports = [
            ActionReport(
                action_id=action.id,
                name=action.name,
                recurrence_label=RecurrenceService.format_recurrence(action.recurrence),
                progress=ProgressService.action_progress(action, days),
                streak=ProgressService.current_streak(action, today),
                overdue=OverdueService.is_action_overdue(action, goal, today)
            )
            for action in goal.actions
        ]

        return GoalReport(
            goal_id=goal.id,
            title=goal.title,
            policy=policy,
            goal_progress=(
                completion_ratio
                if policy == GoalProgressPolicy.COMPLETION_RATIO
                else time_elapsed
            ),
            time_elapsed_progress=time_elapsed,
            completion_ratio_progress=completion_ratio,
            overall=ProgressService.goal_action_progress(goal, days),
            is_overdue=OverdueService.is_goal_overdue(goal, today),
            overdue_days=OverdueService.overdue_days(goal, today),
            actions=reports
        )
