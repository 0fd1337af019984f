"""
Tests for ProgressService.

Tests cover:
1. Percentage rounding
2. Action and goal progress over windows of days
3. Goal progress policies (time elapsed, completion ratio)
4. Streaks
5. Heatmap intensity and the goal report
"""
from datetime import date, datetime, timedelta
from unittest.mock import patch

from simpleplan.schemas import (
    CustomRecurrence, GoalProgressPolicy, Timeframe, WeeklyRecurrence
)
from simpleplan.services.date_service import DateService
from simpleplan.services.progress_service import ProgressService, round_percentage
from simpleplan.tests.conftest import make_action, make_goal


class TestRoundPercentage:
    """Tests for round_percentage"""

    def test_zero_denominator(self):
        assert round_percentage(0, 0) == 0

    def test_rounds_half_up(self):
        assert round_percentage(1, 8) == 13   # 12.5
        assert round_percentage(1, 3) == 33
        assert round_percentage(2, 3) == 67
        assert round_percentage(5, 5) == 100


class TestActionProgress:
    """Tests for action_progress and goal_action_progress"""

    def test_counts_only_applicable_days(self):
        action = make_action(
            recurrence=CustomRecurrence(custom_days=[1, 3]),
            completed_days=[date(2024, 1, 1)]
        )
        days = DateService.date_range(date(2024, 1, 1), date(2024, 1, 7))

        progress = ProgressService.action_progress(action, days)

        assert progress.applicable_count == 2  # Mon 1st and Wed 3rd
        assert progress.completed_count == 1
        assert progress.percentage == 50

    def test_days_before_creation_do_not_count(self):
        action = make_action(created_at=datetime(2024, 1, 5, 12, 0))
        days = DateService.date_range(date(2024, 1, 1), date(2024, 1, 10))

        progress = ProgressService.action_progress(action, days)

        assert progress.applicable_count == 6

    def test_no_applicable_days_is_zero(self):
        action = make_action(recurrence=WeeklyRecurrence(weekly_day=0))
        progress = ProgressService.action_progress(action, [date(2024, 1, 2)])
        assert progress.applicable_count == 0
        assert progress.percentage == 0

    def test_goal_totals_sum_actions(self):
        days = DateService.date_range(date(2024, 1, 1), date(2024, 1, 10))
        goal = make_goal(actions=[
            make_action("a1", completed_days=[date(2024, 1, 1), date(2024, 1, 2)]),
            make_action("a2", completed_days=[date(2024, 1, 3)]),
        ])

        progress = ProgressService.goal_action_progress(goal, days)

        assert progress.applicable_count == 20
        assert progress.completed_count == 3
        assert progress.percentage == 15


class TestGoalProgress:
    """Tests for the goal progress policies"""

    def test_time_elapsed_without_target_is_zero(self):
        goal = make_goal(target_date=None)
        assert ProgressService.time_elapsed_progress(goal, datetime(2024, 2, 1)) == 0

    def test_time_elapsed_halfway(self):
        goal = make_goal(created_at=datetime(2024, 1, 1), target_date=date(2024, 1, 11))
        assert ProgressService.time_elapsed_progress(goal, datetime(2024, 1, 6)) == 50

    def test_time_elapsed_clamped(self):
        goal = make_goal(created_at=datetime(2024, 1, 1), target_date=date(2024, 1, 11))
        assert ProgressService.time_elapsed_progress(goal, datetime(2023, 12, 1)) == 0
        assert ProgressService.time_elapsed_progress(goal, datetime(2024, 3, 1)) == 100

    def test_target_on_creation_day_is_complete(self):
        """Zero or negative duration is treated as fully elapsed"""
        at_midnight = make_goal(created_at=datetime(2024, 1, 5), target_date=date(2024, 1, 5))
        later_same_day = make_goal(created_at=datetime(2024, 1, 5, 9, 0), target_date=date(2024, 1, 5))

        assert ProgressService.time_elapsed_progress(at_midnight, datetime(2024, 1, 5, 10)) == 100
        assert ProgressService.time_elapsed_progress(later_same_day, datetime(2024, 1, 5, 10)) == 100

    def test_time_elapsed_defaults_to_current_clock(self):
        goal = make_goal(created_at=datetime(2024, 1, 1), target_date=date(2024, 1, 5))

        with patch('simpleplan.services.progress_service.datetime') as mock_dt:
            mock_dt.now.return_value = datetime(2024, 1, 2)
            mock_dt.combine = datetime.combine
            result = ProgressService.time_elapsed_progress(goal)

        assert result == 25

    def test_completion_ratio_one_of_four(self):
        goal = make_goal(actions=[
            make_action("a1", completed_days=[date(2024, 1, 2)]),
            make_action("a2"),
            make_action("a3"),
            make_action("a4"),
        ])
        assert ProgressService.completion_ratio_progress(goal) == 25

    def test_completion_ratio_without_actions(self):
        assert ProgressService.completion_ratio_progress(make_goal()) == 0

    def test_policy_selects_number(self):
        goal = make_goal(
            created_at=datetime(2024, 1, 1),
            target_date=date(2024, 1, 11),
            actions=[make_action("a1", completed_days=[date(2024, 1, 2)])]
        )
        now = datetime(2024, 1, 6)
        assert ProgressService.goal_progress(goal, GoalProgressPolicy.TIME_ELAPSED, now) == 50
        assert ProgressService.goal_progress(goal, GoalProgressPolicy.COMPLETION_RATIO, now) == 100


class TestCurrentStreak:
    """Tests for current_streak"""

    def test_no_completions(self):
        assert ProgressService.current_streak(make_action(), date(2024, 1, 10)) == 0

    def test_weekly_streak_skips_inapplicable_days(self):
        """Three consecutive Mondays completed"""
        mondays = [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]
        action = make_action(
            recurrence=WeeklyRecurrence(weekly_day=1),
            completed_days=mondays
        )
        assert ProgressService.current_streak(action, date(2024, 1, 17)) == 3

    def test_gap_breaks_streak(self):
        action = make_action(completed_days=[date(2024, 1, 9), date(2024, 1, 10), date(2024, 1, 7)])
        assert ProgressService.current_streak(action, date(2024, 1, 10)) == 2

    def test_incomplete_anchor_day_ends_walk(self):
        action = make_action(completed_days=[date(2024, 1, 8), date(2024, 1, 9)])
        assert ProgressService.current_streak(action, date(2024, 1, 10)) == 0

    def test_lookback_limits_walk(self):
        created = datetime(2023, 1, 1)
        days = DateService.date_range(date(2023, 1, 1), date(2024, 1, 10))
        action = make_action(created_at=created, completed_days=days)

        assert ProgressService.current_streak(action, date(2024, 1, 10), lookback_days=5) == 5


class TestIntensity:
    """Tests for completion_intensity and month_heatmap"""

    def test_half_done_is_bucket_two(self):
        actions = [
            make_action("a1", completed_days=[date(2024, 1, 3)]),
            make_action("a2"),
        ]
        cell = ProgressService.completion_intensity(actions, date(2024, 1, 3), datetime(2024, 1, 1))
        assert cell.count == 1
        assert cell.intensity == 2

    def test_all_done_is_max_bucket(self):
        actions = [make_action("a1", completed_days=[date(2024, 1, 3)])]
        cell = ProgressService.completion_intensity(actions, date(2024, 1, 3), datetime(2024, 1, 1))
        assert cell.intensity == 4

    def test_before_goal_creation_is_empty(self):
        actions = [make_action("a1", completed_days=[date(2023, 12, 30)])]
        cell = ProgressService.completion_intensity(actions, date(2023, 12, 30), datetime(2024, 1, 1))
        assert cell.count == 0
        assert cell.intensity == 0

    def test_month_heatmap_covers_grid(self):
        goal = make_goal(actions=[make_action("a1", completed_days=[date(2024, 1, 10)])])
        cells = ProgressService.month_heatmap(goal, date(2024, 1, 10))

        assert [cell.day for cell in cells] == DateService.get_month_grid(date(2024, 1, 10))
        by_day = {cell.day: cell for cell in cells}
        assert by_day[date(2024, 1, 10)].intensity == 4
        assert by_day[date(2024, 1, 11)].intensity == 0


class TestGoalReport:
    """Tests for goal_report"""

    def test_report_combines_progress_streak_and_overdue(self):
        goal = make_goal(
            created_at=datetime(2024, 1, 1),
            target_date=date(2024, 1, 8),
            actions=[
                make_action("a1", name="Run", completed_days=[date(2024, 1, 9), date(2024, 1, 10)]),
                make_action("a2", name="Stretch", recurrence=WeeklyRecurrence(weekly_day=1)),
            ]
        )
        today = date(2024, 1, 10)

        report = ProgressService.goal_report(
            goal, today, Timeframe.WEEK, GoalProgressPolicy.COMPLETION_RATIO,
            now=datetime(2024, 1, 10, 12)
        )

        assert report.goal_id == "g1"
        assert report.goal_progress == report.completion_ratio_progress == 50
        assert report.time_elapsed_progress == 100
        assert report.is_overdue
        assert report.overdue_days == 2

        run, stretch = report.actions
        assert run.recurrence_label == "Daily"
        assert run.streak == 2
        assert run.overdue  # target day 8th not completed
        assert stretch.recurrence_label == "Every Mon"
        assert stretch.overdue  # Monday the 8th not completed

    def test_week_timeframe_limits_days(self):
        goal = make_goal(created_at=datetime(2023, 11, 1), actions=[make_action(
            "a1", created_at=datetime(2023, 11, 1)
        )])
        today = date(2024, 1, 10)

        report = ProgressService.goal_report(goal, today, Timeframe.WEEK)

        assert report.actions[0].progress.applicable_count == 15
        assert report.overall.applicable_count == 15
