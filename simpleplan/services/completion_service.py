"""
Completion ledger.
Per-action, per-day completion records with upsert-by-day semantics.
"""
from typing import Set
from datetime import date

from simpleplan.schemas import Action, Completion
from simpleplan.services.date_service import DateService, DayLike


class CompletionLedger:
    """Pure operations over an action's completion records"""

    @staticmethod
    def set_completion(action: Action, day: DayLike, completed: bool) -> Action:
        """
        Record completion for a day.

        Overwrites the existing record for the day or appends a new one, so
        there is never more than one record per (action, day).

        Returns:
            New action with the updated completions
        """
        target = DateService.to_day(day)
        completions = []
        found = False

        for record in action.completions:
            if record.day == target:
                if not found:
                    completions.append(Completion(day=target, completed=completed))
                found = True
            else:
                completions.append(record)

        if not found:
            completions.append(Completion(day=target, completed=completed))

        return action.model_copy(update={"completions": completions})

    @staticmethod
    def is_completed(action: Action, day: DayLike) -> bool:
        """True iff a completed record exists for the day (no record = not completed)"""
        target = DateService.to_day(day)
        return any(
            record.day == target and record.completed
            for record in action.completions
        )

    @staticmethod
    def has_any_completion(action: Action) -> bool:
        """Whether the action was ever marked completed"""
        return any(record.completed for record in action.completions)

    @staticmethod
    def completed_days(action: Action) -> Set[date]:
        return {record.day for record in action.completions if record.completed}
