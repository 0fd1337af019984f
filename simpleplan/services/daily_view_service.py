"""
Daily merge view service.
Merges ad hoc todos with the actions that apply on a selected day and
reconciles edits of that merged list back into the plan.

Todos are global: the same ad hoc list is shown on every day. Action items
are projections keyed by action id and day key and are never stored as todos.
"""
import logging
from typing import Dict, Iterable, List, Optional, Set

from simpleplan.constants import ITEM_KIND_ACTION, ITEM_KIND_TODO
from simpleplan.schemas import (
    CompletionWrite, DailyView, DayItem, EditResult, PlanState, Todo
)
from simpleplan.services.completion_service import CompletionLedger
from simpleplan.services.date_service import DateService, DayLike
from simpleplan.services.plan_service import PlanService, generate_id
from simpleplan.services.progress_service import round_percentage
from simpleplan.services.recurrence_service import RecurrenceService

logger = logging.getLogger("simpleplan.view")


class DailyViewService:
    """Service for the per-day merged list"""

    @staticmethod
    def action_item_id(action_id: str, day: DayLike) -> str:
        return f"action-{action_id}-{DateService.day_key(day)}"

    @staticmethod
    def resolve_action_items(state: PlanState, day: DayLike) -> List[DayItem]:
        """Day items for every action of every goal that applies on the day"""
        target = DateService.to_day(day)
        items = []

        for goal in state.goals:
            for action in goal.actions:
                if not RecurrenceService.is_action_applicable(action, target):
                    continue
                items.append(DayItem(
                    id=DailyViewService.action_item_id(action.id, target),
                    text=action.name,
                    completed=CompletionLedger.is_completed(action, target),
                    kind=ITEM_KIND_ACTION,
                    action_id=action.id,
                    goal_id=goal.id,
                    goal_title=goal.title,
                ))

        return items

    @staticmethod
    def todo_items(state: PlanState) -> List[DayItem]:
        """Ad hoc todos in creation order"""
        return [
            DayItem(id=todo.id, text=todo.text, completed=todo.completed, kind=ITEM_KIND_TODO)
            for todo in sorted(state.todos, key=lambda todo: todo.position)
        ]

    @staticmethod
    def sort_items(items: Iterable[DayItem]) -> List[DayItem]:
        """Completed first, then incomplete; relative order kept within each group"""
        return sorted(items, key=lambda item: not item.completed)

    @staticmethod
    def merge_day(state: PlanState, day: DayLike) -> DailyView:
        """
        Build the merged list for a day.

        Returns:
            DailyView with sorted items and the day's progress
        """
        target = DateService.to_day(day)
        items = DailyViewService.sort_items(
            DailyViewService.todo_items(state)
            + DailyViewService.resolve_action_items(state, target)
        )
        completed = sum(1 for item in items if item.completed)

        return DailyView(
            day=target,
            items=items,
            completed_count=completed,
            total_count=len(items),
            progress=round_percentage(completed, len(items))
        )

    @staticmethod
    def apply_edits(state: PlanState, day: DayLike, edited_items: Iterable[DayItem]) -> EditResult:
        """
        Reconcile an edited merged list back into the plan.

        Todo items replace the todo store: text and completion are taken from
        the list, todos missing from it are deleted and unknown ones are
        appended. Action items only carry completion: it is written to the
        ledger when it differs from the resolved state for the day. Renaming
        or dropping an action item has no effect. A todo id listed twice keeps
        its first occurrence.

        Returns:
            EditResult with the new state and the ledger writes performed
        """
        target = DateService.to_day(day)
        resolved: Dict[str, DayItem] = {
            item.action_id: item
            for item in DailyViewService.resolve_action_items(state, target)
        }
        existing_todos = {todo.id: todo for todo in state.todos}
        next_position = PlanService.next_position(state.todos)

        todos: List[Todo] = []
        writes: List[CompletionWrite] = []
        seen: Set[str] = set()

        for item in edited_items:
            if item.kind == ITEM_KIND_ACTION or item.action_id:
                original = resolved.get(item.action_id)
                if original is None:
                    logger.warning(
                        f"Ignoring edit for action {item.action_id} not applicable on {target}"
                    )
                    continue
                if original.completed == item.completed:
                    continue

                state = PlanService.set_completion(state, item.action_id, target, item.completed)
                writes.append(CompletionWrite(
                    action_id=item.action_id, day=target, completed=item.completed
                ))
                resolved[item.action_id] = item
                continue

            if item.id in seen:
                logger.warning(f"Ignoring repeated todo {item.id} in edited list")
                continue

            todo = existing_todos.pop(item.id, None)
            if todo is not None:
                todos.append(todo.model_copy(update={
                    "text": item.text,
                    "completed": item.completed,
                }))
                seen.add(item.id)
            else:
                todo_id = item.id or generate_id()
                todos.append(Todo(
                    id=todo_id,
                    text=item.text,
                    completed=item.completed,
                    position=next_position,
                ))
                seen.add(todo_id)
                next_position += 1

        todos.sort(key=lambda todo: todo.position)
        state = PlanService.replace_todos(state, todos)
        return EditResult(state=state, writes=writes)

    @staticmethod
    def should_celebrate(
        previous_progress: Optional[int],
        view: DailyView,
        today: DayLike
    ) -> bool:
        """
        Celebration trigger: today's list just reached 100%.

        Fires only for today, for a non-empty list, when progress moves from
        below 100 to 100.
        """
        if view.total_count == 0 or view.progress < 100:
            return False
        if DateService.day_key(view.day) != DateService.day_key(today):
            return False
        return previous_progress is not None and previous_progress < 100
