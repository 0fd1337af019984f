"""
Plan mutation service.
Pure create/update/delete operations: a snapshot goes in, a new snapshot comes out.
"""
import random
import string
import time
from datetime import datetime
from typing import List, Optional, Tuple

from simpleplan.exceptions import (
    ActionNotFoundException, GoalNotFoundException, TodoNotFoundException
)
from simpleplan.schemas import (
    Action, ActionCreate, ActionUpdate, Goal, GoalCreate, GoalUpdate, PlanState,
    Todo, TodoCreate, TodoUpdate
)
from simpleplan.services.completion_service import CompletionLedger
from simpleplan.services.date_service import DayLike


def generate_id() -> str:
    """Unique id from the current time in milliseconds and a random suffix"""
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{millis}-{suffix}"


class PlanService:
    """Snapshot-in, snapshot-out mutations for goals, actions and todos"""

    # ===== LOOKUPS =====

    @staticmethod
    def find_goal(state: PlanState, goal_id: str) -> Goal:
        for goal in state.goals:
            if goal.id == goal_id:
                return goal
        raise GoalNotFoundException(goal_id)

    @staticmethod
    def find_action(state: PlanState, action_id: str) -> Tuple[Goal, Action]:
        """Find an action and its owning goal"""
        for goal in state.goals:
            for action in goal.actions:
                if action.id == action_id:
                    return goal, action
        raise ActionNotFoundException(action_id)

    @staticmethod
    def find_todo(state: PlanState, todo_id: str) -> Todo:
        for todo in state.todos:
            if todo.id == todo_id:
                return todo
        raise TodoNotFoundException(todo_id)

    @staticmethod
    def _replace_goal(state: PlanState, updated: Goal) -> PlanState:
        goals = [updated if goal.id == updated.id else goal for goal in state.goals]
        return state.model_copy(update={"goals": goals})

    @staticmethod
    def _replace_action(state: PlanState, goal: Goal, updated: Action) -> PlanState:
        actions = [updated if action.id == updated.id else action for action in goal.actions]
        return PlanService._replace_goal(state, goal.model_copy(update={"actions": actions}))

    # ===== GOALS =====

    @staticmethod
    def create_goal(
        state: PlanState,
        goal_data: GoalCreate,
        now: Optional[datetime] = None,
        goal_id: Optional[str] = None
    ) -> PlanState:
        """Append a new goal with no actions"""
        goal = Goal(
            id=goal_id or generate_id(),
            title=goal_data.title,
            target_date=goal_data.target_date,
            created_at=now or datetime.now(),
        )
        return state.model_copy(update={"goals": [*state.goals, goal]})

    @staticmethod
    def update_goal(
        state: PlanState,
        goal_id: str,
        goal_update: GoalUpdate,
        now: Optional[datetime] = None
    ) -> PlanState:
        """
        Update title, target date or completed flag of a goal.

        Marking a goal completed stamps completed_at; un-marking clears it.
        """
        goal = PlanService.find_goal(state, goal_id)
        update_data = goal_update.model_dump(exclude_unset=True)

        if "completed" in update_data:
            if update_data["completed"] is None:
                update_data.pop("completed")
            elif update_data["completed"] and not goal.completed:
                update_data["completed_at"] = now or datetime.now()
            elif not update_data["completed"]:
                update_data["completed_at"] = None

        if update_data.get("title") is None:
            update_data.pop("title", None)

        return PlanService._replace_goal(state, goal.model_copy(update=update_data))

    @staticmethod
    def complete_goal(
        state: PlanState,
        goal_id: str,
        now: Optional[datetime] = None
    ) -> PlanState:
        return PlanService.update_goal(state, goal_id, GoalUpdate(completed=True), now)

    @staticmethod
    def delete_goal(state: PlanState, goal_id: str) -> PlanState:
        """Remove a goal together with its actions and their completions"""
        PlanService.find_goal(state, goal_id)
        goals = [goal for goal in state.goals if goal.id != goal_id]
        return state.model_copy(update={"goals": goals})

    # ===== ACTIONS =====

    @staticmethod
    def add_action(
        state: PlanState,
        goal_id: str,
        action_data: ActionCreate,
        now: Optional[datetime] = None,
        action_id: Optional[str] = None
    ) -> PlanState:
        goal = PlanService.find_goal(state, goal_id)
        action = Action(
            id=action_id or generate_id(),
            goal_id=goal.id,
            name=action_data.name,
            recurrence=action_data.recurrence,
            created_at=now or datetime.now(),
        )
        return PlanService._replace_goal(
            state, goal.model_copy(update={"actions": [*goal.actions, action]})
        )

    @staticmethod
    def update_action(state: PlanState, action_id: str, action_update: ActionUpdate) -> PlanState:
        """
        Rename an action or change its recurrence.

        A new rule only affects days from now on in the sense that past
        completions are kept untouched; nothing is recomputed.
        """
        goal, action = PlanService.find_action(state, action_id)
        update_data = {}
        if action_update.name is not None:
            update_data["name"] = action_update.name
        if action_update.recurrence is not None:
            update_data["recurrence"] = action_update.recurrence

        return PlanService._replace_action(state, goal, action.model_copy(update=update_data))

    @staticmethod
    def delete_action(state: PlanState, action_id: str) -> PlanState:
        goal, _ = PlanService.find_action(state, action_id)
        actions = [action for action in goal.actions if action.id != action_id]
        return PlanService._replace_goal(state, goal.model_copy(update={"actions": actions}))

    @staticmethod
    def set_completion(
        state: PlanState,
        action_id: str,
        day: DayLike,
        completed: bool
    ) -> PlanState:
        """Upsert the completion of an action for a day"""
        goal, action = PlanService.find_action(state, action_id)
        updated = CompletionLedger.set_completion(action, day, completed)
        return PlanService._replace_action(state, goal, updated)

    # ===== TODOS =====

    @staticmethod
    def next_position(todos: List[Todo]) -> int:
        """Position after the last todo (0 for an empty list)"""
        return max((todo.position for todo in todos), default=-1) + 1

    @staticmethod
    def add_todo(
        state: PlanState,
        todo_data: TodoCreate,
        todo_id: Optional[str] = None
    ) -> PlanState:
        todo = Todo(
            id=todo_id or generate_id(),
            text=todo_data.text,
            position=PlanService.next_position(state.todos),
        )
        return state.model_copy(update={"todos": [*state.todos, todo]})

    @staticmethod
    def update_todo(state: PlanState, todo_id: str, todo_update: TodoUpdate) -> PlanState:
        todo = PlanService.find_todo(state, todo_id)
        update_data = {
            key: value
            for key, value in todo_update.model_dump(exclude_unset=True).items()
            if value is not None
        }
        updated = todo.model_copy(update=update_data)
        todos = [updated if item.id == todo_id else item for item in state.todos]
        return state.model_copy(update={"todos": todos})

    @staticmethod
    def delete_todo(state: PlanState, todo_id: str) -> PlanState:
        PlanService.find_todo(state, todo_id)
        todos = [todo for todo in state.todos if todo.id != todo_id]
        return state.model_copy(update={"todos": todos})

    @staticmethod
    def replace_todos(state: PlanState, todos: List[Todo]) -> PlanState:
        return state.model_copy(update={"todos": list(todos)})
