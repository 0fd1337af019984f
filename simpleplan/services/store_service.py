"""
Plan store.
Persists snapshots through SQLAlchemy. Every mutation computes the new
snapshot with PlanService first and then writes it in a single transaction;
on failure the transaction is rolled back and PersistenceException is raised,
so the caller's snapshot stays as it was.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpleplan import models
from simpleplan.exceptions import PersistenceException
from simpleplan.repositories.goal_repository import (
    ActionRepository, CompletionRepository, GoalRepository
)
from simpleplan.repositories.todo_repository import TodoRepository
from simpleplan.schemas import (
    ActionCreate, ActionUpdate, DayItem, EditResult, GoalCreate, GoalUpdate,
    PlanState, TodoCreate, TodoUpdate
)
from simpleplan.services.daily_view_service import DailyViewService
from simpleplan.services.date_service import DateService, DayLike
from simpleplan.services.normalize_service import normalize_state
from simpleplan.services.plan_service import PlanService, generate_id

logger = logging.getLogger("simpleplan.store")


class PlanStore:
    """Persistence collaborator for plan snapshots"""

    def __init__(self, db: Session):
        self.db = db
        self.goal_repo = GoalRepository()
        self.action_repo = ActionRepository()
        self.completion_repo = CompletionRepository()
        self.todo_repo = TodoRepository()

    @contextmanager
    def _transaction(self, operation: str):
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store {operation} failed: {e}")
            raise PersistenceException(operation, str(e))

    # ===== READ =====

    def load_state(self) -> PlanState:
        """Read the whole plan as a snapshot"""
        try:
            goals = self.goal_repo.get_all(self.db)
            todos = self.todo_repo.get_all(self.db)
            return PlanState.model_validate(
                {"goals": goals, "todos": todos}, from_attributes=True
            )
        except SQLAlchemyError as e:
            logger.error(f"Store read failed: {e}")
            raise PersistenceException("read", str(e))

    # ===== GOALS =====

    def create_goal(
        self,
        state: PlanState,
        goal_data: GoalCreate,
        now: Optional[datetime] = None
    ) -> PlanState:
        new_state = PlanService.create_goal(state, goal_data, now, goal_id=generate_id())
        goal = new_state.goals[-1]

        with self._transaction("create_goal"):
            self.goal_repo.add(self.db, models.Goal(
                id=goal.id,
                title=goal.title,
                target_date=goal.target_date,
                created_at=goal.created_at,
                completed=goal.completed,
                position=self.goal_repo.next_position(self.db),
            ))

        logger.info(f"Created goal {goal.id}")
        return new_state

    def update_goal(
        self,
        state: PlanState,
        goal_id: str,
        goal_update: GoalUpdate,
        now: Optional[datetime] = None
    ) -> PlanState:
        new_state = PlanService.update_goal(state, goal_id, goal_update, now)
        goal = PlanService.find_goal(new_state, goal_id)

        with self._transaction("update_goal"):
            record = self.goal_repo.get_by_id(self.db, goal_id)
            if record is None:
                raise SQLAlchemyError(f"goal {goal_id} missing from store")
            record.title = goal.title
            record.target_date = goal.target_date
            record.completed = goal.completed
            record.completed_at = goal.completed_at

        return new_state

    def delete_goal(self, state: PlanState, goal_id: str) -> PlanState:
        new_state = PlanService.delete_goal(state, goal_id)

        with self._transaction("delete_goal"):
            record = self.goal_repo.get_by_id(self.db, goal_id)
            if record is not None:
                self.goal_repo.delete(self.db, record)

        logger.info(f"Deleted goal {goal_id}")
        return new_state

    # ===== ACTIONS =====

    def add_action(
        self,
        state: PlanState,
        goal_id: str,
        action_data: ActionCreate,
        now: Optional[datetime] = None
    ) -> PlanState:
        new_state = PlanService.add_action(
            state, goal_id, action_data, now, action_id=generate_id()
        )
        action = PlanService.find_goal(new_state, goal_id).actions[-1]

        with self._transaction("add_action"):
            record = models.Action(
                id=action.id,
                goal_id=goal_id,
                name=action.name,
                created_at=action.created_at,
                position=self.action_repo.next_position(self.db, goal_id),
            )
            record.apply_recurrence(action.recurrence)
            self.action_repo.add(self.db, record)

        return new_state

    def update_action(
        self,
        state: PlanState,
        action_id: str,
        action_update: ActionUpdate
    ) -> PlanState:
        new_state = PlanService.update_action(state, action_id, action_update)
        _, action = PlanService.find_action(new_state, action_id)

        with self._transaction("update_action"):
            record = self.action_repo.get_by_id(self.db, action_id)
            if record is None:
                raise SQLAlchemyError(f"action {action_id} missing from store")
            record.name = action.name
            record.apply_recurrence(action.recurrence)

        return new_state

    def delete_action(self, state: PlanState, action_id: str) -> PlanState:
        new_state = PlanService.delete_action(state, action_id)

        with self._transaction("delete_action"):
            record = self.action_repo.get_by_id(self.db, action_id)
            if record is not None:
                self.action_repo.delete(self.db, record)

        return new_state

    def set_completion(
        self,
        state: PlanState,
        action_id: str,
        day: DayLike,
        completed: bool
    ) -> PlanState:
        """Upsert (action, day) completion and return the updated snapshot"""
        new_state = PlanService.set_completion(state, action_id, day, completed)

        with self._transaction("set_completion"):
            self.completion_repo.upsert(
                self.db, action_id, DateService.to_day(day), completed
            )

        return new_state

    # ===== TODOS =====

    def add_todo(self, state: PlanState, todo_data: TodoCreate) -> PlanState:
        new_state = PlanService.add_todo(state, todo_data, todo_id=generate_id())
        todo = new_state.todos[-1]

        with self._transaction("add_todo"):
            self.todo_repo.save(self.db, todo.id, todo.text, todo.completed, todo.position)

        return new_state

    def update_todo(self, state: PlanState, todo_id: str, todo_update: TodoUpdate) -> PlanState:
        new_state = PlanService.update_todo(state, todo_id, todo_update)
        todo = PlanService.find_todo(new_state, todo_id)

        with self._transaction("update_todo"):
            self.todo_repo.save(self.db, todo.id, todo.text, todo.completed, todo.position)

        return new_state

    def delete_todo(self, state: PlanState, todo_id: str) -> PlanState:
        new_state = PlanService.delete_todo(state, todo_id)

        with self._transaction("delete_todo"):
            record = self.todo_repo.get_by_id(self.db, todo_id)
            if record is not None:
                self.todo_repo.delete(self.db, record)

        return new_state

    # ===== DAY VIEW =====

    def apply_day_edits(
        self,
        state: PlanState,
        day: DayLike,
        edited_items: Iterable[DayItem]
    ) -> EditResult:
        """Reconcile an edited day list and persist the resulting changes"""
        result = DailyViewService.apply_edits(state, day, edited_items)

        with self._transaction("apply_day_edits"):
            for write in result.writes:
                self.completion_repo.upsert(self.db, write.action_id, write.day, write.completed)
            for todo in result.state.todos:
                self.todo_repo.save(self.db, todo.id, todo.text, todo.completed, todo.position)
            self.todo_repo.delete_missing(self.db, [todo.id for todo in result.state.todos])

        if result.writes:
            logger.info(f"Applied {len(result.writes)} completion change(s) for {DateService.day_key(day)}")
        return result

    # ===== IMPORT =====

    def import_state(self, raw: Any, now: Optional[datetime] = None) -> PlanState:
        """
        Replace the stored plan with normalized legacy data.

        Raises:
            ValidationException: If raw is not a recognizable plan
            PersistenceException: If the write fails
        """
        state = normalize_state(raw, now)

        with self._transaction("import_state"):
            self.goal_repo.delete_all(self.db)
            self.todo_repo.delete_missing(self.db, [])

            for goal_position, goal in enumerate(state.goals):
                goal_record = models.Goal(
                    id=goal.id,
                    title=goal.title,
                    target_date=goal.target_date,
                    created_at=goal.created_at,
                    completed=goal.completed,
                    completed_at=goal.completed_at,
                    position=goal_position,
                )
                for action_position, action in enumerate(goal.actions):
                    action_record = models.Action(
                        id=action.id,
                        name=action.name,
                        created_at=action.created_at,
                        position=action_position,
                    )
                    action_record.apply_recurrence(action.recurrence)
                    action_record.completions = [
                        models.Completion(day=record.day, completed=record.completed)
                        for record in action.completions
                    ]
                    goal_record.actions.append(action_record)
                self.goal_repo.add(self.db, goal_record)

            for todo in state.todos:
                self.todo_repo.save(self.db, todo.id, todo.text, todo.completed, todo.position)

        logger.info(f"Imported {len(state.goals)} goal(s) and {len(state.todos)} todo(s)")
        return state
