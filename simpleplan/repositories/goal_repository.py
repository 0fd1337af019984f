"""
Goal repository - Data access layer for goal-related models.
Handles all database queries related to goals, actions and completions.

Methods stage changes on the session; committing is left to the caller so a
mutation is applied all at once or not at all.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session, selectinload

from simpleplan.models import Goal, Action, Completion


class GoalRepository:
    """Repository for Goal data access"""

    @staticmethod
    def get_all(db: Session) -> List[Goal]:
        """Get all goals with actions and completions loaded"""
        return db.query(Goal).options(
            selectinload(Goal.actions).selectinload(Action.completions)
        ).order_by(Goal.position, Goal.created_at).all()

    @staticmethod
    def get_by_id(db: Session, goal_id: str) -> Optional[Goal]:
        """Get goal by ID"""
        return db.query(Goal).filter(Goal.id == goal_id).first()

    @staticmethod
    def next_position(db: Session) -> int:
        last = db.query(Goal).order_by(Goal.position.desc()).first()
        return (last.position or 0) + 1 if last else 0

    @staticmethod
    def add(db: Session, goal: Goal) -> Goal:
        db.add(goal)
        db.flush()
        return goal

    @staticmethod
    def delete(db: Session, goal: Goal) -> None:
        """Delete a goal (actions and completions cascade)"""
        db.delete(goal)
        db.flush()

    @staticmethod
    def delete_all(db: Session) -> None:
        for goal in db.query(Goal).all():
            db.delete(goal)
        db.flush()


class ActionRepository:
    """Repository for Action data access"""

    @staticmethod
    def get_by_id(db: Session, action_id: str) -> Optional[Action]:
        """Get action by ID"""
        return db.query(Action).filter(Action.id == action_id).first()

    @staticmethod
    def next_position(db: Session, goal_id: str) -> int:
        last = db.query(Action).filter(
            Action.goal_id == goal_id
        ).order_by(Action.position.desc()).first()
        return (last.position or 0) + 1 if last else 0

    @staticmethod
    def add(db: Session, action: Action) -> Action:
        db.add(action)
        db.flush()
        return action

    @staticmethod
    def delete(db: Session, action: Action) -> None:
        db.delete(action)
        db.flush()


class CompletionRepository:
    """Repository for Completion data access"""

    @staticmethod
    def get(db: Session, action_id: str, day: date) -> Optional[Completion]:
        """Get the completion record for (action, day)"""
        return db.query(Completion).filter(
            Completion.action_id == action_id,
            Completion.day == day
        ).first()

    @staticmethod
    def upsert(db: Session, action_id: str, day: date, completed: bool) -> Completion:
        """
        Insert or overwrite the completion for (action, day).

        Concurrent writers to the same key: last write wins.
        """
        record = CompletionRepository.get(db, action_id, day)
        if record:
            record.completed = completed
        else:
            record = Completion(action_id=action_id, day=day, completed=completed)
            db.add(record)
        db.flush()
        return record
