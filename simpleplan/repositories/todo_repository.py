"""
Todo repository - Data access layer for ad hoc todos.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from simpleplan.models import Todo


class TodoRepository:
    """Repository for Todo data access"""

    @staticmethod
    def get_all(db: Session) -> List[Todo]:
        """Get all todos in creation order"""
        return db.query(Todo).order_by(Todo.position).all()

    @staticmethod
    def get_by_id(db: Session, todo_id: str) -> Optional[Todo]:
        return db.query(Todo).filter(Todo.id == todo_id).first()

    @staticmethod
    def save(db: Session, todo_id: str, text: str, completed: bool, position: int) -> Todo:
        """Create or update a todo"""
        todo = TodoRepository.get_by_id(db, todo_id)
        if not todo:
            todo = Todo(id=todo_id)
            db.add(todo)
        todo.text = text
        todo.completed = completed
        todo.position = position
        db.flush()
        return todo

    @staticmethod
    def delete(db: Session, todo: Todo) -> None:
        db.delete(todo)
        db.flush()

    @staticmethod
    def delete_missing(db: Session, keep_ids: List[str]) -> int:
        """Delete todos whose id is not in keep_ids"""
        removed = 0
        for todo in db.query(Todo).all():
            if todo.id not in keep_ids:
                db.delete(todo)
                removed += 1
        db.flush()
        return removed
