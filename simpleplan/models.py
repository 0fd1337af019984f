from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime
import json

from simpleplan.database import Base
from simpleplan.constants import RECURRENCE_DAILY, RECURRENCE_UNRECOGNIZED
from simpleplan.schemas import UnrecognizedRecurrence
from simpleplan.services.normalize_service import normalize_recurrence


class Goal(Base):
    __tablename__ = "goals"

    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    target_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    completed = Column(Boolean, default=False)
    completed_at = Column(DateTime, nullable=True)
    position = Column(Integer, default=0)  # Display order of goals

    actions = relationship(
        "Action",
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="Action.position",
    )


class Action(Base):
    __tablename__ = "actions"

    id = Column(String, primary_key=True, index=True)
    goal_id = Column(String, ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    position = Column(Integer, default=0)  # Order within the goal

    # Recurrence rule
    recurrence_type = Column(String, default=RECURRENCE_DAILY)  # daily, weekdays, weekly, custom
    weekly_day = Column(Integer, nullable=True)    # For weekly: 0-6 (Sun-Sat)
    custom_days = Column(String, nullable=True)    # For custom: JSON array like "[1,3]" (Mon,Wed)

    goal = relationship("Goal", back_populates="actions")
    completions = relationship(
        "Completion",
        back_populates="action",
        cascade="all, delete-orphan",
        order_by="Completion.day",
    )

    @property
    def recurrence(self):
        """
        Recurrence rule for the snapshot schema.

        Columns that do not form a usable rule (unknown type, weekday out of
        range, unreadable custom days) come back as UnrecognizedRecurrence
        holding the raw column values, so loading never fails on them.
        """
        raw_columns = {
            "type": self.recurrence_type,
            "weekly_day": self.weekly_day,
            "custom_days": self.custom_days,
        }
        try:
            days = json.loads(self.custom_days) if self.custom_days else None
        except (json.JSONDecodeError, TypeError):
            days = self.custom_days

        rule = normalize_recurrence({
            "type": self.recurrence_type,
            "weekly_day": self.weekly_day,
            "custom_days": days,
        })
        if rule.type == RECURRENCE_UNRECOGNIZED:
            return UnrecognizedRecurrence(raw=raw_columns)
        return rule

    def apply_recurrence(self, recurrence) -> None:
        """Store a recurrence schema into the flat columns"""
        if recurrence.type == RECURRENCE_UNRECOGNIZED:
            # Write quarantined columns back untouched
            raw = recurrence.raw if isinstance(recurrence.raw, dict) else {"type": recurrence.raw}
            kind = raw.get("type")
            weekly_day = raw.get("weekly_day", raw.get("weeklyDay"))
            days = raw.get("custom_days", raw.get("customDays"))
            self.recurrence_type = None if kind is None else str(kind)
            self.weekly_day = weekly_day if isinstance(weekly_day, int) else None
            self.custom_days = days if days is None or isinstance(days, str) else json.dumps(days)
            return

        self.recurrence_type = recurrence.type
        self.weekly_day = getattr(recurrence, "weekly_day", None)
        days = getattr(recurrence, "custom_days", None)
        self.custom_days = json.dumps(days) if days else None


class Completion(Base):
    __tablename__ = "completions"
    __table_args__ = (
        UniqueConstraint("action_id", "day", name="uq_completion_action_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    action_id = Column(String, ForeignKey("actions.id", ondelete="CASCADE"), nullable=False, index=True)
    day = Column(Date, nullable=False, index=True)
    completed = Column(Boolean, default=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    action = relationship("Action", back_populates="completions")


class Todo(Base):
    __tablename__ = "todos"

    id = Column(String, primary_key=True, index=True)
    text = Column(String, nullable=False)
    completed = Column(Boolean, default=False)
    position = Column(Integer, default=0)  # Creation order
    created_at = Column(DateTime, default=datetime.now)
