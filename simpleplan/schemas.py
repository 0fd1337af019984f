from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, date
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union


# ===== RECURRENCE =====

class DailyRecurrence(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["daily"] = "daily"


class WeekdaysRecurrence(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["weekdays"] = "weekdays"


class WeeklyRecurrence(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["weekly"] = "weekly"
    weekly_day: int = Field(..., ge=0, le=6)  # 0 = Sunday


class CustomRecurrence(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["custom"] = "custom"
    custom_days: List[int] = Field(..., min_length=1)

    @field_validator("custom_days")
    @classmethod
    def normalize_days(cls, days: List[int]) -> List[int]:
        for day in days:
            if day < 0 or day > 6:
                raise ValueError(f"weekday {day} is outside 0-6")
        return sorted(set(days))


class UnrecognizedRecurrence(BaseModel):
    """Stored recurrence that could not be read. Never applicable."""
    model_config = ConfigDict(frozen=True)

    type: Literal["unrecognized"] = "unrecognized"
    raw: Any = None


Recurrence = Annotated[
    Union[
        DailyRecurrence,
        WeekdaysRecurrence,
        WeeklyRecurrence,
        CustomRecurrence,
        UnrecognizedRecurrence,
    ],
    Field(discriminator="type"),
]

# What clients may submit: the four real kinds only
RecurrenceInput = Annotated[
    Union[DailyRecurrence, WeekdaysRecurrence, WeeklyRecurrence, CustomRecurrence],
    Field(discriminator="type"),
]


# ===== SNAPSHOT =====

class Completion(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    day: date
    completed: bool = True


class Action(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    goal_id: str
    name: str
    recurrence: Recurrence = Field(default_factory=DailyRecurrence)
    created_at: datetime
    completions: List[Completion] = Field(default_factory=list)


class Goal(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    title: str
    target_date: Optional[date] = None
    created_at: datetime
    completed: bool = False
    completed_at: Optional[datetime] = None
    actions: List[Action] = Field(default_factory=list)


class Todo(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    text: str
    completed: bool = False
    position: int = 0


class PlanState(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    goals: List[Goal] = Field(default_factory=list)
    todos: List[Todo] = Field(default_factory=list)


# ===== REQUESTS =====

class GoalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    target_date: Optional[date] = None


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    target_date: Optional[date] = None
    completed: Optional[bool] = None


class ActionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    recurrence: RecurrenceInput = Field(default_factory=DailyRecurrence)


class ActionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    recurrence: Optional[RecurrenceInput] = None


class CompletionSet(BaseModel):
    completed: bool


class TodoCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=500)


class TodoUpdate(BaseModel):
    text: Optional[str] = Field(None, min_length=1, max_length=500)
    completed: Optional[bool] = None


# ===== DERIVED VIEWS =====

class GoalProgressPolicy(str, Enum):
    TIME_ELAPSED = "time_elapsed"
    COMPLETION_RATIO = "completion_ratio"


class Timeframe(str, Enum):
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class DayItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    completed: bool = False
    kind: Literal["todo", "action"] = "todo"
    action_id: Optional[str] = None
    goal_id: Optional[str] = None
    goal_title: Optional[str] = None


class DailyView(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    items: List[DayItem] = Field(default_factory=list)
    completed_count: int = 0
    total_count: int = 0
    progress: int = 0


class CompletionWrite(BaseModel):
    model_config = ConfigDict(frozen=True)

    action_id: str
    day: date
    completed: bool


class EditResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: PlanState
    writes: List[CompletionWrite] = Field(default_factory=list)


class ActionProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    completed_count: int = 0
    applicable_count: int = 0
    percentage: int = 0


class DayIntensity(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: date
    count: int = 0
    intensity: int = 0  # 0-4, heatmap bucket


class ActionReport(BaseModel):
    action_id: str
    name: str
    recurrence_label: str
    progress: ActionProgress
    streak: int = 0
    overdue: bool = False


class GoalReport(BaseModel):
    goal_id: str
    title: str
    policy: GoalProgressPolicy
    goal_progress: int
    time_elapsed_progress: int
    completion_ratio_progress: int
    overall: ActionProgress
    is_overdue: bool = False
    overdue_days: int = 0
    actions: List[ActionReport] = Field(default_factory=list)
