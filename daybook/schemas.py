from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, date
from typing import Any, Optional, List, Union

# Upper bound for the daily water counter
MAX_WATER_GLASSES = 1000


def _require_text(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("must not be blank")
    return value


class TodoItem(BaseModel):
    # Ids are opaque; numeric ids written by other clients are kept as text
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(min_length=1)
    text: str
    completed: bool = False

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        return _require_text(v)


class ScheduleItem(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(min_length=1)
    time: str  # "HH:MM", compared as a plain string
    description: str

    @field_validator("time", "description")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _require_text(v)


class DailyPlanDraft(BaseModel):
    """In-memory copy of one user's plan for one date."""
    plan_date: date
    breakfast: str = ""
    lunch: str = ""
    dinner: str = ""
    snacks: str = ""
    mood: str = ""
    weather: str = ""
    notes: str = ""
    high_level_note: str = ""
    water_intake_glasses: int = Field(0, ge=0, le=MAX_WATER_GLASSES)
    todos: List[TodoItem] = Field(default_factory=list)
    schedule: List[ScheduleItem] = Field(default_factory=list)
    # Assigned by the store; stale after a save until the next load
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PlanUpdate(BaseModel):
    """Full-record replacement body for PUT /plans/{date}.

    Todos and schedule may be sent as lists or as serialized JSON text.
    """
    breakfast: str = ""
    lunch: str = ""
    dinner: str = ""
    snacks: str = ""
    mood: str = ""
    weather: str = ""
    notes: str = ""
    high_level_note: str = ""
    water_intake_glasses: int = Field(0, ge=0, le=MAX_WATER_GLASSES)
    todos: Union[str, List[Any], None] = None
    schedule: Union[str, List[Any], None] = None


class TodoCreate(BaseModel):
    text: str = ""


class ScheduleItemCreate(BaseModel):
    time: str = ""
    description: str = ""


class PlanResponse(BaseModel):
    plan: DailyPlanDraft
    exists: bool


class HistoryDay(BaseModel):
    plan_date: date
    mood: str = ""
    weather: str = ""
    todo_count: int = 0
    todos_completed: int = 0
    schedule_count: int = 0
    water_intake_glasses: int = 0


class HistoryMonth(BaseModel):
    year: int
    month: int
    days: List[HistoryDay]


class Credentials(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    email: str

    model_config = ConfigDict(from_attributes=True)
