from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Priority

# Shared type for incoming due_date which can be a date, datetime, or ISO8601 string
DueDateInput = Union[date, datetime, str]


def parse_timestamp(value: Optional[DueDateInput]) -> Optional[datetime]:
    """
    Normalize a timestamp input into a datetime (naive or aware).
    - Strings are parsed with datetime.fromisoformat; a trailing 'Z' is read as UTC and
      a bare date is promoted to 00:00.
    - A date (not datetime) is promoted to a datetime at 00:00.
    - A datetime is returned as-is.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return datetime(d.year, d.month, d.day, 0, 0, 0)
            except ValueError as e:
                raise ValueError(
                    "Invalid timestamp format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for timestamp; expected date, datetime, or ISO8601 string.")


def _clean_title(v: str) -> str:
    s = v.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("title length must be between 1 and 200 characters")
    return s


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    s = v.strip()
    return s or None


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item by manual entry.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "보고서 작성",
                "description": "분기 실적 정리",
                "due_date": "2025-12-23T15:00:00",
                "priority": "high",
                "category": "업무",
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(default=False, description="Completion status flag")
    due_date: Optional[datetime] = Field(
        default=None,
        description="Due date/time. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )
    priority: Priority = Field(default="medium", description="high, medium or low")
    category: Optional[str] = Field(default=None, description="Optional free-text category")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _clean_title(v)

    @field_validator("description", "category")
    @classmethod
    def blank_optional_text(cls, v: Optional[str]) -> Optional[str]:
        """Store blank optional text as null."""
        return _blank_to_none(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        return parse_timestamp(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only provided fields will be updated. Explicit null clears
    description, due_date and category.
    """

    title: Optional[str] = Field(default=None, description="Short title for the todo item", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")
    due_date: Optional[datetime] = Field(default=None, description="Due date/time of the todo item")
    priority: Optional[Priority] = Field(default=None, description="high, medium or low")
    category: Optional[str] = Field(default=None, description="Optional free-text category")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _clean_title(v)

    @field_validator("description", "category")
    @classmethod
    def blank_optional_text(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        return parse_timestamp(v)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a stored Todo item.
    """

    id: str = Field(..., description="Unique identifier of the todo item")
    user_id: str = Field(..., description="Owner identity")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(..., description="Completion status flag")
    due_date: Optional[datetime] = Field(default=None, description="Due date/time as an ISO8601 datetime")
    priority: Priority = Field(..., description="high, medium or low")
    category: Optional[str] = Field(default=None, description="Optional category")
    created_date: datetime = Field(..., description="Creation timestamp")


# PUBLIC_INTERFACE
class TodoIn(BaseModel):
    """
    A todo as submitted by a client for analysis. Mirrors the stored shape but every
    field except title is optional, and unknown keys (e.g. user_id) are ignored.
    """

    id: Optional[str] = None
    title: str
    description: Optional[str] = None
    created_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    priority: Priority = "medium"
    category: Optional[str] = None
    completed: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, v: Any) -> Any:
        return "medium" if v is None else v

    @field_validator("created_date", "due_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        return parse_timestamp(v)


# PUBLIC_INTERFACE
class ExtractRequest(BaseModel):
    """Body of the extract endpoint. ``text`` is checked by the input normalizer."""

    text: Any = Field(default=None, description="Free-text description of a todo (2..500 chars)")


# PUBLIC_INTERFACE
class ExtractedTodo(BaseModel):
    """
    A todo fragment derived from natural language, guaranteed valid by postprocessing.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "회의 준비",
                "description": "내일 오후 3시 회의 자료 준비",
                "due_date": "2025-12-23T15:00:00",
                "due_time": "15:00",
                "priority": "high",
                "category": "업무",
            }
        }
    )

    title: str = Field(..., description="Title, 1..100 characters")
    description: Optional[str] = Field(default=None, description="Optional description")
    due_date: str = Field(..., description="YYYY-MM-DD, or YYYY-MM-DDTHH:MM:00 in responses")
    due_time: str = Field(..., description="HH:MM, 24-hour clock")
    priority: Priority = Field(..., description="high, medium or low")
    category: Optional[str] = Field(default=None, description="One of 업무/개인/건강/학습 when set")


# PUBLIC_INTERFACE
class SummaryRequest(BaseModel):
    """Body of the summarize endpoint. Shape checks happen in the handler to answer 400."""

    todos: Any = Field(default=None, description="List of todos to analyse")
    period: Any = Field(default=None, description="'today' or 'week'")


# PUBLIC_INTERFACE
class SummaryResult(BaseModel):
    """
    Narrative analysis of a todo collection.
    """

    summary: str = Field(default="", description="Summary including the completion rate")
    urgentTasks: List[str] = Field(default_factory=list, description="Urgent unfinished titles (max 5)")
    insights: List[str] = Field(default_factory=list, description="Analysis findings")
    recommendations: List[str] = Field(default_factory=list, description="Actionable recommendations (max 3)")


class PriorityCount(BaseModel):
    total: int = 0
    completed: int = 0


# PUBLIC_INTERFACE
class ProfileStats(BaseModel):
    """Headline numbers for the caller's todo collection."""

    total_todos: int
    completed_todos: int
    completion_rate: int = Field(..., description="Rounded percentage 0..100")
    priority_stats: Dict[str, PriorityCount]
