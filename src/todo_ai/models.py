from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional, Tuple, TypedDict

Priority = Literal["high", "medium", "low"]
Period = Literal["today", "week"]

PRIORITIES: Tuple[str, ...] = ("high", "medium", "low")
PERIODS: Tuple[str, ...] = ("today", "week")

# Categories the extraction path may assign; manual entry is unconstrained.
CATEGORY_WHITELIST: Tuple[str, ...] = ("업무", "개인", "건강", "학습")

PRIORITY_LABELS = {"high": "높음", "medium": "중간", "low": "낮음"}


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a stored Todo item.

    Fields:
    - id: Opaque unique identifier (UUID string), immutable
    - user_id: Identity of the owner; every repository call is scoped by it
    - title: Short title (1..200 chars, trimmed on input via schemas)
    - description: Optional detailed description
    - completed: Boolean completion flag
    - due_date: Optional due datetime carrying date and time of day
    - priority: One of high/medium/low
    - category: Optional free-text category
    - created_date: Creation timestamp, set once by the repository
    """

    id: str
    user_id: str
    title: str
    description: Optional[str]
    completed: bool
    due_date: Optional[datetime]
    priority: str
    category: Optional[str]
    created_date: datetime
