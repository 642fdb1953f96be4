"""
Repair pass turning a model draft into a valid todo fragment.

``postprocess`` never raises: every field of the draft is optional and may be
of the wrong type; missing or malformed values are replaced by defaults.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Mapping, Optional

from .models import CATEGORY_WHITELIST
from .schemas import ExtractedTodo

DEFAULT_TITLE = "할 일"
DEFAULT_DUE_TIME = "09:00"
MAX_TITLE_LENGTH = 100
ELLIPSIS = "..."

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def _text(value: Any) -> Optional[str]:
    return value.strip() if isinstance(value, str) else None


def normalize_title(value: Any) -> str:
    title = _text(value) or DEFAULT_TITLE
    if len(title) > MAX_TITLE_LENGTH:
        title = title[: MAX_TITLE_LENGTH - len(ELLIPSIS)] + ELLIPSIS
    return title


def normalize_description(value: Any) -> Optional[str]:
    return _text(value) or None


def parse_draft_date(value: Any) -> Optional[date]:
    """Read the calendar date of a YYYY-MM-DD or ISO date-time string; None if unreadable."""
    text = _text(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def normalize_due_date(value: Any, today: date) -> date:
    parsed = parse_draft_date(value)
    if parsed is None or parsed < today:
        return today
    return parsed


def normalize_due_time(value: Any) -> str:
    match = _TIME_PATTERN.match(_text(value) or "")
    if not match:
        return DEFAULT_DUE_TIME
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return DEFAULT_DUE_TIME
    return f"{hour:02d}:{minute:02d}"


def normalize_priority(value: Any) -> str:
    return value if value in ("high", "low") else "medium"


def normalize_category(value: Any) -> Optional[str]:
    category = _text(value)
    return category if category in CATEGORY_WHITELIST else None


# PUBLIC_INTERFACE
def postprocess(draft: Any, today: Optional[date] = None) -> ExtractedTodo:
    """
    Repair a structured-output draft into an ExtractedTodo.

    Args:
        draft: Mapping returned by the generator; anything else is treated as empty.
        today: Calendar day used for defaulting and clamping ``due_date``.

    Returns:
        An ExtractedTodo whose ``due_date`` is ``YYYY-MM-DD`` (never before ``today``)
        and whose ``due_time`` is always set.
    """
    fields: Mapping[str, Any] = draft if isinstance(draft, Mapping) else {}
    today = today or date.today()
    return ExtractedTodo(
        title=normalize_title(fields.get("title")),
        description=normalize_description(fields.get("description")),
        due_date=normalize_due_date(fields.get("due_date"), today).isoformat(),
        due_time=normalize_due_time(fields.get("due_time")),
        priority=normalize_priority(fields.get("priority")),
        category=normalize_category(fields.get("category")),
    )


# PUBLIC_INTERFACE
def combine_due(todo: ExtractedTodo) -> ExtractedTodo:
    """Return a copy whose ``due_date`` carries the time: ``YYYY-MM-DDTHH:MM:00``."""
    day = parse_draft_date(todo.due_date)
    day_text = day.isoformat() if day else todo.due_date
    return todo.model_copy(update={"due_date": f"{day_text}T{todo.due_time}:00"})
