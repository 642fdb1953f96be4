"""
Derived metrics over a todo collection.

All functions here are pure: they read the todos they are given and a
reference moment, and return fresh objects. Timestamps are compared as naive
wall-clock values in the configured zone (see ``timeutil.to_local``).
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import PRIORITIES
from .schemas import PriorityCount, ProfileStats, TodoIn
from .timeutil import get_zone, to_local, weekday_name

UNCATEGORIZED = "기타"
NO_CATEGORY = "없음"

# (key, label, first hour, end hour); hours outside every range fall into "night".
TIME_SLOTS: Tuple[Tuple[str, str, int, int], ...] = (
    ("morning", "아침", 6, 9),
    ("late_morning", "오전", 9, 12),
    ("noon", "점심", 12, 14),
    ("afternoon", "오후", 14, 18),
    ("evening", "저녁", 18, 22),
)
NIGHT_SLOT = ("night", "밤")

TIME_SLOT_LABELS: Dict[str, str] = {key: label for key, label, _, _ in TIME_SLOTS}
TIME_SLOT_LABELS[NIGHT_SLOT[0]] = NIGHT_SLOT[1]


@dataclass
class Tally:
    total: int = 0
    completed: int = 0


@dataclass(frozen=True)
class StatisticsSnapshot:
    """Point-in-time aggregate of a todo collection; recomputed per request."""

    total: int
    completed: int
    completion_rate: str
    priority_counts: Dict[str, Tally]
    category_counts: Dict[str, int]
    time_slots: Dict[str, int]
    deadline_compliance_rate: str
    past_due_count: int
    weekday_pattern: Dict[str, Tally]
    most_completed_category: str
    urgent_titles: List[str] = field(default_factory=list)

    @property
    def pending(self) -> int:
        return self.total - self.completed

    def priority_rate(self, priority: str) -> str:
        tally = self.priority_counts[priority]
        return format_rate(tally.completed, tally.total)


def format_rate(part: int, whole: int) -> str:
    """Percentage with one decimal place, halves rounded up, or "0" when ``whole`` is zero."""
    if whole <= 0:
        return "0"
    rate = Decimal(part * 100) / Decimal(whole)
    return str(rate.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


# PUBLIC_INTERFACE
def time_slot_for_hour(hour: int) -> str:
    """Return the time-of-day bucket key for a local hour (0..23)."""
    for key, _label, start, end in TIME_SLOTS:
        if start <= hour < end:
            return key
    return NIGHT_SLOT[0]


def most_frequent(values: Iterable[str], default: str) -> str:
    """Most frequent value; on ties the first one encountered wins."""
    counts: Dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    best, best_count = default, 0
    for value, count in counts.items():
        if count > best_count:
            best, best_count = value, count
    return best


def _local_due(todo: TodoIn, zone: tzinfo) -> Optional[datetime]:
    return to_local(todo.due_date, zone) if todo.due_date is not None else None


def _is_on_time(due: datetime, reference: datetime) -> bool:
    # Loose heuristic: due in the future, or within one day either side of the reference.
    if due >= reference:
        return True
    return abs((due - reference).total_seconds()) / 86400 <= 1


# PUBLIC_INTERFACE
def aggregate(
    todos: Sequence[TodoIn],
    reference: datetime,
    zone: Optional[tzinfo] = None,
) -> StatisticsSnapshot:
    """
    Compute the statistics snapshot for ``todos``.

    Args:
        todos: The collection to analyse.
        reference: "Now" as naive local wall-clock time.
        zone: Zone used to read aware due timestamps (defaults to UTC).

    Returns:
        A StatisticsSnapshot; see the field names for the metrics it carries.
    """
    zone = zone or get_zone("UTC")
    reference = to_local(reference, zone)
    today = reference.date()

    total = len(todos)
    completed = 0
    priority_counts = {p: Tally() for p in PRIORITIES}
    category_counts: Dict[str, int] = {}
    time_slots = {key: 0 for key, _, _, _ in TIME_SLOTS}
    time_slots[NIGHT_SLOT[0]] = 0
    weekday_pattern: Dict[str, Tally] = {}
    completed_with_due = 0
    on_time = 0
    past_due = 0
    completed_categories: List[str] = []
    urgent: List[str] = []

    for todo in todos:
        tally = priority_counts[todo.priority]
        tally.total += 1
        if todo.completed:
            completed += 1
            tally.completed += 1
            completed_categories.append(todo.category or NO_CATEGORY)
        elif todo.priority == "high":
            urgent.append(todo.title)

        category = todo.category or UNCATEGORIZED
        category_counts[category] = category_counts.get(category, 0) + 1

        due = _local_due(todo, zone)
        if due is None:
            continue

        time_slots[time_slot_for_hour(due.hour)] += 1

        day = weekday_pattern.setdefault(weekday_name(due), Tally())
        day.total += 1

        if todo.completed:
            day.completed += 1
            completed_with_due += 1
            if _is_on_time(due, reference):
                on_time += 1
        elif due.date() < today:
            past_due += 1

    return StatisticsSnapshot(
        total=total,
        completed=completed,
        completion_rate=format_rate(completed, total),
        priority_counts=priority_counts,
        category_counts=category_counts,
        time_slots=time_slots,
        deadline_compliance_rate=format_rate(on_time, completed_with_due),
        past_due_count=past_due,
        weekday_pattern=weekday_pattern,
        most_completed_category=most_frequent(completed_categories, NO_CATEGORY),
        urgent_titles=urgent,
    )


# PUBLIC_INTERFACE
def select_for_period(
    todos: Iterable[TodoIn],
    period: str,
    reference: datetime,
    zone: Optional[tzinfo] = None,
) -> List[TodoIn]:
    """
    Pick the todos an analysis period covers.

    - today: due on the reference calendar day
    - week: due within the Sunday-started week containing the reference day
    Todos without a due date are never selected.
    """
    zone = zone or get_zone("UTC")
    reference = to_local(reference, zone)
    day_start = datetime.combine(reference.date(), datetime.min.time())
    if period == "today":
        start, end = day_start, day_start + timedelta(days=1)
    else:
        days_since_sunday = (reference.weekday() + 1) % 7
        start = day_start - timedelta(days=days_since_sunday)
        end = start + timedelta(days=7)

    selected = []
    for todo in todos:
        due = _local_due(todo, zone)
        if due is not None and start <= due < end:
            selected.append(todo)
    return selected


# PUBLIC_INTERFACE
def profile_stats(todos: Sequence[TodoIn]) -> ProfileStats:
    """Totals, rounded completion percentage and per-priority counts."""
    priority_stats = {p: PriorityCount() for p in PRIORITIES}
    completed = 0
    for todo in todos:
        stat = priority_stats[todo.priority]
        stat.total += 1
        if todo.completed:
            completed += 1
            stat.completed += 1

    total = len(todos)
    rate = math.floor(completed / total * 100 + 0.5) if total else 0
    return ProfileStats(
        total_todos=total,
        completed_todos=completed,
        completion_rate=rate,
        priority_stats=priority_stats,
    )
