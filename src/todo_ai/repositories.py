from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, tzinfo
from functools import lru_cache
from threading import RLock
from typing import Dict, Iterable, List, Optional, Tuple

from .models import TodoEntity
from .schemas import TodoCreate, TodoUpdate
from .settings import get_settings
from .timeutil import get_zone, to_local

SORT_OPTIONS = ("created_date", "priority", "due_date", "title")
STATUS_OPTIONS = ("all", "completed", "pending")

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}

# Fields a PATCH may clear by sending an explicit null.
NULLABLE_FIELDS = ("description", "due_date", "category")


@dataclass(frozen=True)
class ListQuery:
    """
    Query parameters for listing todos.
    """
    limit: int = 50
    offset: int = 0
    status: str = "all"  # all, completed, pending
    priority: Optional[str] = None
    category: Optional[str] = None
    search: Optional[str] = None
    sort: str = "created_date"  # created_date (newest first), priority, due_date, title


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Owner-scoped todo storage. Every method takes the owner id and never reads or
    writes another owner's rows.
    """

    @abstractmethod
    def create(self, owner_id: str, data: TodoCreate) -> TodoEntity:
        """Create and return a new TodoEntity."""

    @abstractmethod
    def get(self, owner_id: str, todo_id: str) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def update(self, owner_id: str, todo_id: str, data: TodoUpdate) -> Optional[TodoEntity]:
        """Update fields of an existing TodoEntity. Return updated entity or None if not found."""

    @abstractmethod
    def delete(self, owner_id: str, todo_id: str) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list(self, owner_id: str, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        """
        Return a slice of TodoEntities and total count matching filters.
        - Supports limit/offset
        - Filter by status, priority and category
        - Case-insensitive substring search on title
        - Sorting by created_date (newest first), priority (high first),
          due_date (soonest first, undated last) or title
        """

    @abstractmethod
    def all(self, owner_id: str) -> List[TodoEntity]:
        """Return every todo of the owner, newest first."""


def local_due(value: Optional[datetime], zone: Optional[tzinfo] = None) -> Optional[datetime]:
    """Due timestamp as naive wall-clock time in the configured zone, for ordering."""
    if value is None:
        return None
    return to_local(value, zone or get_zone(get_settings().timezone))


def sort_entities(items: Iterable[TodoEntity], sort: str) -> List[TodoEntity]:
    """
    Order todos by ``sort``. Ties under priority, due_date and title keep newest-first
    creation order.
    """
    # Reversed insertion order first so equal created_date values also come out newest first.
    newest_first = sorted(list(items)[::-1], key=lambda t: t["created_date"], reverse=True)
    if sort == "priority":
        return sorted(newest_first, key=lambda t: PRIORITY_RANK.get(t["priority"], 1))
    if sort == "due_date":
        zone = get_zone(get_settings().timezone)
        return sorted(
            newest_first,
            key=lambda t: (t["due_date"] is None, local_due(t["due_date"], zone) or datetime.min),
        )
    if sort == "title":
        return sorted(newest_first, key=lambda t: t["title"].casefold())
    return newest_first


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TodoEntity] = {}

    def _now(self) -> datetime:
        return datetime.now()

    def _owned(self, owner_id: str, todo_id: str) -> Optional[TodoEntity]:
        item = self._items.get(todo_id)
        if item is None or item["user_id"] != owner_id:
            return None
        return item

    def create(self, owner_id: str, data: TodoCreate) -> TodoEntity:
        entity: TodoEntity = {
            "id": str(uuid.uuid4()),
            "user_id": owner_id,
            "title": data.title,
            "description": data.description,
            "completed": data.completed,
            "due_date": data.due_date,
            "priority": data.priority,
            "category": data.category,
            "created_date": self._now(),
        }
        with self._lock:
            self._items[entity["id"]] = entity
        return entity.copy()

    def get(self, owner_id: str, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            item = self._owned(owner_id, todo_id)
            return None if item is None else item.copy()

    def update(self, owner_id: str, todo_id: str, data: TodoUpdate) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._owned(owner_id, todo_id)
            if existing is None:
                return None

            updated = existing.copy()
            for name in ("title", "completed", "priority"):
                value = getattr(data, name)
                if value is not None:
                    updated[name] = value  # type: ignore[literal-required]
            for name in NULLABLE_FIELDS:
                if name in data.model_fields_set:
                    updated[name] = getattr(data, name)  # type: ignore[literal-required]

            self._items[todo_id] = updated
            return updated.copy()

    def delete(self, owner_id: str, todo_id: str) -> bool:
        with self._lock:
            if self._owned(owner_id, todo_id) is None:
                return False
            del self._items[todo_id]
            return True

    def list(self, owner_id: str, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        q = query or ListQuery()
        with self._lock:
            items = [t for t in self._items.values() if t["user_id"] == owner_id]

            if q.status == "completed":
                items = [t for t in items if t["completed"]]
            elif q.status == "pending":
                items = [t for t in items if not t["completed"]]
            if q.priority:
                items = [t for t in items if t["priority"] == q.priority]
            if q.category:
                items = [t for t in items if t["category"] == q.category]
            if q.search:
                s = q.search.casefold()
                items = [t for t in items if s in t["title"].casefold()]

            total = len(items)
            items_sorted = sort_entities(items, q.sort)

            start = max(q.offset, 0)
            end = start + max(q.limit, 0)
            return [t.copy() for t in items_sorted[start:end]], total

    def all(self, owner_id: str) -> List[TodoEntity]:
        with self._lock:
            items = [t.copy() for t in self._items.values() if t["user_id"] == owner_id]
        return sort_entities(items, "created_date")


@lru_cache(maxsize=None)
def _build_repository(backend: str, sqlite_db_path: str) -> Repository:
    if backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(sqlite_db_path)
    return InMemoryRepository()


# PUBLIC_INTERFACE
def get_repository() -> Repository:
    """
    Return the configured repository based on settings. One instance is kept per
    backend/path so in-memory state survives across requests.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository
    """
    settings = get_settings()
    return _build_repository(settings.persistence_backend, settings.sqlite_db_path)
