from __future__ import annotations

import os
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List, Optional, Tuple

from .models import TodoEntity
from .repositories import NULLABLE_FIELDS, ListQuery, Repository, local_due
from .schemas import TodoCreate, TodoUpdate


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    user_id: str = "user_id"
    title: str = "title"
    description: str = "description"
    completed: str = "completed"
    due_date: str = "due_date"
    due_local: str = "due_local"
    priority: str = "priority"
    category: str = "category"
    created_date: str = "created_date"


_COLS = _Cols()

# Ties always fall back to newest first.
_NEWEST_FIRST = f"{_COLS.created_date} DESC, rowid DESC"

_ORDER_BY = {
    "created_date": _NEWEST_FIRST,
    "priority": (
        f"CASE {_COLS.priority} WHEN 'high' THEN 0 WHEN 'medium' THEN 1 ELSE 2 END ASC, "
        f"{_NEWEST_FIRST}"
    ),
    "due_date": f"{_COLS.due_local} IS NULL, {_COLS.due_local} ASC, {_NEWEST_FIRST}",
    "title": f"{_COLS.title} COLLATE NOCASE ASC, {_NEWEST_FIRST}",
}


def _dt_text(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _due_local_text(value: Optional[datetime]) -> Optional[str]:
    local = local_due(value)
    return local.isoformat(timespec="microseconds") if local else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value is not None else None


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository; every statement is filtered by user_id.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.user_id} TEXT NOT NULL,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.due_date} TEXT NULL,
                    {_COLS.due_local} TEXT NULL,
                    {_COLS.priority} TEXT NOT NULL DEFAULT 'medium',
                    {_COLS.category} TEXT NULL,
                    {_COLS.created_date} TEXT NOT NULL
                )
                """
            )
            columns = {r["name"] for r in conn.execute(f"PRAGMA table_info({_COLS.table})")}
            if _COLS.due_local not in columns:
                conn.execute(f"ALTER TABLE {_COLS.table} ADD COLUMN {_COLS.due_local} TEXT NULL")
                for r in conn.execute(f"SELECT {_COLS.id}, {_COLS.due_date} FROM {_COLS.table}").fetchall():
                    conn.execute(
                        f"UPDATE {_COLS.table} SET {_COLS.due_local} = ? WHERE {_COLS.id} = ?",
                        (_due_local_text(_parse_dt(r[_COLS.due_date])), r[_COLS.id]),
                    )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_user_id ON {_COLS.table}({_COLS.user_id})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_date ON {_COLS.table}({_COLS.created_date})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": str(row[_COLS.id]),
            "user_id": str(row[_COLS.user_id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description],
            "completed": bool(row[_COLS.completed]),
            "due_date": _parse_dt(row[_COLS.due_date]),
            "priority": str(row[_COLS.priority]),
            "category": row[_COLS.category],
            "created_date": _parse_dt(row[_COLS.created_date]),  # type: ignore[typeddict-item]
        }

    def _fetch(self, conn: sqlite3.Connection, owner_id: str, todo_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ? AND {_COLS.user_id} = ?",
            (todo_id, owner_id),
        ).fetchone()

    def create(self, owner_id: str, data: TodoCreate) -> TodoEntity:
        new_id = str(uuid.uuid4())
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.user_id}, {_COLS.title}, {_COLS.description},
                    {_COLS.completed}, {_COLS.due_date}, {_COLS.due_local}, {_COLS.priority}, {_COLS.category}, {_COLS.created_date})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    new_id,
                    owner_id,
                    data.title,
                    data.description,
                    1 if data.completed else 0,
                    _dt_text(data.due_date),
                    _due_local_text(data.due_date),
                    data.priority,
                    data.category,
                    datetime.now().isoformat(),
                ),
            )
            row = self._fetch(conn, owner_id, new_id)
            assert row is not None
            return self._row_to_entity(row)

    def get(self, owner_id: str, todo_id: str) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._fetch(conn, owner_id, todo_id)
            return self._row_to_entity(row) if row else None

    def update(self, owner_id: str, todo_id: str, data: TodoUpdate) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._fetch(conn, owner_id, todo_id)
            if not row:
                return None
            current = self._row_to_entity(row)

            for name in ("title", "completed", "priority"):
                value = getattr(data, name)
                if value is not None:
                    current[name] = value  # type: ignore[literal-required]
            for name in NULLABLE_FIELDS:
                if name in data.model_fields_set:
                    current[name] = getattr(data, name)  # type: ignore[literal-required]

            conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.title} = ?, {_COLS.description} = ?, {_COLS.completed} = ?,
                    {_COLS.due_date} = ?, {_COLS.due_local} = ?, {_COLS.priority} = ?, {_COLS.category} = ?
                WHERE {_COLS.id} = ? AND {_COLS.user_id} = ?
                """,
                (
                    current["title"],
                    current["description"],
                    1 if current["completed"] else 0,
                    _dt_text(current["due_date"]),
                    _due_local_text(current["due_date"]),
                    current["priority"],
                    current["category"],
                    todo_id,
                    owner_id,
                ),
            )
            row2 = self._fetch(conn, owner_id, todo_id)
            assert row2 is not None
            return self._row_to_entity(row2)

    def delete(self, owner_id: str, todo_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute(
                f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ? AND {_COLS.user_id} = ?",
                (todo_id, owner_id),
            )
            return cur.rowcount > 0

    def list(self, owner_id: str, query: Optional[ListQuery] = None) -> Tuple[List[TodoEntity], int]:
        q = query or ListQuery()
        clauses = [f"{_COLS.user_id} = ?"]
        params: list = [owner_id]

        if q.status == "completed":
            clauses.append(f"{_COLS.completed} = 1")
        elif q.status == "pending":
            clauses.append(f"{_COLS.completed} = 0")
        if q.priority:
            clauses.append(f"{_COLS.priority} = ?")
            params.append(q.priority)
        if q.category:
            clauses.append(f"{_COLS.category} = ?")
            params.append(q.category)
        if q.search:
            clauses.append(f"{_COLS.title} LIKE ?")
            params.append(f"%{q.search}%")

        where_sql = f"WHERE {' AND '.join(clauses)}"
        order_sql = f"ORDER BY {_ORDER_BY.get(q.sort, _ORDER_BY['created_date'])}"

        with self._conn() as conn:
            count_row = conn.execute(
                f"SELECT COUNT(*) as cnt FROM {_COLS.table} {where_sql}", params
            ).fetchone()
            total = int(count_row["cnt"]) if count_row else 0

            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} {where_sql} {order_sql} LIMIT ? OFFSET ?",
                [*params, max(q.limit, 0), max(q.offset, 0)],
            ).fetchall()
            return [self._row_to_entity(r) for r in rows], total

    def all(self, owner_id: str) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} WHERE {_COLS.user_id} = ? ORDER BY {_ORDER_BY['created_date']}",
                (owner_id,),
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]
