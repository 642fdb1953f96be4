from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from pydantic import BaseModel, Field

from ..auth import Identity, get_current_user
from ..errors import InvalidInput
from ..llm import StructuredGenerator, get_generator
from ..models import PERIODS, Priority, TodoEntity
from ..repositories import SORT_OPTIONS, STATUS_OPTIONS, ListQuery, Repository, get_repository
from ..schemas import ProfileStats, SummaryResult, TodoCreate, TodoIn, TodoOut, TodoUpdate
from ..settings import get_settings
from ..statistics import profile_stats, select_for_period
from ..timeutil import get_zone, local_now
from .ai import run_summary

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)


class PaginationEnvelope(BaseModel):
    """
    One page of the caller's todos plus the unpaged match count.
    """
    items: List[TodoOut] = Field(..., description="Todos on this page")
    total: int = Field(..., description="Matches before limit/offset")
    limit: int = Field(..., description="Requested page size")
    offset: int = Field(..., description="Requested start index")


def _as_todo_in(entities: List[TodoEntity]) -> List[TodoIn]:
    return [TodoIn.model_validate(e) for e in entities]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item for the caller and return the created resource.",
    responses={
        201: {"description": "Todo stored for the caller"},
        422: {"description": "Validation error"},
    },
)
def create_todo(
    payload: TodoCreate,
    user: Identity = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> TodoOut:
    """
    Create a new Todo owned by the caller.
    """
    return TodoOut(**repo.create(user.id, payload))


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=PaginationEnvelope,
    summary="List Todos",
    description=(
        "List the caller's todos with optional filters and pagination.\n\n"
        "Query parameters:\n"
        "- limit: max number of items to return (0..1000)\n"
        "- offset: number of items to skip (>=0)\n"
        "- status: all, completed or pending\n"
        "- priority: high, medium or low\n"
        "- category: exact category match\n"
        "- q: case-insensitive search in titles\n"
        "- sort: created_date (newest first), priority (high first), due_date (soonest "
        "first, undated last) or title\n\n"
        "The response carries the page plus the total match count."
    ),
    responses={
        200: {"description": "One page of todos"},
        400: {"description": "Invalid query parameters"},
    },
)
def list_todos(
    limit: int = Query(50, ge=0, le=1000, description="Maximum number of items to return"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
    status_filter: str = Query("all", alias="status", description="all, completed or pending"),
    priority: Optional[Priority] = Query(None, description="Filter by priority"),
    category: Optional[str] = Query(None, description="Filter by category"),
    q: Optional[str] = Query(None, description="Search text for titles"),
    sort: str = Query("created_date", description="created_date, priority, due_date or title"),
    user: Identity = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> PaginationEnvelope:
    """
    Filter, sort and page the caller's todos.
    """
    normalized_status = status_filter.strip().lower()
    if normalized_status not in STATUS_OPTIONS:
        raise HTTPException(status_code=400, detail="status must be 'all', 'completed' or 'pending'")
    normalized_sort = sort.strip().lower()
    if normalized_sort not in SORT_OPTIONS:
        raise HTTPException(
            status_code=400, detail="sort must be one of created_date, priority, due_date, title"
        )

    query = ListQuery(
        limit=limit,
        offset=offset,
        status=normalized_status,
        priority=priority,
        category=category.strip() if category and category.strip() else None,
        search=q.strip() if q and q.strip() else None,
        sort=normalized_sort,
    )
    items, total = repo.list(user.id, query)
    return PaginationEnvelope(
        items=[TodoOut(**it) for it in items],
        total=total,
        limit=limit,
        offset=offset,
    )


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=ProfileStats,
    summary="Todo Statistics",
    description="Totals, completion percentage and per-priority counts of the caller's todos.",
)
def todo_stats(
    user: Identity = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> ProfileStats:
    return profile_stats(_as_todo_in(repo.all(user.id)))


# PUBLIC_INTERFACE
@router.post(
    "/summary/{period}",
    response_model=SummaryResult,
    summary="Summarize Stored Todos",
    description=(
        "Select the caller's todos due today, or within the current Sunday-started week, "
        "and return the AI analysis for them."
    ),
    responses={
        200: {"description": "Summary generated"},
        400: {"description": "Unknown period or nothing to analyse"},
        429: {"description": "Generation API rate or quota limit reached"},
        500: {"description": "Credential missing or generation failed"},
    },
)
def summarize_stored(
    period: str = Path(..., description="'today' or 'week'"),
    user: Identity = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
    generator: StructuredGenerator = Depends(get_generator),
) -> SummaryResult:
    """
    Run the summarize pipeline over the caller's stored todos for ``period``.
    """
    if period not in PERIODS:
        raise InvalidInput("분석 기간(today/week)이 필요합니다.")
    zone = get_zone(get_settings().timezone)
    selected = select_for_period(_as_todo_in(repo.all(user.id)), period, local_now(zone), zone)
    if not selected:
        raise InvalidInput("분석할 할 일이 없습니다.")
    return run_summary(selected, period, generator)


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Fetch one of the caller's todos; other owners' ids read as 404.",
    responses={
        200: {"description": "The todo"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(
    todo_id: str,
    user: Identity = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> TodoOut:
    """
    Look up ``todo_id`` within the caller's todos.
    """
    item = repo.get(user.id, todo_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return TodoOut(**item)


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Replace Todo",
    description=(
        "Overwrite every editable field of a todo. Omitted optional fields are cleared and "
        "priority falls back to medium."
    ),
    responses={
        200: {"description": "Updated todo"},
        404: {"description": "Todo not found"},
    },
)
def put_todo(
    todo_id: str,
    payload: TodoCreate,
    user: Identity = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> TodoOut:
    """
    Every TodoCreate field is marked as set, so the repository writes nulls too.
    """
    update = TodoUpdate.model_validate(payload.model_dump())
    updated = repo.update(user.id, todo_id, update)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return TodoOut(**updated)


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description="Change only the fields sent, e.g. toggle completion. An explicit null clears description, due_date or category.",
    responses={
        200: {"description": "Updated todo"},
        404: {"description": "Todo not found"},
    },
)
def patch_todo(
    todo_id: str,
    payload: TodoUpdate,
    user: Identity = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> TodoOut:
    """
    Apply the fields present in the body.
    """
    updated = repo.update(user.id, todo_id, payload)
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return TodoOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Remove one of the caller's todos.",
    responses={
        204: {"description": "Removed"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(
    todo_id: str,
    user: Identity = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> None:
    """
    204 when removed, 404 when the caller owns no such todo.
    """
    if not repo.delete(user.id, todo_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    return None
