from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from fastapi import APIRouter, Body, Depends
from pydantic import ValidationError

from ..errors import InvalidInput, QuotaExceeded, TodoAIError, classify_generation_error
from ..extractor import extract
from ..llm import StructuredGenerator, get_generator, require_credential
from ..models import PERIODS
from ..normalizer import ensure_valid, preprocess
from ..postprocess import combine_due, postprocess
from ..schemas import ExtractedTodo, ExtractRequest, SummaryRequest, SummaryResult, TodoIn
from ..settings import get_settings
from ..summary import summarize
from ..timeutil import get_zone, local_now

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/ai",
    tags=["ai"],
)

_ERROR_RESPONSES = {
    400: {"description": "Invalid input"},
    429: {"description": "Generation API rate or quota limit reached"},
    500: {"description": "Credential missing or generation failed"},
}

# Bodies are untyped JSON; non-object payloads fall through to the 400 checks.
_EXTRACT_EXAMPLES = {"sentence": {"value": {"text": "내일 오후 3시까지 중요한 회의 준비"}}}
_SUMMARY_EXAMPLES = {
    "today": {"value": {"todos": [{"title": "보고서 작성", "priority": "high"}], "period": "today"}},
}


def _generation_failure(exc: Exception, message: str) -> TodoAIError:
    error = classify_generation_error(exc, message)
    if isinstance(error, QuotaExceeded):
        logger.warning("Generation call rate limited: %s", exc)
    else:
        logger.exception("Generation call failed")
    return error


def _as_object(raw: Any) -> Dict[str, Any]:
    """JSON bodies that are not objects (arrays, strings, null) read as empty."""
    return raw if isinstance(raw, dict) else {}


def parse_todos(raw: Any) -> List[TodoIn]:
    """Validate the submitted todo list, raising InvalidInput on any shape problem."""
    if not isinstance(raw, list):
        raise InvalidInput("할 일 목록이 필요합니다.")
    try:
        return [TodoIn.model_validate(item) for item in raw]
    except ValidationError as e:
        raise InvalidInput(
            "할 일 데이터 형식이 올바르지 않습니다.",
            details=str(e),
        ) from e


def parse_period(raw: Any) -> str:
    if not isinstance(raw, str) or raw not in PERIODS:
        raise InvalidInput("분석 기간(today/week)이 필요합니다.")
    return raw


# PUBLIC_INTERFACE
def run_summary(
    todos: Sequence[TodoIn],
    period: str,
    generator: StructuredGenerator,
) -> SummaryResult:
    """
    Summarize pipeline shared by the summary endpoints: credential check, aggregation,
    prompt, generation call, and error classification.
    """
    settings = get_settings()
    require_credential(settings)
    zone = get_zone(settings.timezone)
    try:
        return summarize(todos, period, generator, local_now(zone), zone)
    except Exception as e:
        raise _generation_failure(e, "AI 분석 중 오류가 발생했습니다.")


# PUBLIC_INTERFACE
@router.post(
    "/todos",
    response_model=ExtractedTodo,
    response_model_exclude_none=True,
    summary="Extract Todo",
    description=(
        "Turn a natural-language sentence (2..500 characters) into a structured todo. "
        "Relative dates and times are resolved against today's date; past dates are "
        "moved to today and unknown categories are dropped."
    ),
    responses={200: {"description": "Todo extracted"}, **_ERROR_RESPONSES},
)
def extract_todo(
    payload: Any = Body(None, openapi_examples=_EXTRACT_EXAMPLES),
    generator: StructuredGenerator = Depends(get_generator),
) -> ExtractedTodo:
    """
    Validate, normalize and extract a todo from free text.
    """
    raw_text = ExtractRequest.model_validate(_as_object(payload)).text
    ensure_valid(raw_text)
    text = preprocess(raw_text)

    settings = get_settings()
    require_credential(settings)
    today = local_now(get_zone(settings.timezone)).date()

    try:
        draft = extract(text, today, generator)
    except Exception as e:
        raise _generation_failure(e, "AI 처리 중 오류가 발생했습니다.")

    return combine_due(postprocess(draft, today))


# PUBLIC_INTERFACE
@router.post(
    "/summary",
    response_model=SummaryResult,
    summary="Summarize Todos",
    description=(
        "Analyse a list of todos for the given period ('today' or 'week') and return a "
        "summary, urgent titles, insights and recommendations."
    ),
    responses={200: {"description": "Summary generated"}, **_ERROR_RESPONSES},
)
def summarize_todos(
    payload: Any = Body(None, openapi_examples=_SUMMARY_EXAMPLES),
    generator: StructuredGenerator = Depends(get_generator),
) -> SummaryResult:
    """
    Aggregate statistics over the submitted todos and ask the model for an analysis.
    """
    body = SummaryRequest.model_validate(_as_object(payload))
    todos = parse_todos(body.todos)
    period = parse_period(body.period)
    return run_summary(todos, period, generator)
