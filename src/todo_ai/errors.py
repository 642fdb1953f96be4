"""
Error taxonomy for the AI request handlers.

Every failure that leaves a handler is one of the classes below; the
application-level exception handler in ``main`` renders them as
``{"error": message}`` (plus ``"details"`` when present) with the class's
HTTP status.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class TodoAIError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    default_message: str = "요청을 처리하지 못했습니다."

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidInput(TodoAIError):
    """The client payload failed a shape or length check."""

    status_code = 400
    default_message = "입력 검증에 실패했습니다."


class ConfigurationError(TodoAIError):
    """A required credential is not configured."""

    status_code = 500
    default_message = "GOOGLE_GENERATIVE_AI_API_KEY가 설정되지 않았습니다."


class QuotaExceeded(TodoAIError):
    """The generation API signalled rate or quota limiting."""

    status_code = 429
    default_message = "API 호출 한도가 초과되었습니다. 잠시 후 다시 시도해주세요."


class ExternalCallFailure(TodoAIError):
    """Any other failure of the generation call."""

    status_code = 500
    default_message = "AI 처리 중 오류가 발생했습니다."


_QUOTA_MARKERS = ("429", "quota", "rate limit")


def is_quota_error(exc: BaseException) -> bool:
    """Return True when the failure text carries a rate/quota indicator."""
    text = str(exc).lower()
    return any(marker in text for marker in _QUOTA_MARKERS)


# PUBLIC_INTERFACE
def classify_generation_error(exc: Exception, message: Optional[str] = None) -> TodoAIError:
    """
    Convert an arbitrary generation failure into the error taxonomy.

    Args:
        exc: The exception raised by the generator.
        message: Client-facing message for the generic failure case.

    Returns:
        ``exc`` itself when it already is a ``TodoAIError``, a
        ``QuotaExceeded`` when its text matches a quota indicator, otherwise
        an ``ExternalCallFailure`` carrying the underlying text as details.
    """
    if isinstance(exc, ExternalCallFailure) and message:
        return ExternalCallFailure(message, details=exc.details)
    if isinstance(exc, TodoAIError):
        return exc
    if is_quota_error(exc):
        return QuotaExceeded()
    return ExternalCallFailure(message, details=str(exc))
