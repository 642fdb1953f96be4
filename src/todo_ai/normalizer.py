from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from .errors import InvalidInput

MIN_INPUT_LENGTH = 2
MAX_INPUT_LENGTH = 500

_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None


# PUBLIC_INTERFACE
def validate(text: Any) -> ValidationResult:
    """Check that free-text input is a string of 2..500 characters once trimmed."""
    if not text or not isinstance(text, str):
        return ValidationResult(False, "입력 텍스트가 필요합니다.")

    trimmed = text.strip()
    if len(trimmed) < MIN_INPUT_LENGTH:
        return ValidationResult(False, f"입력은 최소 {MIN_INPUT_LENGTH}자 이상이어야 합니다.")
    if len(trimmed) > MAX_INPUT_LENGTH:
        return ValidationResult(False, f"입력은 최대 {MAX_INPUT_LENGTH}자까지 가능합니다.")
    return ValidationResult(True)


# PUBLIC_INTERFACE
def ensure_valid(text: Any) -> str:
    """Return ``text`` unchanged or raise InvalidInput with the validation message."""
    result = validate(text)
    if not result.valid:
        raise InvalidInput(result.error)
    return text


# PUBLIC_INTERFACE
def preprocess(text: str) -> str:
    """Trim and collapse whitespace runs to single spaces. Case is left alone."""
    return _WHITESPACE_RUN.sub(" ", text.strip())
