# app/core/errors.py
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    INVALID_TRANSITION = "InvalidTransition"
    WRITER_AT_CAPACITY = "WriterAtCapacity"
    EXHAUSTED_RETRIES = "ExhaustedRetries"
    NOT_FOUND = "NotFound"
    TOO_MANY_ATTEMPTS = "TooManyAttempts"
    VALIDATION_FAILED = "ValidationFailed"
    # raised by the store, not the engine
    STALE_STATUS = "StaleStatus"


class EngineError(Exception):
    """
    Base for every failure the engine reports.

    `kind` is the stable machine-readable tag; `context` carries the offending
    values so the caller can decide between retrying and surfacing.
    """

    kind: ErrorKind = ErrorKind.VALIDATION_FAILED

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "detail": self.message,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
        }


class InvalidTransition(EngineError):
    kind = ErrorKind.INVALID_TRANSITION

    def __init__(
        self,
        from_status: str,
        to_status: str,
        actor: Optional[str] = None,
        message: Optional[str] = None,
    ):
        super().__init__(
            message or f"Transition {from_status} -> {to_status} is not allowed.",
            from_status=from_status,
            to_status=to_status,
            actor=actor,
        )
        self.from_status = from_status
        self.to_status = to_status


class WriterAtCapacity(EngineError):
    kind = ErrorKind.WRITER_AT_CAPACITY


class ExhaustedRetries(EngineError):
    kind = ErrorKind.EXHAUSTED_RETRIES


class NotFound(EngineError):
    kind = ErrorKind.NOT_FOUND


class TooManyAttempts(EngineError):
    kind = ErrorKind.TOO_MANY_ATTEMPTS


class ValidationFailed(EngineError):
    kind = ErrorKind.VALIDATION_FAILED


class StaleStatus(EngineError):
    kind = ErrorKind.STALE_STATUS


def _jsonable(v: Any) -> Any:
    if v is None or isinstance(v, (str, int, float, bool)):
        return v
    if isinstance(v, Enum):
        return v.value
    if isinstance(v, dict):
        return {str(k): _jsonable(x) for k, x in v.items()}
    if isinstance(v, (list, tuple, set)):
        return [_jsonable(x) for x in v]
    return str(v)
