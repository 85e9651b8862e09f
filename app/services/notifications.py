# app/services/notifications.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Protocol

from app.core.types import NotifyTarget

logger = logging.getLogger(__name__)

# Payload keys that must never reach a log line.
_SECRET_KEYS = {"tracking_secret", "client_phone", "pin"}


@dataclass(frozen=True)
class NotificationIntent:
    """
    A request for the messaging collaborator to tell someone something.
    Emitted by the engine, delivered after commit, never awaited.
    """
    target: NotifyTarget
    template: str
    project_id: uuid.UUID
    recipient_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


class NotificationSink(Protocol):
    def emit(self, intent: NotificationIntent) -> None: ...


class LoggingNotificationSink:
    """
    Default sink: records the intent in the structured log. Actual delivery
    (email, SMS) is owned by an external worker reading these.
    """

    def emit(self, intent: NotificationIntent) -> None:
        logger.info(
            "notification intent",
            extra={
                "target": intent.target.value,
                "template": intent.template,
                "project_id": str(intent.project_id),
                "recipient_id": intent.recipient_id,
                "payload_keys": sorted(k for k in intent.payload if k not in _SECRET_KEYS),
            },
        )


def dispatch_intents(sink: NotificationSink, intents: Iterable[NotificationIntent]) -> int:
    """
    Best-effort fan-out after the business change is committed.
    A failing intent is logged and skipped; it never undoes the commit.
    Returns how many intents were handed to the sink.
    """
    sent = 0
    for intent in intents:
        try:
            sink.emit(intent)
            sent += 1
        except Exception:
            logger.exception(
                "notification intent failed",
                extra={"template": intent.template, "project_id": str(intent.project_id)},
            )
    return sent
