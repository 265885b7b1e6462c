"""
Structured JSON event emission (shared).

Narration, recognition and the control API all report what they did through
one event envelope:

    {ts, session_id, component, event_type, severity, correlation_id, pii, ...}

Each event is written as a JSON line to stdout and kept in the in-memory
event store so the control API can replay a session's history.
"""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .event_store import EventStore, event_store


class Component(str, Enum):
    """Event sources."""

    NARRATION = "narration"
    RECOGNITION = "recognition"
    CONTROL_API = "control_api"


class Severity(str, Enum):
    """Event severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


DEFAULT_PII = {"contains_pii": False, "fields": [], "handling": "none"}


def pii_marker(*fields: str) -> Dict[str, Any]:
    """Envelope `pii` block for events that carry user speech."""
    return {"contains_pii": True, "fields": list(fields), "handling": "none"}


class EventEmitter:
    """Emits structured JSON events for one component."""

    def __init__(self, component: Component, store: Optional[EventStore] = None):
        self.component = component
        self.store = store if store is not None else event_store

    def emit(
        self,
        event_type: str,
        session_id: str,
        severity: Severity = Severity.INFO,
        correlation_id: Optional[str] = None,
        pii: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        event = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "session_id": session_id,
            "component": self.component.value,
            "event_type": event_type,
            "severity": severity.value,
            "correlation_id": correlation_id or session_id,
            "pii": pii or DEFAULT_PII,
        }
        event.update(kwargs)

        sys.stdout.write(json.dumps(event, ensure_ascii=False, default=str))
        sys.stdout.write("\n")
        sys.stdout.flush()

        self.store.store(event)
        return event

    def state_changed(
        self,
        session_id: str,
        subject: str,
        from_state: str,
        to_state: str,
        **kwargs: Any,
    ) -> None:
        """Emit `<subject>.state_changed`."""
        self.emit(
            f"{subject}.state_changed",
            session_id,
            severity=Severity.DEBUG,
            from_state=from_state,
            to_state=to_state,
            **kwargs,
        )

    def notification_raised(
        self,
        session_id: str,
        category: str,
        message: str,
        detail: Optional[str] = None,
    ) -> None:
        """Emit the one-shot user notification for an unrecoverable condition."""
        self.emit(
            "notification.raised",
            session_id,
            severity=Severity.WARN if category.endswith("transient") else Severity.ERROR,
            category=category,
            message=message,
            detail=detail,
        )
