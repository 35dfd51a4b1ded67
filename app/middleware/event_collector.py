"""Per-request middleware event collector using contextvars.

Usage:
    # In the chat endpoint (main.py):
    reset_events()
    ... stream the agent ...
    events = get_events()

    # In middleware and tools:
    emit_event(middleware="retry_model", status="retrying", message="...", details={...})
"""

import contextvars
from typing import Any, Optional

_events: contextvars.ContextVar[Optional[list[dict[str, Any]]]] = contextvars.ContextVar(
    "middleware_events", default=None
)


def reset_events() -> None:
    """Start a fresh event list for a new request."""
    _events.set([])


def emit_event(*, middleware: str, status: str, message: str, details: dict[str, Any] | None = None) -> None:
    """Append an event for the current request."""
    event = {"middleware": middleware, "status": status, "message": message}
    if details:
        event["details"] = details
    events = _events.get()
    if events is None:
        events = []
        _events.set(events)
    events.append(event)


def get_events() -> list[dict[str, Any]]:
    """Return all events collected during the current request."""
    return list(_events.get() or [])
