"""Observability hook for protocol components.

Protocol code never writes to a sink directly. It builds a ``ClientEvent``
and hands it to an ``EventHook`` supplied by the caller. The default hook,
``log_event_hook``, forwards events to structlog; tests and applications can
pass their own callable to collect or route events elsewhere.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from whisperlive_client.logging import get_logger

logger = get_logger("events")

# Events logged at WARNING instead of INFO by the default hook.
_WARNING_EVENTS: frozenset[str] = frozenset(
    {
        "protocol_parse_error",
        "queue_wait",
        "service_notice",
        "forced_disconnect",
        "transport_error",
        "frames_dropped",
    }
)

# High-frequency events logged at DEBUG.
_DEBUG_EVENTS: frozenset[str] = frozenset(
    {
        "chunk_sent",
        "frame_sent",
        "message_received",
        "foreign_message",
    }
)


@dataclass(frozen=True, slots=True)
class ClientEvent:
    """One observable occurrence in a session.

    Attributes:
        name: snake_case event name (e.g., "handshake_sent").
        session_id: Session the event belongs to ("" before a session exists).
        fields: Event-specific structured data.
    """

    name: str
    session_id: str = ""
    fields: dict[str, Any] = field(default_factory=dict)


EventHook = Callable[[ClientEvent], None]


def log_event_hook(event: ClientEvent) -> None:
    """Default hook: write the event to structlog at a level chosen by name."""
    if event.name in _WARNING_EVENTS:
        logger.warning(event.name, session_id=event.session_id, **event.fields)
    elif event.name in _DEBUG_EVENTS:
        logger.debug(event.name, session_id=event.session_id, **event.fields)
    else:
        logger.info(event.name, session_id=event.session_id, **event.fields)


def emit(hook: EventHook | None, name: str, session_id: str = "", **fields: Any) -> None:
    """Build a ClientEvent and pass it to ``hook``.

    Hook failures are logged and swallowed so observability can never break
    the protocol.
    """
    if hook is None:
        return
    try:
        hook(ClientEvent(name=name, session_id=session_id, fields=fields))
    except Exception:
        logger.warning("event_hook_failed", event_name=name, exc_info=True)
