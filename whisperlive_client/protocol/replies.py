"""Reply interpreter — classifies inbound service messages.

Receives a raw text frame and the current session id and returns the typed
messages it carries. Never raises: malformed payloads and replies for other
sessions come back as ``Foreign`` so one bad frame cannot abort a session.

Classification order:
    1. ``uid`` must match the session, else Foreign.
    2. Before readiness, a ready marker or any ``segments`` key yields
       Readiness (segments in the same frame are still processed).
    3. Non-empty ``segments`` are joined with a single space into the full
       transcript snapshot (replace, never append).
    4. ``status == "WAIT"`` yields QueueWait with ``message`` as minutes.
    5. ``message == "DISCONNECT"`` yields ForceDisconnect.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

import pydantic

from whisperlive_client.events import EventHook, emit, log_event_hook
from whisperlive_client.exceptions import ProtocolParseError

STATUS_READY = "ready"
STATUS_WAIT = "WAIT"
MESSAGE_SERVER_READY = "SERVER_READY"
MESSAGE_DISCONNECT = "DISCONNECT"
_NOTICE_STATUSES: frozenset[str] = frozenset({"ERROR", "WARNING"})

# Raw payload excerpt length kept in parse error events.
_RAW_EXCERPT_CHARS = 200


class SegmentPayload(pydantic.BaseModel):
    """One transcript fragment as sent by the service."""

    model_config = pydantic.ConfigDict(extra="ignore")

    text: str | None = None
    start: float | None = None
    end: float | None = None
    completed: bool | None = None


class ServerMessage(pydantic.BaseModel):
    """Inbound JSON envelope. Every field is optional on the wire."""

    model_config = pydantic.ConfigDict(extra="ignore")

    uid: str | None = None
    status: str | None = None
    message: str | float | None = None
    segments: list[SegmentPayload] | None = None
    language: str | None = None
    language_prob: float | None = None


# --- Interpreted messages ---


@dataclass(frozen=True, slots=True)
class Readiness:
    """The service accepts audio from now on."""


@dataclass(frozen=True, slots=True)
class Segments:
    """Current transcript snapshot.

    Attributes:
        texts: Segment texts in server order.
        transcript: ``texts`` joined with a single space.
    """

    texts: tuple[str, ...]
    transcript: str


@dataclass(frozen=True, slots=True)
class QueueWait:
    """The server is full; ``minutes`` is the advertised wait (None if unparseable)."""

    minutes: float | None


@dataclass(frozen=True, slots=True)
class ForceDisconnect:
    """The service asked the client to terminate the session."""


@dataclass(frozen=True, slots=True)
class Foreign:
    """Not for this session, or not understood. Ignored by the caller."""

    reason: str


@dataclass(frozen=True, slots=True)
class LanguageDetected:
    """Language the service detected for an auto-detect session."""

    language: str
    probability: float | None = None


@dataclass(frozen=True, slots=True)
class ServiceNotice:
    """Informational ERROR/WARNING status from the service. Does not end the session."""

    status: str
    message: str


InboundMessage = (
    Readiness | Segments | QueueWait | ForceDisconnect | Foreign | LanguageDetected | ServiceNotice
)


def parse_payload(raw: str | bytes) -> ServerMessage:
    """Parse and validate a raw text frame.

    Raises:
        ProtocolParseError: If the frame is not a JSON object matching the envelope.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolParseError(f"not UTF-8: {exc}") from exc

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ProtocolParseError(f"invalid JSON: {exc}", raw[:_RAW_EXCERPT_CHARS]) from exc

    if not isinstance(data, dict):
        raise ProtocolParseError(
            "expected JSON object, got " + type(data).__name__, raw[:_RAW_EXCERPT_CHARS]
        )

    try:
        return ServerMessage.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ProtocolParseError(
            f"{exc.error_count()} validation error(s)", raw[:_RAW_EXCERPT_CHARS]
        ) from exc


def interpret(
    raw: str | bytes,
    expected_session_id: str,
    *,
    ready: bool,
    hook: EventHook | None = log_event_hook,
) -> tuple[InboundMessage, ...]:
    """Classify one inbound frame for the given session.

    Args:
        raw: Raw text frame.
        expected_session_id: Current session uid.
        ready: Whether readiness was already observed (Readiness is emitted once).
        hook: Receives ``protocol_parse_error`` events for dropped frames.

    Returns:
        Messages in the order the caller must apply them. May be empty when a
        matching frame carries nothing actionable.
    """
    try:
        payload = parse_payload(raw)
    except ProtocolParseError as exc:
        emit(
            hook,
            "protocol_parse_error",
            expected_session_id,
            reason=exc.reason,
            raw=exc.raw,
        )
        return (Foreign(reason="unparseable"),)

    if payload.uid != expected_session_id:
        return (Foreign(reason="uid_mismatch"),)

    messages: list[InboundMessage] = []

    if not ready and (
        payload.status == STATUS_READY
        or payload.message == MESSAGE_SERVER_READY
        or payload.segments is not None
    ):
        messages.append(Readiness())

    if payload.segments:
        texts = tuple(segment.text or "" for segment in payload.segments)
        transcript = " ".join(texts)
        if transcript:
            messages.append(Segments(texts=texts, transcript=transcript))

    if payload.language is not None:
        messages.append(
            LanguageDetected(language=payload.language, probability=payload.language_prob)
        )

    if payload.status == STATUS_WAIT:
        messages.append(QueueWait(minutes=_as_minutes(payload.message)))

    if payload.status in _NOTICE_STATUSES:
        messages.append(ServiceNotice(status=payload.status, message=str(payload.message or "")))

    if payload.message == MESSAGE_DISCONNECT:
        messages.append(ForceDisconnect())

    return tuple(messages)


def _as_minutes(value: str | float | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
