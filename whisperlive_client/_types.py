"""Core types for the WhisperLive client.

This module defines enums and dataclasses shared by the transport, protocol,
delivery and session layers. Changes here affect the entire client.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ChannelState(Enum):
    """Connection state of a TransportChannel.

    Valid transitions:
        IDLE -> CONNECTING (open() called)
        CONNECTING -> OPEN (handshake with the server succeeded)
        CONNECTING -> CLOSED (transport failure or open timeout)
        OPEN -> CLOSED (local close, remote close, or transport error)
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ReadinessState(Enum):
    """Whether the service has signalled that audio ingestion may begin."""

    NOT_READY = "not_ready"
    READY = "ready"


class SessionState(Enum):
    """State of a client transcription session.

    Valid transitions:
        IDLE -> CONNECTING (start requested)
        CONNECTING -> AWAITING_READY (channel open, handshake sent)
        AWAITING_READY -> DELIVERING (readiness signal received)
        DELIVERING -> AWAITING_RESULT (bulk replay finished sending)
        AWAITING_RESULT -> CLOSED (first non-empty transcript)
        Any -> CLOSED (error, timeout, forced disconnect, caller stop)
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    AWAITING_READY = "awaiting_ready"
    DELIVERING = "delivering"
    AWAITING_RESULT = "awaiting_result"
    CLOSED = "closed"


class Task(Enum):
    """Task requested from the service in the handshake."""

    TRANSCRIBE = "transcribe"
    TRANSLATE = "translate"


class CloseReason(Enum):
    """Why a session reached CLOSED."""

    COMPLETED = "completed"
    STOPPED = "stopped"
    FORCED_DISCONNECT = "forced_disconnect"
    TRANSPORT_CLOSED = "transport_closed"
    TRANSPORT_ERROR = "transport_error"
    READY_TIMEOUT = "ready_timeout"
    RESULT_TIMEOUT = "result_timeout"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class AudioChunk:
    """One fixed-size slice of a bulk audio buffer.

    Ephemeral: produced and sent immediately during delivery.
    """

    data: bytes
    sequence_index: int


@dataclass(slots=True)
class Session:
    """One connect -> handshake -> audio -> result cycle.

    Owned exclusively by TranscriptionClient; created at connect time.
    The connection state lives on the channel and is mirrored here for
    inspection.
    """

    session_id: str
    endpoint_url: str
    readiness: ReadinessState = ReadinessState.NOT_READY
    connection_state: ChannelState = ChannelState.IDLE
    detected_language: str | None = None
    language_probability: float | None = None

    @property
    def is_ready(self) -> bool:
        """True once the service signalled readiness."""
        return self.readiness is ReadinessState.READY
