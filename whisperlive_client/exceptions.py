"""Typed exceptions for the WhisperLive client.

Hierarchy:
    WhisperLiveError (base)
    +-- TransportError
    |   +-- ConnectionError (also a builtins.ConnectionError)
    |   +-- NotOpenError
    +-- SessionError
    |   +-- InvalidTransitionError
    |   +-- NotReadyError
    |   +-- SessionTimeoutError
    |   |   +-- ReadyTimeoutError
    |   |   +-- ResultTimeoutError
    |   +-- ForcedDisconnect
    |   +-- SessionClosedError
    +-- ProtocolParseError
    +-- AudioError
    |   +-- AudioConversionError
    |   +-- CaptureError
    +-- UploadError
"""

from __future__ import annotations

import builtins


class WhisperLiveError(Exception):
    """Base for all WhisperLive client exceptions."""


# --- Transport ---


class TransportError(WhisperLiveError):
    """WebSocket transport error."""


class ConnectionError(TransportError, builtins.ConnectionError):  # noqa: A001
    """The channel failed to open, or did not open within the timeout."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Could not connect to '{url}': {reason}")


class NotOpenError(TransportError):
    """Send attempted on a channel that is not open."""

    def __init__(self, state: str) -> None:
        self.state = state
        super().__init__(f"Cannot send on channel in state '{state}'")


# --- Session ---


class SessionError(WhisperLiveError):
    """Transcription session error."""


class InvalidTransitionError(SessionError):
    """Invalid state transition in the session state machine."""

    def __init__(self, from_state: str, to_state: str) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state} -> {to_state}")


class NotReadyError(SessionError):
    """Audio delivery attempted before the service signalled readiness."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session '{session_id}' is not ready to receive audio")


class SessionTimeoutError(SessionError):
    """A bounded wait in the session lifecycle expired."""

    def __init__(self, session_id: str, timeout_seconds: float, waiting_for: str) -> None:
        self.session_id = session_id
        self.timeout_seconds = timeout_seconds
        self.waiting_for = waiting_for
        super().__init__(
            f"Session '{session_id}' did not receive {waiting_for} within {timeout_seconds}s"
        )


class ReadyTimeoutError(SessionTimeoutError):
    """The service never signalled readiness in time."""

    def __init__(self, session_id: str, timeout_seconds: float) -> None:
        super().__init__(session_id, timeout_seconds, "a ready signal")


class ResultTimeoutError(SessionTimeoutError):
    """No transcript arrived in time."""

    def __init__(self, session_id: str, timeout_seconds: float) -> None:
        super().__init__(session_id, timeout_seconds, "a transcript")


class ForcedDisconnect(SessionError):  # noqa: N818
    """The service asked the client to terminate the session.

    Not a fault: reported as a distinct completion reason.
    """

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Server requested disconnect of session '{session_id}'")


class SessionClosedError(SessionError):
    """The session closed (transport closed or errored) before the operation finished."""

    def __init__(self, session_id: str, reason: str) -> None:
        self.session_id = session_id
        self.reason = reason
        super().__init__(f"Session '{session_id}' closed: {reason}")


# --- Protocol ---


class ProtocolParseError(WhisperLiveError):
    """Malformed inbound payload. Logged and dropped; the session continues."""

    def __init__(self, reason: str, raw: str = "") -> None:
        self.reason = reason
        self.raw = raw
        super().__init__(f"Malformed server message: {reason}")


# --- Audio ---


class AudioError(WhisperLiveError):
    """Audio processing error."""


class AudioConversionError(AudioError):
    """Audio could not be converted to raw float32 PCM."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Could not convert '{source}': {reason}")


class CaptureError(AudioError):
    """Live audio capture device could not be opened or failed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Audio capture failed: {reason}")


# --- Upload proxy ---


class UploadError(WhisperLiveError):
    """The HTTP upload proxy rejected or failed the transcription request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
