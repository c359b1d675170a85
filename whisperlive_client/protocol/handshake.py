"""Session configuration message sent once when the channel opens.

Construction is stateless (``build_handshake``) and separate from timing:
the handshake never waits for readiness. The lifecycle manager decides when
to proceed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from whisperlive_client._types import Task
from whisperlive_client.session.identity import new_session_id

if TYPE_CHECKING:
    from whisperlive_client.config.settings import HandshakeSettings
    from whisperlive_client.transport.channel import TransportChannel


@dataclass(frozen=True, slots=True)
class HandshakeConfig:
    """Session configuration sent to the service.

    Attributes:
        uid: Session identifier; every reply is correlated by it.
        language: ISO 639-1 hint, or None for auto-detect.
        task: transcribe or translate.
        model: Model tier identifier (e.g., "small").
        use_vad: Ask the service to run voice activity detection.
    """

    uid: str
    language: str | None = None
    task: Task = Task.TRANSCRIBE
    model: str = "small"
    use_vad: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Wire representation."""
        return {
            "uid": self.uid,
            "language": self.language,
            "task": self.task.value,
            "model": self.model,
            "use_vad": self.use_vad,
        }

    def to_message(self) -> str:
        """JSON text frame for the wire."""
        return json.dumps(self.to_dict())


def build_handshake(settings: HandshakeSettings, uid: str | None = None) -> HandshakeConfig:
    """Build the configuration for a session.

    Args:
        settings: Language, task, model and VAD values.
        uid: Session id to use; a fresh one is generated when omitted.
    """
    return HandshakeConfig(
        uid=uid or new_session_id(),
        language=settings.language,
        task=settings.task,
        model=settings.model,
        use_vad=settings.use_vad,
    )


async def send_handshake(channel: TransportChannel, config: HandshakeConfig) -> None:
    """Send the configuration as the single text frame that precedes any audio.

    Raises:
        NotOpenError: If the channel is not open.
    """
    await channel.send(config.to_message())
