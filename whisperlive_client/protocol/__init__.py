"""WhisperLive wire protocol: outbound handshake and inbound reply interpretation."""

from __future__ import annotations

from whisperlive_client.protocol.handshake import HandshakeConfig, build_handshake, send_handshake
from whisperlive_client.protocol.replies import (
    ForceDisconnect,
    Foreign,
    InboundMessage,
    LanguageDetected,
    QueueWait,
    Readiness,
    Segments,
    ServiceNotice,
    interpret,
    parse_payload,
)

__all__ = [
    "ForceDisconnect",
    "Foreign",
    "HandshakeConfig",
    "InboundMessage",
    "LanguageDetected",
    "QueueWait",
    "Readiness",
    "Segments",
    "ServiceNotice",
    "build_handshake",
    "interpret",
    "parse_payload",
    "send_handshake",
]
