"""WebSocket transport to the transcription service."""

from __future__ import annotations

from whisperlive_client.transport.channel import TransportChannel, websocket_connector

__all__ = ["TransportChannel", "websocket_connector"]
