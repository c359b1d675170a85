"""Shared test helpers for transport and session tests.

Usage:
    from tests.helpers import (
        EventRecorder,
        FakeCapture,
        FakeWebSocket,
        make_connector,
        reply,
    )
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import numpy as np
from websockets.exceptions import ConnectionClosedOK

from whisperlive_client.delivery.capture import CaptureSource
from whisperlive_client.exceptions import CaptureError

if TYPE_CHECKING:
    from collections.abc import Callable

    from whisperlive_client.events import ClientEvent

_CLOSED = object()


def reply(uid: str, **fields: Any) -> str:
    """Build a server text frame for session ``uid``."""
    return json.dumps({"uid": uid, **fields})


class FakeWebSocket:
    """In-memory stand-in for a websockets client connection.

    Inbound frames are queued with ``push`` and yielded by ``async for``.
    ``on_send`` lets a test play the server: it is called with every
    outbound frame and may push replies.
    """

    def __init__(self) -> None:
        self.url: str | None = None
        self.sent: list[str | bytes] = []
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self.closed = False
        self.close_calls = 0
        self.on_send: Callable[[FakeWebSocket, str | bytes], None] | None = None
        self._inbound: asyncio.Queue[Any] = asyncio.Queue()

    # --- websockets connection surface ---

    async def send(self, message: str | bytes) -> None:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        self.sent.append(message)
        if self.on_send is not None:
            self.on_send(self, message)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_calls += 1
        if self.closed:
            return
        self.closed = True
        self.close_code = code
        self.close_reason = reason
        self._inbound.put_nowait(_CLOSED)

    def __aiter__(self) -> FakeWebSocket:
        return self

    async def __anext__(self) -> str | bytes:
        item = await self._inbound.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    # --- test controls ---

    def push(self, frame: str | bytes) -> None:
        """Queue an inbound frame."""
        self._inbound.put_nowait(frame)

    def push_reply(self, **fields: Any) -> None:
        """Queue a JSON reply for the session that sent the handshake."""
        self.push(reply(self.uid, **fields))

    def remote_close(self, code: int = 1000, reason: str = "") -> None:
        """Simulate the server closing the connection."""
        self.closed = True
        self.close_code = code
        self.close_reason = reason
        self._inbound.put_nowait(_CLOSED)

    def fail(self, error: BaseException) -> None:
        """Make the receive loop raise ``error``."""
        self._inbound.put_nowait(error)

    @property
    def text_sent(self) -> list[str]:
        return [m for m in self.sent if isinstance(m, str)]

    @property
    def binary_sent(self) -> list[bytes]:
        return [m for m in self.sent if isinstance(m, bytes)]

    @property
    def handshake(self) -> dict[str, Any]:
        """The first text frame sent, parsed."""
        return json.loads(self.text_sent[0])

    @property
    def uid(self) -> str:
        return str(self.handshake["uid"])


def make_connector(ws: FakeWebSocket) -> Callable[[str], Any]:
    """Connector that hands out ``ws`` and records the URL."""

    async def connector(url: str) -> FakeWebSocket:
        ws.url = url
        return ws

    return connector


def ready_on_handshake(ws: FakeWebSocket, message: str | bytes) -> None:
    """``on_send`` server script: answer the handshake with a ready status."""
    if isinstance(message, str):
        ws.push_reply(status="ready")


class EventRecorder:
    """EventHook that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[ClientEvent] = []

    def __call__(self, event: ClientEvent) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.events]

    def named(self, name: str) -> list[ClientEvent]:
        return [e for e in self.events if e.name == name]


class FakeCapture(CaptureSource):
    """Capture source driven by the test through ``feed``."""

    def __init__(self, sample_rate: int = 16000, *, fail_on_start: bool = False) -> None:
        self._sample_rate = sample_rate
        self._fail_on_start = fail_on_start
        self._on_frame: Callable[[np.ndarray], None] | None = None
        self.start_calls = 0
        self.stop_calls = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def active(self) -> bool:
        return self._on_frame is not None

    def start(self, on_frame: Callable[[np.ndarray], None]) -> None:
        self.start_calls += 1
        if self._fail_on_start:
            raise CaptureError("no input device")
        self._on_frame = on_frame

    def stop(self) -> None:
        self.stop_calls += 1
        self._on_frame = None

    def feed(self, frame: np.ndarray) -> None:
        """Push one frame as the device callback would."""
        if self._on_frame is not None:
            self._on_frame(frame)


def make_frame(n_samples: int = 4096, value: float = 0.0) -> np.ndarray:
    """Float32 mono frame shaped like sounddevice's (frames, channels) buffer."""
    return np.full((n_samples, 1), value, dtype=np.float32)
