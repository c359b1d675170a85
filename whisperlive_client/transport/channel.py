"""TransportChannel — one full-duplex WebSocket connection to the service.

Wraps a ``websockets`` asyncio client connection behind a small contract:

- ``open()`` connects with a hard timeout (no retry) and starts a receive loop.
- ``send()`` refuses to send unless the channel is OPEN; sends are awaited in
  caller order, so ordering is preserved.
- ``on_message`` / ``on_error`` / ``on_close`` handlers are registered once
  and run to completion on the event loop, in arrival order.
- ``close()`` is idempotent and marks the channel CLOSED before awaiting the
  socket close, so no send can slip through during teardown.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any, Protocol

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from whisperlive_client._audio_constants import DEFAULT_OPEN_TIMEOUT_MS, WS_CLOSE_NORMAL
from whisperlive_client._types import ChannelState
from whisperlive_client.events import emit
from whisperlive_client.exceptions import ConnectionError, NotOpenError
from whisperlive_client.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from whisperlive_client.events import EventHook

logger = get_logger("transport.channel")


class WebSocketLike(Protocol):
    """The subset of a websockets connection used by the channel."""

    close_code: int | None
    close_reason: str | None

    async def send(self, message: str | bytes) -> None: ...

    async def close(self, code: int = ..., reason: str = ...) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


async def websocket_connector(url: str) -> Any:
    """Open a websockets client connection.

    The library's own open timeout is disabled; the channel enforces its own
    bound around the whole connect.
    """
    return await connect(url, open_timeout=None)


class TransportChannel:
    """Message-oriented connection to the transcription service.

    Args:
        url: WebSocket endpoint (``ws://`` or ``wss://``).
        connector: Coroutine function that opens the connection. Defaults to
            ``websocket_connector``; tests inject fakes here.
        hook: Observability hook for channel events.
        session_id: Session the channel belongs to (for event correlation).
    """

    def __init__(
        self,
        url: str,
        *,
        connector: Callable[[str], Awaitable[WebSocketLike]] | None = None,
        hook: EventHook | None = None,
        session_id: str = "",
    ) -> None:
        self._url = url
        self._connector = connector or websocket_connector
        self._hook = hook
        self._session_id = session_id

        self._state = ChannelState.IDLE
        self._ws: WebSocketLike | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._close_notified = False

        self._message_handler: Callable[[str], None] | None = None
        self._error_handler: Callable[[BaseException], None] | None = None
        self._close_handler: Callable[[int | None, str], None] | None = None

    @property
    def url(self) -> str:
        """Endpoint URL."""
        return self._url

    @property
    def state(self) -> ChannelState:
        """Current connection state."""
        return self._state

    @property
    def is_open(self) -> bool:
        """True if sends are currently accepted."""
        return self._state is ChannelState.OPEN

    # --- Handler registration ---

    def on_message(self, handler: Callable[[str], None]) -> None:
        """Register the inbound text message handler (once per channel)."""
        if self._message_handler is not None:
            raise RuntimeError("on_message handler already registered")
        self._message_handler = handler

    def on_error(self, handler: Callable[[BaseException], None]) -> None:
        """Register the transport error handler (once per channel)."""
        if self._error_handler is not None:
            raise RuntimeError("on_error handler already registered")
        self._error_handler = handler

    def on_close(self, handler: Callable[[int | None, str], None]) -> None:
        """Register the close handler (once per channel)."""
        if self._close_handler is not None:
            raise RuntimeError("on_close handler already registered")
        self._close_handler = handler

    # --- Lifecycle ---

    async def open(self, timeout_s: float = DEFAULT_OPEN_TIMEOUT_MS / 1000.0) -> None:
        """Connect to the endpoint.

        Args:
            timeout_s: Hard bound on the whole connect. Not retried.

        Raises:
            ConnectionError: On transport failure or if the connection is not
                open within ``timeout_s``.
            RuntimeError: If the channel was already opened once.
        """
        if self._state is not ChannelState.IDLE:
            raise RuntimeError(f"Cannot open channel in state {self._state.value}")

        self._state = ChannelState.CONNECTING
        emit(self._hook, "channel_connecting", self._session_id, url=self._url)

        try:
            ws = await asyncio.wait_for(self._connector(self._url), timeout=timeout_s)
        except TimeoutError:
            self._state = ChannelState.CLOSED
            raise ConnectionError(self._url, f"open timed out after {timeout_s}s") from None
        except (OSError, WebSocketException) as exc:
            self._state = ChannelState.CLOSED
            raise ConnectionError(self._url, str(exc) or type(exc).__name__) from exc

        if self._state is ChannelState.CLOSED:
            # close() was called while the connect was in flight.
            with contextlib.suppress(Exception):
                await ws.close(WS_CLOSE_NORMAL, "closed while connecting")
            raise ConnectionError(self._url, "channel closed while connecting")

        self._ws = ws
        self._state = ChannelState.OPEN
        self._receive_task = asyncio.create_task(self._receive_loop(ws))
        emit(self._hook, "channel_open", self._session_id, url=self._url)

    async def send(self, payload: str | bytes) -> None:
        """Send a text or binary frame.

        Raises:
            NotOpenError: If the channel is not OPEN.
        """
        ws = self._ws
        if self._state is not ChannelState.OPEN or ws is None:
            raise NotOpenError(self._state.value)
        try:
            await ws.send(payload)
        except ConnectionClosed as exc:
            raise NotOpenError(ChannelState.CLOSED.value) from exc

    async def close(self, code: int = WS_CLOSE_NORMAL, reason: str = "") -> None:
        """Close the connection. Safe to call in any state, any number of times."""
        ws = self._ws
        self._ws = None
        previous = self._state
        self._state = ChannelState.CLOSED

        task = self._receive_task
        self._receive_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if ws is not None:
            try:
                await ws.close(code, reason)
            except Exception as exc:
                logger.warning("channel_close_failed", error=str(exc), session_id=self._session_id)

        if previous is not ChannelState.CLOSED:
            emit(self._hook, "channel_closed", self._session_id, code=code, reason=reason)
        self._notify_close(code, reason)

    # --- Internals ---

    async def _receive_loop(self, ws: WebSocketLike) -> None:
        """Deliver inbound text frames to the message handler in arrival order."""
        error: BaseException | None = None
        try:
            async for message in ws:
                if isinstance(message, bytes):
                    logger.debug(
                        "binary_frame_ignored", size=len(message), session_id=self._session_id
                    )
                    continue
                self._invoke("on_message", self._message_handler, message)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # ConnectionClosedOK ends the iteration; anything raised here is abnormal.
            error = exc

        if self._state is ChannelState.CLOSED:
            # Local close already took over.
            return

        self._state = ChannelState.CLOSED
        self._ws = None
        self._receive_task = None

        if error is not None:
            emit(self._hook, "transport_error", self._session_id, error=str(error))
            self._invoke("on_error", self._error_handler, error)

        code = ws.close_code
        reason = ws.close_reason or ""
        emit(self._hook, "channel_closed", self._session_id, code=code, reason=reason, remote=True)
        self._notify_close(code, reason)

    def _notify_close(self, code: int | None, reason: str) -> None:
        if self._close_notified:
            return
        self._close_notified = True
        self._invoke("on_close", self._close_handler, code, reason)

    def _invoke(self, name: str, handler: Callable[..., None] | None, *args: Any) -> None:
        """Run a handler to completion; a failing handler never kills the channel."""
        if handler is None:
            return
        try:
            handler(*args)
        except Exception:
            logger.exception("channel_handler_failed", handler=name, session_id=self._session_id)
