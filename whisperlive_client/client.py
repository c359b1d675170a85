"""TranscriptionClient — lifecycle manager for one WhisperLive session at a time.

Drives a session through its states::

    IDLE -> CONNECTING -> AWAITING_READY -> DELIVERING -> AWAITING_RESULT -> CLOSED

and owns its transport channel, transcript accumulator and delivery strategy.
The same manager serves both delivery modes: ``transcribe_file`` replays a
complete buffer (``BulkReplay``) and returns the first transcript;
``start_streaming`` feeds a live capture source (``LiveStreaming``) until
``stop_streaming``.

Waits (readiness, result) are event-driven and always race against the
session's ``closed`` event, so a forced disconnect, a remote close or a
transport error ends them immediately instead of running out the timer.

Teardown is synchronous where it matters: marking the session CLOSED,
resetting readiness and releasing the waiters happen inside the message
handler that observed the cause. The slower part (stopping the strategy,
closing the socket) runs as a single close task that ``disconnect`` awaits.
"""

from __future__ import annotations

import asyncio
import functools
from pathlib import Path
from typing import TYPE_CHECKING

from whisperlive_client._types import (
    ChannelState,
    CloseReason,
    ReadinessState,
    Session,
    SessionState,
)
from whisperlive_client.audio.convert import convert_to_raw_audio
from whisperlive_client.config.settings import get_settings
from whisperlive_client.delivery.base import DeliveryContext, DeliveryStats
from whisperlive_client.delivery.bulk import BulkReplay
from whisperlive_client.delivery.capture import MicrophoneCapture
from whisperlive_client.delivery.live import LiveStreaming
from whisperlive_client.events import emit, log_event_hook
from whisperlive_client.exceptions import (
    AudioError,
    ConnectionError,
    ForcedDisconnect,
    InvalidTransitionError,
    NotOpenError,
    ReadyTimeoutError,
    ResultTimeoutError,
    SessionClosedError,
    WhisperLiveError,
)
from whisperlive_client.logging import get_logger
from whisperlive_client.protocol.handshake import build_handshake, send_handshake
from whisperlive_client.protocol.replies import (
    ForceDisconnect,
    Foreign,
    LanguageDetected,
    QueueWait,
    Readiness,
    Segments,
    ServiceNotice,
    interpret,
)
from whisperlive_client.session.accumulator import TranscriptionAccumulator
from whisperlive_client.session.identity import new_session_id
from whisperlive_client.session.state_machine import SessionStateMachine
from whisperlive_client.transport.channel import TransportChannel

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from whisperlive_client.config.settings import ClientSettings
    from whisperlive_client.delivery.base import AudioDeliveryStrategy
    from whisperlive_client.delivery.capture import CaptureSource
    from whisperlive_client.events import EventHook
    from whisperlive_client.protocol.replies import InboundMessage
    from whisperlive_client.transport.channel import WebSocketLike

logger = get_logger("client")

_ACCEPTS_NEW_DELIVERY = frozenset({SessionState.IDLE, SessionState.CLOSED})


class TranscriptionClient:
    """Streaming client for a WhisperLive transcription server.

    Args:
        settings: Client settings (default: ``get_settings()``).
        url: WebSocket endpoint; overrides ``settings.connection.url``.
        connector: Coroutine function opening the WebSocket (tests inject fakes).
        hook: Observability hook; defaults to structlog, None disables events.
        on_transcript: Called with every new transcript snapshot.

    Usage::

        async with TranscriptionClient(url="ws://localhost:9090") as client:
            text = await client.transcribe_file(raw_f32le_audio)
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        url: str | None = None,
        connector: Callable[[str], Awaitable[WebSocketLike]] | None = None,
        hook: EventHook | None = log_event_hook,
        on_transcript: Callable[[str], None] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._url = url or self._settings.connection.url
        self._connector = connector
        self._hook = hook
        self._on_transcript = on_transcript

        self._accumulator = TranscriptionAccumulator()
        self._machine = SessionStateMachine()
        self._session: Session | None = None
        self._channel: TransportChannel | None = None
        self._strategy: AudioDeliveryStrategy | None = None
        self._delivery_task: asyncio.Task[DeliveryStats] | None = None
        self._close_task: asyncio.Task[None] | None = None
        self._close_reason: CloseReason | None = None
        self._close_error: WhisperLiveError | None = None

        self._ready_event = asyncio.Event()
        self._result_event = asyncio.Event()
        self._closed_event = asyncio.Event()

    # --- Inspection ---

    @property
    def url(self) -> str:
        """WebSocket endpoint."""
        return self._url

    @property
    def session(self) -> Session | None:
        """Current (or last) session, None before the first connect."""
        return self._session

    @property
    def state(self) -> SessionState:
        """Lifecycle state of the current session."""
        return self._machine.state

    @property
    def close_reason(self) -> CloseReason | None:
        """Why the current session closed, None while it is still active."""
        return self._close_reason

    @property
    def is_connected(self) -> bool:
        """True while the session is active and its channel is open."""
        return (
            self._channel is not None and self._channel.is_open and not self._machine.is_closed
        )

    def current_transcript(self) -> str:
        """Latest transcript snapshot. Still readable after teardown."""
        return self._accumulator.current()

    # --- Lifecycle ---

    async def connect(self) -> str:
        """Open a new session: connect the channel and send the handshake.

        Any previous session is torn down first.

        Returns:
            The new session id.

        Raises:
            ConnectionError: If the channel does not open within the open timeout.
            SessionClosedError: If the channel closes before the handshake is sent.
        """
        if self._session is not None:
            await self.disconnect()

        session_id = new_session_id()
        session = Session(session_id=session_id, endpoint_url=self._url)
        self._session = session
        self._machine = SessionStateMachine()
        self._accumulator.reset()
        self._strategy = None
        self._delivery_task = None
        self._close_task = None
        self._close_reason = None
        self._close_error = None
        self._ready_event = asyncio.Event()
        self._result_event = asyncio.Event()
        self._closed_event = asyncio.Event()

        channel = TransportChannel(
            self._url,
            connector=self._connector,
            hook=self._hook,
            session_id=session_id,
        )
        channel.on_message(functools.partial(self._handle_message, channel))
        channel.on_error(functools.partial(self._handle_error, channel))
        channel.on_close(functools.partial(self._handle_close, channel))
        self._channel = channel

        self._machine.transition(SessionState.CONNECTING)
        session.connection_state = ChannelState.CONNECTING
        emit(self._hook, "session_connecting", session_id, url=self._url)

        try:
            await channel.open(self._settings.connection.open_timeout_s)
        except ConnectionError as exc:
            self._teardown(CloseReason.TRANSPORT_ERROR, SessionClosedError(session_id, str(exc)))
            await self._await_close()
            raise

        session.connection_state = channel.state
        config = build_handshake(self._settings.handshake, uid=session_id)
        try:
            await send_handshake(channel, config)
        except NotOpenError as exc:
            self._teardown(
                CloseReason.TRANSPORT_CLOSED,
                SessionClosedError(session_id, "channel closed before handshake"),
            )
            await self._await_close()
            raise self._closed_exception() from exc

        emit(
            self._hook,
            "handshake_sent",
            session_id,
            language=config.language,
            task=config.task.value,
            model=config.model,
            use_vad=config.use_vad,
        )
        if self._machine.is_closed:
            await self._await_close()
            raise self._closed_exception()
        self._machine.transition(SessionState.AWAITING_READY)
        return session_id

    async def transcribe_file(self, audio: bytes) -> str:
        """Replay a complete raw audio buffer and return its transcript.

        ``audio`` must already be float32 little-endian mono at the service's
        sample rate (see ``whisperlive_client.audio.convert_to_raw_audio``).
        Connects if no session is waiting for readiness. The session is always
        torn down before returning.

        Returns:
            The first non-empty transcript, stripped.

        Raises:
            ConnectionError: If the channel cannot be opened.
            ReadyTimeoutError: If readiness is not signalled in time.
            ResultTimeoutError: If no transcript arrives in time.
            ForcedDisconnect: If the service terminated the session.
            SessionClosedError: If the transport closed or failed mid-session.
        """
        delivery = self._settings.delivery
        strategy = BulkReplay(
            audio,
            chunk_size=delivery.chunk_size_bytes,
            chunk_delay_s=delivery.chunk_delay_s,
            end_of_audio=delivery.send_end_of_audio,
        )

        return await self._transcribe(strategy)

    async def _transcribe(self, strategy: AudioDeliveryStrategy) -> str:
        """Run a completing strategy, then wait for the first transcript."""
        if not strategy.completes:
            msg = f"{strategy.name} runs until stopped; use start_streaming()"
            raise ValueError(msg)

        await self._ensure_session()
        try:
            await self._await_ready()
            stats = await self._run_delivery(strategy)
            # A close racing the last chunk leaves the session CLOSED here.
            # _await_result then returns a transcript that already arrived,
            # or raises the close error.
            if not self._machine.is_closed:
                self._machine.transition(SessionState.AWAITING_RESULT)
            await self._await_result()
            text = self._accumulator.current().strip()
            emit(
                self._hook,
                "transcription_completed",
                self._session_id,
                chunks_sent=stats.chunks_sent,
                bytes_sent=stats.bytes_sent,
                chars=len(text),
            )
            self._teardown(CloseReason.COMPLETED)
            return text
        finally:
            await self.disconnect()

    async def start_streaming(self, capture: CaptureSource | None = None) -> None:
        """Start streaming a live capture source into a ready session.

        Returns once the capture is running; frames keep flowing in the
        background until ``stop_streaming`` or the session closes.

        Args:
            capture: Capture source (default: the system microphone).

        Raises:
            ReadyTimeoutError: If readiness is not signalled in time.
            CaptureError: If the capture device cannot be opened.
        """
        delivery = self._settings.delivery
        source = capture or MicrophoneCapture(
            sample_rate=delivery.sample_rate,
            blocksize=delivery.capture_blocksize,
        )

        await self._ensure_session()
        await self._await_ready()

        strategy = LiveStreaming(source, max_pending_frames=delivery.max_pending_frames)
        self._strategy = strategy
        task = asyncio.create_task(strategy.deliver(self._delivery_context()))
        task.add_done_callback(self._on_streaming_done)
        self._delivery_task = task

        # Let the strategy acquire the capture device so failures surface here.
        await asyncio.sleep(0)
        if task.done() and not task.cancelled():
            error = task.exception()
            if error is not None:
                self._teardown(
                    CloseReason.ERROR, error if isinstance(error, WhisperLiveError) else None
                )
                await self._await_close()
                raise error

    async def stop_streaming(self) -> DeliveryStats | None:
        """Stop live capture and tear the session down. Safe in any state.

        Returns:
            Delivery statistics, or None if nothing was streaming.

        Raises:
            AudioError: If the capture source failed while streaming.
        """
        strategy = self._strategy
        task = self._delivery_task
        stats: DeliveryStats | None = None
        error: BaseException | None = None

        if strategy is not None:
            await strategy.stop()
        if task is not None:
            await asyncio.wait({task})
            if not task.cancelled():
                error = task.exception()
                if error is None:
                    stats = task.result()

        self._teardown(CloseReason.STOPPED)
        await self.disconnect()

        if isinstance(error, AudioError):
            raise error
        return stats

    async def disconnect(self) -> None:
        """Tear down the current session. Idempotent."""
        if self._session is None:
            return
        self._teardown(CloseReason.STOPPED)
        await self._await_close()

    async def wait_closed(self) -> CloseReason | None:
        """Block until the current session closes, for any reason."""
        if self._session is not None:
            await self._closed_event.wait()
        return self._close_reason

    async def __aenter__(self) -> TranscriptionClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    # --- Waiting ---

    @property
    def _session_id(self) -> str:
        return self._session.session_id if self._session is not None else ""

    async def _ensure_session(self) -> None:
        state = self._machine.state
        if state in _ACCEPTS_NEW_DELIVERY:
            await self.connect()
        elif state is not SessionState.AWAITING_READY:
            raise InvalidTransitionError(state.value, SessionState.DELIVERING.value)

    async def _wait_for(self, event: asyncio.Event, timeout_s: float) -> bool:
        """Wait for ``event`` or session close, whichever comes first.

        Returns:
            True if ``event`` was set, False on timeout.

        Raises:
            ForcedDisconnect, SessionClosedError: If the session closed first.
        """
        if event.is_set():
            return True
        if self._closed_event.is_set():
            raise self._closed_exception()

        waiter = asyncio.create_task(event.wait())
        closed = asyncio.create_task(self._closed_event.wait())
        try:
            await asyncio.wait(
                {waiter, closed}, timeout=timeout_s, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            waiter.cancel()
            closed.cancel()

        if event.is_set():
            return True
        if self._closed_event.is_set():
            raise self._closed_exception()
        return False

    async def _await_ready(self) -> None:
        timeout_s = self._settings.connection.ready_timeout_s
        if not await self._wait_for(self._ready_event, timeout_s):
            error = ReadyTimeoutError(self._session_id, timeout_s)
            self._teardown(CloseReason.READY_TIMEOUT, error)
            await self._await_close()
            raise error
        self._machine.transition(SessionState.DELIVERING)

    async def _await_result(self) -> None:
        timeout_s = self._settings.connection.result_timeout_s
        if not await self._wait_for(self._result_event, timeout_s):
            error = ResultTimeoutError(self._session_id, timeout_s)
            self._teardown(CloseReason.RESULT_TIMEOUT, error)
            await self._await_close()
            raise error

    async def _run_delivery(self, strategy: AudioDeliveryStrategy) -> DeliveryStats:
        """Run ``strategy`` to completion unless the session closes first."""
        self._strategy = strategy
        task = asyncio.create_task(strategy.deliver(self._delivery_context()))
        self._delivery_task = task
        closed = asyncio.create_task(self._closed_event.wait())
        try:
            await asyncio.wait({task, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closed.cancel()

        if not task.done():
            raise self._closed_exception()
        if self._machine.is_closed and (task.cancelled() or task.exception() is not None):
            raise self._closed_exception()
        return task.result()

    async def _await_close(self) -> None:
        task = self._close_task
        if task is not None and task is not asyncio.current_task():
            await task

    # --- Delivery plumbing ---

    def _delivery_context(self) -> DeliveryContext:
        return DeliveryContext(
            session_id=self._session_id,
            send=self._send_audio,
            is_ready=self._is_ready,
            hook=self._hook,
        )

    def _is_ready(self) -> bool:
        session = self._session
        return session is not None and session.is_ready and not self._machine.is_closed

    async def _send_audio(self, payload: bytes) -> None:
        channel = self._channel
        if channel is None or self._machine.is_closed:
            raise NotOpenError(ChannelState.CLOSED.value)
        await channel.send(payload)

    def _on_streaming_done(self, task: asyncio.Task[DeliveryStats]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is None or self._machine.is_closed:
            return
        logger.error("streaming_failed", session_id=self._session_id, error=str(error))
        reason = error if isinstance(error, WhisperLiveError) else None
        self._teardown(CloseReason.ERROR, reason)

    # --- Inbound ---

    def _handle_message(self, channel: TransportChannel, raw: str) -> None:
        session = self._session
        if channel is not self._channel or session is None or self._machine.is_closed:
            return
        emit(self._hook, "message_received", session.session_id, size=len(raw))
        for message in interpret(raw, session.session_id, ready=session.is_ready, hook=self._hook):
            if self._machine.is_closed:
                break
            self._apply(session, message)

    def _apply(self, session: Session, message: InboundMessage) -> None:
        """Apply one interpreted message to the session."""
        if isinstance(message, Readiness):
            session.readiness = ReadinessState.READY
            self._ready_event.set()
            emit(self._hook, "session_ready", session.session_id)

        elif isinstance(message, Segments):
            if not session.is_ready:
                return
            self._accumulator.update(message.transcript)
            self._result_event.set()
            emit(
                self._hook,
                "transcript_updated",
                session.session_id,
                segments=len(message.texts),
                chars=len(message.transcript),
            )
            if self._on_transcript is not None:
                try:
                    self._on_transcript(message.transcript)
                except Exception:
                    logger.exception("on_transcript_failed", session_id=session.session_id)

        elif isinstance(message, LanguageDetected):
            session.detected_language = message.language
            session.language_probability = message.probability
            emit(
                self._hook,
                "language_detected",
                session.session_id,
                language=message.language,
                probability=message.probability,
            )

        elif isinstance(message, QueueWait):
            emit(self._hook, "queue_wait", session.session_id, minutes=message.minutes)

        elif isinstance(message, ServiceNotice):
            emit(
                self._hook,
                "service_notice",
                session.session_id,
                status=message.status,
                message=message.message,
            )

        elif isinstance(message, ForceDisconnect):
            emit(self._hook, "forced_disconnect", session.session_id)
            self._teardown(CloseReason.FORCED_DISCONNECT, ForcedDisconnect(session.session_id))

        elif isinstance(message, Foreign):
            emit(self._hook, "foreign_message", session.session_id, reason=message.reason)

    def _handle_error(self, channel: TransportChannel, error: BaseException) -> None:
        if channel is not self._channel:
            return
        self._teardown(
            CloseReason.TRANSPORT_ERROR,
            SessionClosedError(self._session_id, f"transport error: {error}"),
        )

    def _handle_close(self, channel: TransportChannel, code: int | None, reason: str) -> None:
        if channel is not self._channel:
            return
        detail = f"transport closed (code={code}"
        detail += f", reason={reason})" if reason else ")"
        self._teardown(CloseReason.TRANSPORT_CLOSED, SessionClosedError(self._session_id, detail))

    # --- Teardown ---

    def _teardown(self, reason: CloseReason, error: WhisperLiveError | None = None) -> bool:
        """Close the session synchronously and schedule the resource cleanup.

        Returns:
            True if this call closed the session, False if it was already closed.
        """
        if not self._machine.close():
            return False

        self._close_reason = reason
        self._close_error = error
        if self._session is not None:
            self._session.readiness = ReadinessState.NOT_READY
        self._closed_event.set()
        self._close_task = asyncio.get_running_loop().create_task(self._release(reason))
        emit(
            self._hook,
            "session_closed",
            self._session_id,
            reason=reason.value,
            states=[state.value for state in self._machine.history],
        )
        return True

    async def _release(self, reason: CloseReason) -> None:
        """Stop the strategy, then close the channel with a normal closure."""
        strategy = self._strategy
        task = self._delivery_task
        channel = self._channel
        try:
            if strategy is not None:
                await strategy.stop()
            if task is not None and not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
        finally:
            if channel is not None:
                await channel.close(reason=reason.value)
                if self._session is not None and channel is self._channel:
                    self._session.connection_state = channel.state

    def _closed_exception(self) -> WhisperLiveError:
        if self._close_error is not None:
            return self._close_error
        reason = self._close_reason.value if self._close_reason else "closed"
        return SessionClosedError(self._session_id, reason)


async def transcribe_with_whisperlive(
    audio: bytes | str | Path,
    url: str | None = None,
    *,
    settings: ClientSettings | None = None,
) -> str:
    """Transcribe one recording over a fresh session.

    Args:
        audio: Raw float32 mono bytes, or a path to any audio file (converted
            with ffmpeg first).
        url: WebSocket endpoint (default: ``WHISPERLIVE_URL``).
        settings: Client settings (default: ``get_settings()``).
    """
    resolved = settings or get_settings()
    client = TranscriptionClient(resolved, url=url)
    if isinstance(audio, (str, Path)):
        sample_rate = resolved.delivery.sample_rate
        audio = await asyncio.to_thread(convert_to_raw_audio, Path(audio), sample_rate)
    async with client:
        return await client.transcribe_file(audio)
