"""LiveStreaming — sends captured frames as soon as they are produced.

Frames are converted to float32 on the capture thread, then scheduled onto
the event loop with ``call_soon_threadsafe``. Order is preserved and there is
no batching delay. Memory stays bounded: frames arriving while the readiness
gate is closed, or while ``max_pending_frames`` are already waiting, are
dropped rather than queued.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from whisperlive_client._audio_constants import DEFAULT_MAX_PENDING_FRAMES
from whisperlive_client.delivery.base import AudioDeliveryStrategy, DeliveryContext, DeliveryStats
from whisperlive_client.delivery.capture import frame_to_f32le
from whisperlive_client.events import emit
from whisperlive_client.exceptions import NotReadyError

if TYPE_CHECKING:
    import numpy as np

    from whisperlive_client.delivery.capture import CaptureSource

# Report dropped frames on the first drop and then every N drops.
_DROP_REPORT_EVERY = 100


class LiveStreaming(AudioDeliveryStrategy):
    """Stream a live capture source until stopped.

    Args:
        capture: Capture pipeline; started by ``deliver``, released on every exit.
        max_pending_frames: Frames allowed to wait for the channel before new
            ones are dropped.
    """

    def __init__(
        self,
        capture: CaptureSource,
        *,
        max_pending_frames: int = DEFAULT_MAX_PENDING_FRAMES,
    ) -> None:
        if max_pending_frames < 1:
            msg = f"max_pending_frames must be >= 1, got {max_pending_frames}"
            raise ValueError(msg)
        self._capture = capture
        self._max_pending_frames = max_pending_frames
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[bytes | None] | None = None
        self._context: DeliveryContext | None = None
        self._capturing = False
        self._stopped = False
        self._dropped = 0

    @property
    def name(self) -> str:
        return "live_streaming"

    @property
    def completes(self) -> bool:
        return False

    @property
    def frames_dropped(self) -> int:
        """Frames discarded so far (not ready or backlog full)."""
        return self._dropped

    async def deliver(self, context: DeliveryContext) -> DeliveryStats:
        if not context.is_ready():
            raise NotReadyError(context.session_id)

        stats = DeliveryStats()
        if self._stopped:
            return stats

        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._context = context

        self._capture.start(self._on_frame)
        self._capturing = True
        emit(
            context.hook,
            "delivery_started",
            context.session_id,
            strategy=self.name,
            sample_rate=self._capture.sample_rate,
        )

        try:
            while True:
                frame = await self._queue.get()
                if frame is None:
                    break
                await context.send(frame)
                stats.chunks_sent += 1
                stats.bytes_sent += len(frame)
                emit(context.hook, "frame_sent", context.session_id, size=len(frame))
        finally:
            self._release()
            stats.frames_dropped = self._dropped
            emit(
                context.hook,
                "delivery_finished",
                context.session_id,
                strategy=self.name,
                chunks_sent=stats.chunks_sent,
                bytes_sent=stats.bytes_sent,
                frames_dropped=stats.frames_dropped,
            )
        return stats

    async def stop(self) -> None:
        self._stopped = True
        self._release()
        if self._queue is not None:
            self._queue.put_nowait(None)

    def _on_frame(self, frame: np.ndarray) -> None:
        """Capture-thread entry point: convert, then hop onto the loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        data = frame_to_f32le(frame)
        try:
            loop.call_soon_threadsafe(self._enqueue, data)
        except RuntimeError:
            # Loop closed between the check and the call.
            return

    def _enqueue(self, data: bytes) -> None:
        if self._stopped or self._queue is None:
            return
        context = self._context
        if context is None or not context.is_ready():
            self._drop("not_ready")
            return
        if self._queue.qsize() >= self._max_pending_frames:
            self._drop("backlog_full")
            return
        self._queue.put_nowait(data)

    def _drop(self, reason: str) -> None:
        self._dropped += 1
        if self._dropped == 1 or self._dropped % _DROP_REPORT_EVERY == 0:
            context = self._context
            emit(
                context.hook if context else None,
                "frames_dropped",
                context.session_id if context else "",
                reason=reason,
                total_dropped=self._dropped,
            )

    def _release(self) -> None:
        if self._capturing:
            self._capturing = False
            self._capture.stop()
