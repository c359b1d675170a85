"""BulkReplay — sends a complete pre-converted audio buffer in paced chunks.

The buffer must already be in the service's raw sample format (see
``whisperlive_client.audio.convert``). Chunks go out strictly in order, one at
a time, with a fixed delay between them so neither the channel nor the
server's ingestion buffer saturates.
"""

from __future__ import annotations

import asyncio
import math
from typing import TYPE_CHECKING

from whisperlive_client._audio_constants import (
    DEFAULT_CHUNK_DELAY_MS,
    DEFAULT_CHUNK_SIZE_BYTES,
    END_OF_AUDIO_MARKER,
)
from whisperlive_client._types import AudioChunk
from whisperlive_client.delivery.base import AudioDeliveryStrategy, DeliveryContext, DeliveryStats
from whisperlive_client.events import emit
from whisperlive_client.exceptions import NotReadyError

if TYPE_CHECKING:
    from collections.abc import Iterator


def iter_chunks(audio: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES) -> Iterator[AudioChunk]:
    """Split ``audio`` into ``ceil(len(audio) / chunk_size)`` ordered chunks.

    The last chunk may be shorter. An empty buffer yields nothing.

    Raises:
        ValueError: If ``chunk_size`` is not positive.
    """
    if chunk_size <= 0:
        msg = f"chunk_size must be > 0, got {chunk_size}"
        raise ValueError(msg)
    view = memoryview(audio)
    for index, offset in enumerate(range(0, len(audio), chunk_size)):
        yield AudioChunk(data=bytes(view[offset : offset + chunk_size]), sequence_index=index)


class BulkReplay(AudioDeliveryStrategy):
    """Replay an in-memory buffer over the channel.

    Args:
        audio: Raw audio in the service's sample format.
        chunk_size: Bytes per chunk (default 16384).
        chunk_delay_s: Pause between consecutive chunks (default 50ms).
        end_of_audio: Send the END_OF_AUDIO marker after the last chunk.
    """

    def __init__(
        self,
        audio: bytes,
        chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES,
        chunk_delay_s: float = DEFAULT_CHUNK_DELAY_MS / 1000.0,
        *,
        end_of_audio: bool = False,
    ) -> None:
        if chunk_size <= 0:
            msg = f"chunk_size must be > 0, got {chunk_size}"
            raise ValueError(msg)
        if chunk_delay_s < 0:
            msg = f"chunk_delay_s must be >= 0, got {chunk_delay_s}"
            raise ValueError(msg)
        self._audio = audio
        self._chunk_size = chunk_size
        self._chunk_delay_s = chunk_delay_s
        self._end_of_audio = end_of_audio
        self._stopped = False

    @property
    def name(self) -> str:
        return "bulk_replay"

    @property
    def completes(self) -> bool:
        return True

    @property
    def chunk_count(self) -> int:
        """Number of chunks the buffer splits into."""
        return math.ceil(len(self._audio) / self._chunk_size)

    async def deliver(self, context: DeliveryContext) -> DeliveryStats:
        if not context.is_ready():
            raise NotReadyError(context.session_id)

        stats = DeliveryStats()
        emit(
            context.hook,
            "delivery_started",
            context.session_id,
            strategy=self.name,
            total_bytes=len(self._audio),
            chunk_count=self.chunk_count,
        )

        for chunk in iter_chunks(self._audio, self._chunk_size):
            if self._stopped:
                break
            if chunk.sequence_index > 0 and self._chunk_delay_s > 0:
                await asyncio.sleep(self._chunk_delay_s)
                if self._stopped:
                    break
            await context.send(chunk.data)
            stats.chunks_sent += 1
            stats.bytes_sent += len(chunk.data)
            emit(
                context.hook,
                "chunk_sent",
                context.session_id,
                sequence_index=chunk.sequence_index,
                size=len(chunk.data),
            )

        if self._end_of_audio and not self._stopped:
            await context.send(END_OF_AUDIO_MARKER)

        emit(
            context.hook,
            "delivery_finished",
            context.session_id,
            strategy=self.name,
            chunks_sent=stats.chunks_sent,
            bytes_sent=stats.bytes_sent,
            stopped=self._stopped,
        )
        return stats

    async def stop(self) -> None:
        self._stopped = True
