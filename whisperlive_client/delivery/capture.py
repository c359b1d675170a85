"""Live audio capture sources.

A ``CaptureSource`` pushes fixed-size frames to a callback at the device's
cadence. The callback may run on a driver thread (PortAudio does this), so it
must not touch session state; ``LiveStreaming`` hands frames over to the
event loop itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import numpy as np

from whisperlive_client._audio_constants import (
    DEFAULT_CAPTURE_BLOCKSIZE,
    PCM_FLOAT32_DTYPE,
    PCM_INT16_SCALE,
    STT_SAMPLE_RATE,
)
from whisperlive_client.exceptions import CaptureError
from whisperlive_client.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger("delivery.capture")


def frame_to_f32le(frame: np.ndarray) -> bytes:
    """Convert a captured frame to little-endian float32 mono bytes.

    Multi-channel frames keep the first channel. int16 frames are scaled to
    [-1.0, 1.0).
    """
    data = np.asarray(frame)
    if data.ndim > 1:
        data = data[:, 0]
    if data.dtype == np.int16:
        data = data.astype(np.float32) / PCM_INT16_SCALE
    return np.ascontiguousarray(data, dtype=PCM_FLOAT32_DTYPE).tobytes()


class CaptureSource(ABC):
    """Contract for live audio capture pipelines."""

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """Capture sample rate in Hz."""
        pass

    @abstractmethod
    def start(self, on_frame: Callable[[np.ndarray], None]) -> None:
        """Acquire the device and begin pushing frames to ``on_frame``.

        Raises:
            CaptureError: If the device cannot be opened.
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing and release the device. Idempotent."""
        pass


class MicrophoneCapture(CaptureSource):
    """Default input device via ``sounddevice.InputStream``.

    Args:
        sample_rate: Capture rate in Hz (default: 16000, what the service expects).
        blocksize: Samples per frame (default: 4096).
        device: sounddevice device index or name (None = system default).
    """

    def __init__(
        self,
        sample_rate: int = STT_SAMPLE_RATE,
        blocksize: int = DEFAULT_CAPTURE_BLOCKSIZE,
        device: int | str | None = None,
    ) -> None:
        self._sample_rate = sample_rate
        self._blocksize = blocksize
        self._device = device
        self._stream: Any = None

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def is_active(self) -> bool:
        """True while the input stream is open."""
        return self._stream is not None

    def start(self, on_frame: Callable[[np.ndarray], None]) -> None:
        if self._stream is not None:
            raise CaptureError("capture already started")

        try:
            import sounddevice as sd
        except (ImportError, OSError) as exc:
            raise CaptureError(
                "sounddevice is not available. Install with: pip install whisperlive-client[stream]"
            ) from exc

        def callback(indata: np.ndarray, frames: int, time_info: object, status: object) -> None:
            if status:
                logger.debug("capture_status", status=str(status), frames=frames)
            # indata is reused by PortAudio after the callback returns.
            on_frame(indata.copy())

        try:
            stream = sd.InputStream(
                samplerate=self._sample_rate,
                channels=1,
                dtype="float32",
                blocksize=self._blocksize,
                device=self._device,
                callback=callback,
            )
            stream.start()
        except sd.PortAudioError as exc:
            raise CaptureError(str(exc)) from exc

        self._stream = stream
        logger.info(
            "capture_started",
            sample_rate=self._sample_rate,
            blocksize=self._blocksize,
            device=self._device,
        )

    def stop(self) -> None:
        stream = self._stream
        self._stream = None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info("capture_stopped")
