"""Audio delivery strategies: bulk file replay and live capture streaming."""

from __future__ import annotations

from whisperlive_client.delivery.base import AudioDeliveryStrategy, DeliveryContext, DeliveryStats
from whisperlive_client.delivery.bulk import BulkReplay, iter_chunks
from whisperlive_client.delivery.capture import CaptureSource, MicrophoneCapture, frame_to_f32le
from whisperlive_client.delivery.live import LiveStreaming

__all__ = [
    "AudioDeliveryStrategy",
    "BulkReplay",
    "CaptureSource",
    "DeliveryContext",
    "DeliveryStats",
    "LiveStreaming",
    "MicrophoneCapture",
    "frame_to_f32le",
    "iter_chunks",
]
