"""Audio conversion to the raw float32 PCM format the service ingests."""

from __future__ import annotations

from whisperlive_client.audio.convert import (
    check_ffmpeg,
    convert_to_raw_audio,
    decode_to_raw_audio,
    ffmpeg_command,
)

__all__ = [
    "check_ffmpeg",
    "convert_to_raw_audio",
    "decode_to_raw_audio",
    "ffmpeg_command",
]
