"""Centralized audio and wire-format constants for the WhisperLive client.

Single source of truth for the PCM format the service ingests, chunking and
pacing defaults, and the timeouts shared by settings, delivery strategies,
the lifecycle manager, and the CLI.
"""

from __future__ import annotations

# --- PCM float32 format ---
# WhisperLive ingests raw little-endian 32-bit float mono samples.
PCM_FLOAT32_DTYPE: str = "<f4"

# Bytes per sample for float32 PCM.
BYTES_PER_SAMPLE_FLOAT32: int = 4

# Scale factor for int16 -> float32 conversion of captured frames.
# int16 / 32768.0 maps to [-1.0, ~0.99997].
PCM_INT16_SCALE: float = 32768.0

# ffmpeg sample format / codec names matching PCM_FLOAT32_DTYPE.
FFMPEG_RAW_FORMAT: str = "f32le"
FFMPEG_RAW_CODEC: str = "pcm_f32le"

# --- Standard sample rate ---
# WhisperLive (and Whisper itself) expects 16kHz mono.
STT_SAMPLE_RATE: int = 16000

# --- Bulk replay ---
# 16KB chunks with a 50ms gap keep the server's ingestion buffer from saturating.
DEFAULT_CHUNK_SIZE_BYTES: int = 16384
DEFAULT_CHUNK_DELAY_MS: float = 50.0

# Marker WhisperLive servers accept after the last audio frame.
END_OF_AUDIO_MARKER: bytes = b"END_OF_AUDIO"

# --- Live capture ---
# Samples per captured frame (4096 samples at 16kHz = 256ms).
DEFAULT_CAPTURE_BLOCKSIZE: int = 4096

# Frames waiting to be sent before new frames are dropped.
DEFAULT_MAX_PENDING_FRAMES: int = 64

# --- Bounded waits (milliseconds) ---
DEFAULT_OPEN_TIMEOUT_MS: float = 5000.0
DEFAULT_READY_TIMEOUT_MS: float = 5000.0
DEFAULT_RESULT_TIMEOUT_MS: float = 30000.0

# --- Close codes ---
# RFC 6455 normal closure.
WS_CLOSE_NORMAL: int = 1000
