"""Convert audio files to raw float32 little-endian mono PCM.

ffmpeg handles any container or codec it knows (webm, mp3, m4a, ...). When
ffmpeg is not on PATH, formats libsndfile can read (WAV, FLAC, OGG) are
decoded in-process with soundfile and resampled with scipy.
"""

from __future__ import annotations

import io
import os
import shutil
import subprocess
import tempfile
from math import gcd
from pathlib import Path

import numpy as np
import soundfile as sf
from scipy.signal import resample_poly

from whisperlive_client._audio_constants import (
    FFMPEG_RAW_CODEC,
    FFMPEG_RAW_FORMAT,
    PCM_FLOAT32_DTYPE,
    STT_SAMPLE_RATE,
)
from whisperlive_client.exceptions import AudioConversionError
from whisperlive_client.logging import get_logger

logger = get_logger("audio.convert")

_FFMPEG_BINARY = "ffmpeg"
_FFMPEG_PROBE_TIMEOUT_S = 10.0


def check_ffmpeg() -> bool:
    """Return True if ``ffmpeg -version`` runs successfully."""
    if shutil.which(_FFMPEG_BINARY) is None:
        return False
    try:
        result = subprocess.run(
            [_FFMPEG_BINARY, "-version"],
            capture_output=True,
            timeout=_FFMPEG_PROBE_TIMEOUT_S,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0


def ffmpeg_command(
    input_path: str, output_path: str, sample_rate: int = STT_SAMPLE_RATE
) -> list[str]:
    """Build the ffmpeg argv that writes mono f32le at ``sample_rate``."""
    return [
        _FFMPEG_BINARY,
        "-i",
        input_path,
        "-f",
        FFMPEG_RAW_FORMAT,
        "-acodec",
        FFMPEG_RAW_CODEC,
        "-ar",
        str(sample_rate),
        "-ac",
        "1",
        "-y",
        output_path,
    ]


def convert_to_raw_audio(path: str | Path, sample_rate: int = STT_SAMPLE_RATE) -> bytes:
    """Convert an audio file to raw float32 mono PCM bytes.

    Uses ffmpeg when available, otherwise falls back to
    :func:`decode_to_raw_audio`.

    Args:
        path: Input audio file.
        sample_rate: Output sample rate in Hz (default: 16000).

    Returns:
        Little-endian float32 samples, mono, at ``sample_rate``.

    Raises:
        AudioConversionError: If the file is missing or cannot be converted.
    """
    source = Path(path)
    if not source.is_file():
        raise AudioConversionError(str(source), "file not found")

    if not check_ffmpeg():
        logger.warning("ffmpeg_unavailable", path=str(source), fallback="soundfile")
        return decode_to_raw_audio(source, sample_rate)

    fd, output_path = tempfile.mkstemp(suffix=".raw")
    os.close(fd)
    try:
        result = subprocess.run(
            ffmpeg_command(str(source), output_path, sample_rate),
            capture_output=True,
            check=False,
        )
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise AudioConversionError(
                str(source), f"ffmpeg exited with code {result.returncode}: {stderr}"
            )
        raw = Path(output_path).read_bytes()
    except OSError as exc:
        raise AudioConversionError(str(source), str(exc)) from exc
    finally:
        Path(output_path).unlink(missing_ok=True)

    logger.debug(
        "audio_converted",
        path=str(source),
        backend="ffmpeg",
        sample_rate=sample_rate,
        bytes=len(raw),
    )
    return raw


def decode_to_raw_audio(source: bytes | str | Path, sample_rate: int = STT_SAMPLE_RATE) -> bytes:
    """Decode audio with libsndfile and return float32 mono PCM bytes.

    Multi-channel audio is averaged to mono; other sample rates are resampled
    with ``scipy.signal.resample_poly``.

    Args:
        source: Encoded audio bytes or a file path.
        sample_rate: Output sample rate in Hz.

    Raises:
        AudioConversionError: If libsndfile cannot decode the input.
    """
    label = "<bytes>" if isinstance(source, bytes) else str(source)
    if isinstance(source, bytes) and not source:
        raise AudioConversionError(label, "empty audio (0 bytes)")

    try:
        handle = io.BytesIO(source) if isinstance(source, bytes) else str(source)
        data, source_rate = sf.read(handle, dtype="float32")
    except (RuntimeError, ValueError, OSError) as exc:
        raise AudioConversionError(label, str(exc)) from exc

    if data.ndim > 1:
        data = np.mean(data, axis=1)

    if data.size and int(source_rate) != sample_rate:
        divisor = gcd(sample_rate, int(source_rate))
        data = resample_poly(data, sample_rate // divisor, int(source_rate) // divisor)

    raw = np.ascontiguousarray(data, dtype=PCM_FLOAT32_DTYPE).tobytes()
    logger.debug(
        "audio_converted",
        path=label,
        backend="soundfile",
        source_rate=int(source_rate),
        sample_rate=sample_rate,
        bytes=len(raw),
    )
    return raw
