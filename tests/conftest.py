"""Shared fixtures for all tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure repo root is on sys.path so tests can import the `whisperlive_client`
# package when running pytest from the repository root without an editable install.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import numpy as np  # noqa: E402
import pytest  # noqa: E402

from whisperlive_client.config.settings import (  # noqa: E402
    ClientSettings,
    ConnectionSettings,
    DeliverySettings,
    get_settings,
)
from tests.helpers import FakeWebSocket  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Every test sees settings built from its own environment."""
    get_settings.cache_clear()


@pytest.fixture
def fast_settings() -> ClientSettings:
    """Settings with short waits and no pacing delay, for lifecycle tests."""
    return ClientSettings(
        connection=ConnectionSettings(
            url="ws://whisperlive.test:9090",
            open_timeout_ms=500,
            ready_timeout_ms=200,
            result_timeout_ms=500,
        ),
        delivery=DeliverySettings(chunk_size_bytes=16384, chunk_delay_ms=0),
    )


@pytest.fixture
def fake_ws() -> FakeWebSocket:
    return FakeWebSocket()



@pytest.fixture
def sample_f32le_audio() -> bytes:
    """1 second of float32 mono 16kHz audio (440Hz sine tone), 64000 bytes."""
    sample_rate = 16000
    t = np.arange(sample_rate, dtype=np.float32) / sample_rate
    tone = 0.5 * np.sin(2 * np.pi * 440.0 * t)
    return tone.astype("<f4").tobytes()
