"""Centralized configuration via pydantic-settings.

All ``WHISPERLIVE_*`` environment variables are read, validated, and exposed
here. Logging env vars (``WHISPERLIVE_LOG_FORMAT``, ``WHISPERLIVE_LOG_LEVEL``)
are intentionally excluded — they stay in ``whisperlive_client.logging`` for
bootstrap-safety.

Usage::

    from whisperlive_client.config.settings import get_settings

    settings = get_settings()
    print(settings.connection.url)          # str
    print(settings.connection.ready_timeout_s)  # float, derived from ms

``.env`` files in the working directory are loaded automatically.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from whisperlive_client._audio_constants import (
    DEFAULT_CAPTURE_BLOCKSIZE,
    DEFAULT_CHUNK_DELAY_MS,
    DEFAULT_CHUNK_SIZE_BYTES,
    DEFAULT_MAX_PENDING_FRAMES,
    DEFAULT_OPEN_TIMEOUT_MS,
    DEFAULT_READY_TIMEOUT_MS,
    DEFAULT_RESULT_TIMEOUT_MS,
    STT_SAMPLE_RATE,
)
from whisperlive_client._types import Task


class ConnectionSettings(BaseSettings):
    """WebSocket endpoint and lifecycle wait bounds."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    url: str = Field(default="ws://localhost:9090", validation_alias="WHISPERLIVE_URL")
    open_timeout_ms: float = Field(
        default=DEFAULT_OPEN_TIMEOUT_MS,
        gt=0,
        le=600_000,
        validation_alias="WHISPERLIVE_OPEN_TIMEOUT_MS",
    )
    ready_timeout_ms: float = Field(
        default=DEFAULT_READY_TIMEOUT_MS,
        gt=0,
        le=600_000,
        validation_alias="WHISPERLIVE_READY_TIMEOUT_MS",
    )
    result_timeout_ms: float = Field(
        default=DEFAULT_RESULT_TIMEOUT_MS,
        gt=0,
        le=3_600_000,
        validation_alias="WHISPERLIVE_RESULT_TIMEOUT_MS",
    )

    @field_validator("url")
    @classmethod
    def _websocket_scheme(cls, value: str) -> str:
        if not value.startswith(("ws://", "wss://")):
            msg = f"url must start with ws:// or wss://, got {value!r}"
            raise ValueError(msg)
        return value

    @property
    def open_timeout_s(self) -> float:
        """Channel open timeout in seconds."""
        return self.open_timeout_ms / 1000.0

    @property
    def ready_timeout_s(self) -> float:
        """Readiness wait in seconds."""
        return self.ready_timeout_ms / 1000.0

    @property
    def result_timeout_s(self) -> float:
        """Transcript wait in seconds."""
        return self.result_timeout_ms / 1000.0


class HandshakeSettings(BaseSettings):
    """Values sent in the session configuration message."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    language: str | None = Field(default=None, validation_alias="WHISPERLIVE_LANGUAGE")
    task: Task = Field(default=Task.TRANSCRIBE, validation_alias="WHISPERLIVE_TASK")
    model: str = Field(default="small", min_length=1, validation_alias="WHISPERLIVE_MODEL")
    use_vad: bool = Field(default=False, validation_alias="WHISPERLIVE_USE_VAD")

    @field_validator("language", mode="before")
    @classmethod
    def _auto_detect_marker(cls, value: object) -> object:
        # Empty string or "auto" in the environment means auto-detect.
        if isinstance(value, str) and value.strip().lower() in ("", "auto"):
            return None
        return value


class DeliverySettings(BaseSettings):
    """Bulk replay pacing and live capture tuning."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    chunk_size_bytes: int = Field(
        default=DEFAULT_CHUNK_SIZE_BYTES,
        ge=1,
        le=16 * 1024 * 1024,
        validation_alias="WHISPERLIVE_CHUNK_SIZE_BYTES",
    )
    chunk_delay_ms: float = Field(
        default=DEFAULT_CHUNK_DELAY_MS,
        ge=0,
        le=10_000,
        validation_alias="WHISPERLIVE_CHUNK_DELAY_MS",
    )
    sample_rate: int = Field(
        default=STT_SAMPLE_RATE,
        ge=8000,
        le=192_000,
        validation_alias="WHISPERLIVE_SAMPLE_RATE",
    )
    capture_blocksize: int = Field(
        default=DEFAULT_CAPTURE_BLOCKSIZE,
        ge=64,
        le=65536,
        validation_alias="WHISPERLIVE_CAPTURE_BLOCKSIZE",
    )
    max_pending_frames: int = Field(
        default=DEFAULT_MAX_PENDING_FRAMES,
        ge=1,
        le=10_000,
        validation_alias="WHISPERLIVE_MAX_PENDING_FRAMES",
    )
    send_end_of_audio: bool = Field(
        default=False,
        validation_alias="WHISPERLIVE_SEND_END_OF_AUDIO",
    )

    @property
    def chunk_delay_s(self) -> float:
        """Inter-chunk pacing delay in seconds."""
        return self.chunk_delay_ms / 1000.0


class UploadSettings(BaseSettings):
    """HTTP upload-proxy client settings."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    proxy_url: str = Field(
        default="http://localhost:3001/api/transcribe",
        validation_alias="WHISPERLIVE_PROXY_URL",
    )
    http_timeout_s: float = Field(
        default=120.0, gt=0, le=3600, validation_alias="WHISPERLIVE_HTTP_TIMEOUT_S"
    )


class ClientSettings(BaseSettings):
    """Root settings — aggregates all subsystem settings.

    Loads ``.env`` from the current directory when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    handshake: HandshakeSettings = Field(default_factory=HandshakeSettings)
    delivery: DeliverySettings = Field(default_factory=DeliverySettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)


@lru_cache(maxsize=1)
def get_settings() -> ClientSettings:
    """Return the singleton ``ClientSettings`` instance.

    The result is cached — subsequent calls return the same object.
    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    return ClientSettings()
