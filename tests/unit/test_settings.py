"""Tests for whisperlive_client.config.settings — pydantic-settings configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from whisperlive_client._types import Task
from whisperlive_client.config.settings import (
    ClientSettings,
    ConnectionSettings,
    DeliverySettings,
    HandshakeSettings,
    UploadSettings,
    get_settings,
)


class TestDefaults:
    """Defaults match the reference client's constants."""

    def test_connection_defaults(self) -> None:
        s = ConnectionSettings()
        assert s.url == "ws://localhost:9090"
        assert s.open_timeout_ms == 5000
        assert s.ready_timeout_ms == 5000
        assert s.result_timeout_ms == 30000

    def test_timeouts_in_seconds(self) -> None:
        s = ConnectionSettings()
        assert s.open_timeout_s == 5.0
        assert s.ready_timeout_s == 5.0
        assert s.result_timeout_s == 30.0

    def test_handshake_defaults(self) -> None:
        s = HandshakeSettings()
        assert s.language is None
        assert s.task is Task.TRANSCRIBE
        assert s.model == "small"
        assert s.use_vad is False

    def test_delivery_defaults(self) -> None:
        s = DeliverySettings()
        assert s.chunk_size_bytes == 16384
        assert s.chunk_delay_ms == 50
        assert s.chunk_delay_s == 0.05
        assert s.sample_rate == 16000
        assert s.capture_blocksize == 4096
        assert s.send_end_of_audio is False

    def test_upload_defaults(self) -> None:
        s = UploadSettings()
        assert s.proxy_url == "http://localhost:3001/api/transcribe"
        assert s.http_timeout_s == 120.0


class TestValidation:
    def test_http_url_rejected(self) -> None:
        with pytest.raises(ValidationError, match="ws://"):
            ConnectionSettings(url="http://localhost:9090")

    def test_wss_url_accepted(self) -> None:
        assert ConnectionSettings(url="wss://asr.example.com").url == "wss://asr.example.com"

    def test_zero_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ConnectionSettings(ready_timeout_ms=0)

    def test_zero_chunk_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DeliverySettings(chunk_size_bytes=0)

    def test_unknown_task_rejected(self) -> None:
        with pytest.raises(ValidationError):
            HandshakeSettings(task="summarize")  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", ["", "auto", "AUTO"])
    def test_auto_language_means_none(self, value: str) -> None:
        assert HandshakeSettings(language=value).language is None


class TestEnvOverrides:
    """Verify env vars override defaults via monkeypatch."""

    def test_url_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WHISPERLIVE_URL", "ws://asr:9090")
        assert ConnectionSettings().url == "ws://asr:9090"

    def test_ready_timeout_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WHISPERLIVE_READY_TIMEOUT_MS", "1500")
        assert ConnectionSettings().ready_timeout_s == 1.5

    def test_handshake_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WHISPERLIVE_LANGUAGE", "pt")
        monkeypatch.setenv("WHISPERLIVE_TASK", "translate")
        monkeypatch.setenv("WHISPERLIVE_USE_VAD", "true")
        s = HandshakeSettings()
        assert s.language == "pt"
        assert s.task is Task.TRANSLATE
        assert s.use_vad is True

    def test_delivery_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WHISPERLIVE_CHUNK_SIZE_BYTES", "8192")
        monkeypatch.setenv("WHISPERLIVE_SEND_END_OF_AUDIO", "1")
        s = DeliverySettings()
        assert s.chunk_size_bytes == 8192
        assert s.send_end_of_audio is True

    def test_invalid_env_value_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WHISPERLIVE_CHUNK_DELAY_MS", "-5")
        with pytest.raises(ValidationError):
            DeliverySettings()


class TestClientSettings:
    def test_aggregates_subsettings(self) -> None:
        s = ClientSettings()
        assert isinstance(s.connection, ConnectionSettings)
        assert isinstance(s.handshake, HandshakeSettings)
        assert isinstance(s.delivery, DeliverySettings)
        assert isinstance(s.upload, UploadSettings)

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_cache_clear_rereads_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        first = get_settings()
        monkeypatch.setenv("WHISPERLIVE_MODEL", "large-v3")
        get_settings.cache_clear()
        second = get_settings()
        assert second is not first
        assert second.handshake.model == "large-v3"
