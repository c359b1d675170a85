"""Tests for the observability hook."""

from __future__ import annotations

from unittest.mock import patch

from whisperlive_client.events import ClientEvent, emit, log_event_hook
from tests.helpers import EventRecorder


class TestEmit:
    def test_builds_event(self) -> None:
        recorder = EventRecorder()
        emit(recorder, "handshake_sent", "sid-1", model="small")
        assert recorder.events == [
            ClientEvent(name="handshake_sent", session_id="sid-1", fields={"model": "small"})
        ]

    def test_none_hook_is_noop(self) -> None:
        emit(None, "anything", "sid")

    def test_failing_hook_does_not_propagate(self) -> None:
        def broken(event: ClientEvent) -> None:
            raise RuntimeError("boom")

        with patch("whisperlive_client.events.logger") as mock_logger:
            emit(broken, "chunk_sent", "sid")
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.args[0] == "event_hook_failed"


class TestLogEventHook:
    def test_warning_events(self) -> None:
        with patch("whisperlive_client.events.logger") as mock_logger:
            log_event_hook(ClientEvent(name="queue_wait", session_id="s", fields={"minutes": 2.0}))
        mock_logger.warning.assert_called_once_with("queue_wait", session_id="s", minutes=2.0)

    def test_debug_events(self) -> None:
        with patch("whisperlive_client.events.logger") as mock_logger:
            log_event_hook(ClientEvent(name="chunk_sent", session_id="s"))
        mock_logger.debug.assert_called_once_with("chunk_sent", session_id="s")

    def test_info_by_default(self) -> None:
        with patch("whisperlive_client.events.logger") as mock_logger:
            log_event_hook(ClientEvent(name="session_ready", session_id="s"))
        mock_logger.info.assert_called_once_with("session_ready", session_id="s")
