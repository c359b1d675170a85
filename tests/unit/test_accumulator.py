"""Tests for TranscriptionAccumulator."""

from __future__ import annotations

from whisperlive_client.session.accumulator import TranscriptionAccumulator


class _FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestTranscriptionAccumulator:
    def test_starts_empty(self) -> None:
        acc = TranscriptionAccumulator()
        assert acc.current() == ""
        assert acc.text == ""
        assert acc.last_updated is None

    def test_update_replaces_not_appends(self) -> None:
        acc = TranscriptionAccumulator()
        acc.update("a b")
        acc.update("c")
        assert acc.current() == "c"

    def test_update_records_timestamp(self) -> None:
        clock = _FakeClock()
        acc = TranscriptionAccumulator(clock=clock)
        acc.update("hello")
        assert acc.last_updated == 100.0
        clock.now = 105.5
        acc.update("hello world")
        assert acc.last_updated == 105.5

    def test_reset_clears_text_and_timestamp(self) -> None:
        acc = TranscriptionAccumulator()
        acc.update("hello")
        acc.reset()
        assert acc.current() == ""
        assert acc.last_updated is None
