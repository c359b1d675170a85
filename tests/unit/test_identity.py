"""Tests for session id generation."""

from __future__ import annotations

import uuid

from whisperlive_client.session.identity import new_session_id


class TestNewSessionId:
    def test_is_uuid4(self) -> None:
        parsed = uuid.UUID(new_session_id())
        assert parsed.version == 4

    def test_canonical_text_form(self) -> None:
        sid = new_session_id()
        assert sid == str(uuid.UUID(sid))
        assert len(sid) == 36

    def test_unique_across_calls(self) -> None:
        ids = {new_session_id() for _ in range(1000)}
        assert len(ids) == 1000
