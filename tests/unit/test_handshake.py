"""Tests for the session configuration message."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

from whisperlive_client._types import Task
from whisperlive_client.config.settings import HandshakeSettings
from whisperlive_client.protocol.handshake import HandshakeConfig, build_handshake, send_handshake


class TestHandshakeConfig:
    def test_wire_defaults(self) -> None:
        config = HandshakeConfig(uid="abc")
        assert json.loads(config.to_message()) == {
            "uid": "abc",
            "language": None,
            "task": "transcribe",
            "model": "small",
            "use_vad": False,
        }

    def test_translate_task_serialized_by_value(self) -> None:
        config = HandshakeConfig(uid="abc", language="pt", task=Task.TRANSLATE, use_vad=True)
        payload = config.to_dict()
        assert payload["task"] == "translate"
        assert payload["language"] == "pt"
        assert payload["use_vad"] is True


class TestBuildHandshake:
    def test_uses_given_uid(self) -> None:
        config = build_handshake(HandshakeSettings(), uid="session-1")
        assert config.uid == "session-1"

    def test_generates_uid_when_omitted(self) -> None:
        first = build_handshake(HandshakeSettings())
        second = build_handshake(HandshakeSettings())
        assert first.uid and second.uid
        assert first.uid != second.uid

    def test_copies_settings(self) -> None:
        settings = HandshakeSettings(language="de", task=Task.TRANSLATE, model="base", use_vad=True)
        config = build_handshake(settings, uid="x")
        assert config == HandshakeConfig(
            uid="x", language="de", task=Task.TRANSLATE, model="base", use_vad=True
        )


class TestSendHandshake:
    async def test_sends_single_text_frame(self) -> None:
        channel = AsyncMock()
        config = HandshakeConfig(uid="abc")
        await send_handshake(channel, config)
        channel.send.assert_awaited_once_with(config.to_message())
