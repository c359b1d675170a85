"""Session identity, state machine and transcript accumulation."""

from __future__ import annotations

from whisperlive_client.session.accumulator import TranscriptionAccumulator
from whisperlive_client.session.identity import new_session_id
from whisperlive_client.session.state_machine import SessionStateMachine

__all__ = ["SessionStateMachine", "TranscriptionAccumulator", "new_session_id"]
