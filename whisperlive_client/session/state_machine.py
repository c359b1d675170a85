"""SessionStateMachine — lifecycle states of one client transcription session.

Pure, synchronous component that knows nothing about WebSocket or asyncio.
The caller (TranscriptionClient) calls transition() at the right times and
enforces the bounded waits itself.

States:
    IDLE -> CONNECTING -> AWAITING_READY -> DELIVERING -> AWAITING_RESULT -> CLOSED

Rules:
- CLOSED is terminal: no transitions are accepted from CLOSED. A new session
  uses a new state machine.
- Any state can transition to CLOSED (error, timeout, forced disconnect, stop).
- Invalid transitions raise InvalidTransitionError.
"""

from __future__ import annotations

from whisperlive_client._types import SessionState
from whisperlive_client.exceptions import InvalidTransitionError

# Valid transitions: {current_state: {allowed_target_states}}
_VALID_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.CONNECTING, SessionState.CLOSED}),
    SessionState.CONNECTING: frozenset({SessionState.AWAITING_READY, SessionState.CLOSED}),
    SessionState.AWAITING_READY: frozenset({SessionState.DELIVERING, SessionState.CLOSED}),
    SessionState.DELIVERING: frozenset({SessionState.AWAITING_RESULT, SessionState.CLOSED}),
    SessionState.AWAITING_RESULT: frozenset({SessionState.CLOSED}),
    SessionState.CLOSED: frozenset(),
}


class SessionStateMachine:
    """State machine for a client transcription session."""

    def __init__(self) -> None:
        self._state = SessionState.IDLE
        self._history: list[SessionState] = [SessionState.IDLE]

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    @property
    def is_closed(self) -> bool:
        """True once the session reached the terminal state."""
        return self._state is SessionState.CLOSED

    @property
    def history(self) -> tuple[SessionState, ...]:
        """Every state visited, in order (starting with IDLE)."""
        return tuple(self._history)

    def transition(self, target: SessionState) -> None:
        """Transition to the target state.

        Raises:
            InvalidTransitionError: If the transition is invalid.
        """
        if target not in _VALID_TRANSITIONS[self._state]:
            raise InvalidTransitionError(self._state.value, target.value)
        self._state = target
        self._history.append(target)

    def close(self) -> bool:
        """Move to CLOSED from any state.

        Returns:
            True if this call closed the session, False if it was already closed.
        """
        if self._state is SessionState.CLOSED:
            return False
        self.transition(SessionState.CLOSED)
        return True
