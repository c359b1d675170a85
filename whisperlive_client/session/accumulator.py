"""TranscriptionAccumulator — latest aggregated transcript of a session.

Single writer (the lifecycle manager, on behalf of the reply interpreter),
many readers. Updates overwrite: every segments message carries the full
transcript snapshot, never a delta.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


class TranscriptionAccumulator:
    """Holds the current transcript text and when it last changed.

    Args:
        clock: Function that returns a monotonic timestamp (for deterministic tests).
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.monotonic
        self._text = ""
        self._last_updated: float | None = None

    @property
    def text(self) -> str:
        """Current transcript ("" until the first update)."""
        return self._text

    @property
    def last_updated(self) -> float | None:
        """Monotonic timestamp of the last update, or None if never updated."""
        return self._last_updated

    def update(self, text: str) -> None:
        """Replace the transcript with ``text``."""
        self._text = text
        self._last_updated = self._clock()

    def current(self) -> str:
        """Return the current transcript."""
        return self._text

    def reset(self) -> None:
        """Clear the transcript at the start of a new session."""
        self._text = ""
        self._last_updated = None
