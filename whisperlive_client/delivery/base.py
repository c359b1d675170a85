"""Abstract interface for audio delivery strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from whisperlive_client.events import EventHook


@dataclass(slots=True)
class DeliveryStats:
    """Counters reported by a finished (or stopped) delivery."""

    chunks_sent: int = 0
    bytes_sent: int = 0
    frames_dropped: int = 0


@dataclass(frozen=True, slots=True)
class DeliveryContext:
    """What a strategy may use from the session it delivers into.

    Attributes:
        session_id: Session being fed (for event correlation).
        send: Sends one binary frame on the session's channel, in call order.
        is_ready: Readiness gate; audio must not flow while it returns False.
        hook: Observability hook.
    """

    session_id: str
    send: Callable[[bytes], Awaitable[None]]
    is_ready: Callable[[], bool]
    hook: EventHook | None = None


class AudioDeliveryStrategy(ABC):
    """Contract for feeding audio into a ready session.

    The lifecycle manager calls ``deliver`` once readiness is observed and
    ``stop`` on every exit path. Implementations must release any resource
    they acquired (capture devices) when either returns.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy identifier (e.g., 'bulk_replay')."""
        pass

    @property
    @abstractmethod
    def completes(self) -> bool:
        """True if ``deliver`` returns on its own once all audio is sent.

        Strategies that return False run until ``stop`` is called.
        """
        pass

    @abstractmethod
    async def deliver(self, context: DeliveryContext) -> DeliveryStats:
        """Send audio through ``context.send`` until done or stopped.

        Raises:
            NotReadyError: If the readiness gate is closed when delivery starts.
            NotOpenError: If the channel closes mid-delivery.
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop delivering and release resources. Idempotent."""
        pass
