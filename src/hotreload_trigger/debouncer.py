"""Rate-limiting gate for bursts of watch events."""

import logging
import threading
import time
from collections.abc import Callable

from hotreload_trigger.watchers import WatchEvent

logger = logging.getLogger(__name__)


class Debouncer:
    """Forward at most one event per interval.

    Events arriving inside the window are dropped, not deferred: a suppressed
    burst produces no trailing trigger.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic):
        """Initialize debouncer.

        Args:
            interval: Minimum seconds between two accepted events
            clock: Monotonic time source
        """
        if interval <= 0:
            raise ValueError(f"Debounce interval must be positive, got {interval}")
        self.interval = interval
        self._clock = clock
        self._lock = threading.Lock()
        self._last_accepted_at: float | None = None

    @property
    def last_accepted_at(self) -> float | None:
        with self._lock:
            return self._last_accepted_at

    def accept(self, event: WatchEvent | None = None) -> bool:
        """Decide whether an event passes the gate.

        Args:
            event: The event being considered, None for manual triggers

        Returns:
            True if the event was forwarded, False if suppressed
        """
        with self._lock:
            now = self._clock()
            if self._last_accepted_at is not None and now - self._last_accepted_at <= self.interval:
                if event is not None:
                    logger.debug(f"Suppressed change inside debounce window: {event.path}")
                return False
            self._last_accepted_at = now
            return True

    def reset(self) -> None:
        """Forget the last accepted time."""
        with self._lock:
            self._last_accepted_at = None
