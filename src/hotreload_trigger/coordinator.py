"""Reload coordinator. Primary embed point for hosts."""

import itertools
import logging
import threading
import time
import uuid
from collections.abc import Callable
from datetime import datetime

from hotreload_trigger.debouncer import Debouncer
from hotreload_trigger.errors import AlreadyStarted, HotReloadError, SentinelUnwritable, WatchSetupFailed
from hotreload_trigger.file_watcher import create_watchers
from hotreload_trigger.notifier import NoOpNotifier, ReloadNotifier
from hotreload_trigger.sentinel import ensure_sentinel
from hotreload_trigger.trigger_signal import TriggerSignal
from hotreload_trigger.watchers import DEFAULT_DEBOUNCE_INTERVAL, PathWatcher, WatchConfiguration, WatchEvent

logger = logging.getLogger(__name__)

Subscriber = Callable[[uuid.UUID], None]


class ReloadCoordinator:
    """Owns the watchers, the debounce gate and the identity token.

    Stable API: start(), stop(), trigger_now(), subscribe(), token,
    last_triggered_at, is_running, config.

    Usage:
        coordinator = ReloadCoordinator()
        unsubscribe = coordinator.subscribe(lambda token: rebuild(token))
        coordinator.start(WatchConfiguration(sentinel_path=default_sentinel_path()))
        ...
        coordinator.stop()
    """

    def __init__(
        self,
        notifier: ReloadNotifier | None = None,
        watcher_factory: Callable[[WatchConfiguration], list[PathWatcher]] = create_watchers,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize coordinator.

        Args:
            notifier: Optional notification handler (defaults to NoOpNotifier - silent)
            watcher_factory: Builds the watchers for a configuration
            clock: Monotonic time source for the debounce gate
        """
        self.notifier = notifier or NoOpNotifier()
        self._watcher_factory = watcher_factory
        self._clock = clock
        self._signal = TriggerSignal()
        self._debouncer = Debouncer(DEFAULT_DEBOUNCE_INTERVAL, clock=clock)
        self._config: WatchConfiguration | None = None
        self._watchers: list[PathWatcher] = []
        self._running = False
        self._subscribers: dict[int, Subscriber] = {}
        self._ids = itertools.count()

        # Lifecycle and subscriber bookkeeping
        self._state_lock = threading.Lock()
        # Serializes accept -> bump -> notify so deliveries keep acceptance order
        self._delivery_lock = threading.RLock()

    @property
    def token(self) -> uuid.UUID:
        """Current identity token."""
        return self._signal.token

    @property
    def last_triggered_at(self) -> datetime | None:
        return self._signal.last_triggered_at

    @property
    def is_running(self) -> bool:
        with self._state_lock:
            return self._running

    @property
    def config(self) -> WatchConfiguration | None:
        return self._config

    def start(self, config: WatchConfiguration) -> list[HotReloadError]:
        """Create the sentinel if needed and start watching.

        Args:
            config: Watch configuration for this run

        Returns:
            Non-fatal problems (SentinelUnwritable, WatchSetupFailed); empty on full success

        Raises:
            AlreadyStarted: If the coordinator is already running
        """
        problems: list[HotReloadError] = []

        with self._state_lock:
            if self._running:
                raise AlreadyStarted("Reload coordinator is already running; call stop() first")

            try:
                ensure_sentinel(config.sentinel_path)
            except OSError as e:
                problem = SentinelUnwritable(f"Cannot create sentinel file {config.sentinel_path}: {e}")
                problem.__cause__ = e
                problems.append(problem)

            self._config = config
            self._debouncer = Debouncer(config.debounce_interval, clock=self._clock)
            started: list[PathWatcher] = []

            try:
                for watcher in self._watcher_factory(config):
                    try:
                        watcher.start(self._on_watch_event)
                    except WatchSetupFailed as e:
                        problems.append(e)
                        continue
                    started.append(watcher)
            except BaseException:
                # Leave nothing running behind a failed start
                for watcher in started:
                    watcher.stop()
                raise

            self._watchers = started
            self._running = True

        for problem in problems:
            logger.warning(str(problem))
            self.notifier.warning(str(problem))

        mode = "auto-watch" if config.auto_watch else "manual trigger"
        logger.info(f"Hot reload started in {mode} mode ({len(self._watchers)} watcher(s))")
        self.notifier.info(f"Hot reload active - touch {config.sentinel_path} to reload")
        return problems

    def stop(self) -> None:
        """Stop all watchers. Idempotent; no-op if not started."""
        with self._state_lock:
            if not self._running:
                return
            watchers = self._watchers
            self._watchers = []
            self._running = False

        for watcher in watchers:
            watcher.stop()
        logger.info("Hot reload stopped")

    def trigger_now(self) -> bool:
        """Request a reload without touching the filesystem.

        Returns:
            True if the trigger was accepted, False if debounced
        """
        return self._fire(None)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback invoked with the new token on every accepted trigger.

        Returns:
            Zero-argument function that removes the subscription (idempotent)
        """
        with self._state_lock:
            key = next(self._ids)
            self._subscribers[key] = callback

        def unsubscribe() -> None:
            with self._state_lock:
                self._subscribers.pop(key, None)

        return unsubscribe

    def _on_watch_event(self, event: WatchEvent) -> None:
        self._fire(event)

    def _fire(self, event: WatchEvent | None) -> bool:
        with self._delivery_lock:
            if not self._debouncer.accept(event):
                return False

            token = self._signal.bump()
            source = event.path if event is not None else "manual trigger"
            logger.info(f"Reload triggered by {source}")
            self.notifier.info(f"Reloaded at {datetime.now():%H:%M:%S}")

            with self._state_lock:
                subscribers = list(self._subscribers.values())

            for callback in subscribers:
                try:
                    callback(token)
                except Exception as e:
                    logger.exception(f"Reload subscriber {callback!r} failed")
                    self.notifier.error(f"Reload handler failed: {e}")
            return True
