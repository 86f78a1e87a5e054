"""Watcher implementations: watchdog native events and sentinel polling."""

import logging
import os
import threading
import time
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from hotreload_trigger.errors import WatchSetupFailed
from hotreload_trigger.watchers import PathWatcher, WatchConfiguration, WatchEvent

logger = logging.getLogger(__name__)

OBSERVER_JOIN_TIMEOUT = 2.0


def native_events_available() -> bool:
    """Check whether watchdog found an OS-native event backend on this platform."""
    return Observer is not PollingObserver


class _FilteredHandler(FileSystemEventHandler):
    """Forwards relevant file events below one watched root."""

    def __init__(
        self,
        root: Path,
        config: WatchConfiguration,
        emit: Callable[[Path], None],
        only: Path | None = None,
    ):
        """Initialize handler.

        Args:
            root: Directory the observer watches
            config: Watch configuration holding the filters
            emit: Called with each relevant path
            only: If set, ignore every path except this file
        """
        self.root = root
        self.config = config
        self.emit = emit
        self.only = only

    def _handle(self, raw_path: str | bytes) -> None:
        path = Path(os.fsdecode(raw_path))
        if self.only is not None and path != self.only:
            return
        if self.config.matches(path, root=self.root):
            logger.debug(f"File change detected: {path}")
            self.emit(path)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification events."""
        if not event.is_directory:
            self._handle(event.src_path)

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation events."""
        if not event.is_directory:
            self._handle(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle renames; editors often save by moving a temp file into place."""
        if not event.is_directory:
            self._handle(event.dest_path)


class NativeEventWatcher:
    """Watches directory trees through the OS filesystem-event facility."""

    def __init__(self, config: WatchConfiguration, observer_factory: Callable[[], Observer] = Observer):
        """Initialize watcher.

        Args:
            config: Watch configuration; its non-sentinel paths are watched
            observer_factory: Creates the watchdog observer
        """
        self.config = config
        self._observer_factory = observer_factory
        self._observer = None
        self._on_event: Callable[[WatchEvent], None] | None = None
        self._running = False
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    def _emit(self, path: Path) -> None:
        with self._lock:
            if not self._running:
                return
            on_event = self._on_event
        on_event(WatchEvent(path=path, observed_at=time.monotonic()))

    def _schedule(self, observer) -> int:
        scheduled = 0
        for root in sorted(self.config.watch_roots):
            if root.is_dir():
                handler = _FilteredHandler(root, self.config, self._emit)
                observer.schedule(handler, str(root), recursive=True)
            elif root.exists():
                handler = _FilteredHandler(root.parent, self.config, self._emit, only=root)
                observer.schedule(handler, str(root.parent), recursive=False)
            else:
                logger.warning(f"Watch path does not exist: {root}")
                continue
            scheduled += 1
            logger.info(f"Watching {root} (extensions: {sorted(self.config.extensions) or 'any'})")
        return scheduled

    def start(self, on_event: Callable[[WatchEvent], None]) -> None:
        """Subscribe to filesystem events.

        Raises:
            WatchSetupFailed: If the OS subscription cannot be established
        """
        with self._lock:
            if self._observer is not None:
                return

            observer = self._observer_factory()
            try:
                if not self._schedule(observer):
                    logger.debug("No existing paths to watch")
                    return
                self._on_event = on_event
                self._running = True
                observer.start()
            except OSError as e:
                self._running = False
                self._on_event = None
                observer.unschedule_all()
                raise WatchSetupFailed(f"Could not watch {sorted(map(str, self.config.watch_roots))}: {e}") from e

            self._observer = observer
            logger.info("Started native file watcher")

    def stop(self) -> None:
        """Stop the observer. Idempotent."""
        with self._lock:
            observer = self._observer
            self._observer = None
            self._running = False
            self._on_event = None

        if observer is None:
            return

        observer.stop()
        if observer is not threading.current_thread():
            observer.join(timeout=OBSERVER_JOIN_TIMEOUT)
        logger.info("Stopped native file watcher")


class SentinelPollingWatcher:
    """Polls a single file's mtime on a background thread."""

    def __init__(
        self,
        path: Path,
        poll_interval: float = 0.2,
        min_mtime_delta: float = 1.0,
    ):
        """Initialize watcher.

        Args:
            path: Sentinel file to poll
            poll_interval: Seconds between ticks
            min_mtime_delta: Seconds the mtime must advance past the last accepted value
        """
        self.path = path
        self.poll_interval = poll_interval
        self.min_mtime_delta = min_mtime_delta
        self._on_event: Callable[[WatchEvent], None] | None = None
        self._baseline: float | None = None
        self._previous: float | None = None
        self._missing_logged = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None

    def _read_mtime(self) -> float | None:
        try:
            mtime = self.path.stat().st_mtime
        except OSError as e:
            if not self._missing_logged:
                logger.warning(f"Cannot stat sentinel {self.path}: {e}")
                self._missing_logged = True
            return None
        self._missing_logged = False
        return mtime

    def start(self, on_event: Callable[[WatchEvent], None]) -> None:
        """Record the current mtime as baseline and begin ticking."""
        with self._lock:
            if self._thread is not None:
                return

            self._on_event = on_event
            self._baseline = self._previous = self._read_mtime()
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="hotreload-sentinel-poll",
                daemon=True,
            )
            self._thread.start()
        logger.info(f"Polling sentinel {self.path} every {self.poll_interval}s")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.poll_interval):
            self.check()

    def check(self) -> bool:
        """Run one tick.

        Returns:
            True if a change was emitted
        """
        mtime = self._read_mtime()
        if mtime is None:
            return False

        previous, self._previous = self._previous, mtime
        if previous is not None and mtime <= previous:
            return False
        if self._baseline is not None and mtime - self._baseline <= self.min_mtime_delta:
            return False
        self._baseline = mtime

        with self._lock:
            on_event = self._on_event if not self._stop_event.is_set() else None
        if on_event is None:
            return False

        logger.debug(f"Sentinel touched: {self.path}")
        on_event(WatchEvent(path=self.path, observed_at=time.monotonic()))
        return True

    def stop(self) -> None:
        """Stop ticking. Idempotent."""
        with self._lock:
            thread = self._thread
            self._thread = None
            self._on_event = None
            self._stop_event.set()

        if thread is None:
            return

        if thread is not threading.current_thread():
            thread.join(timeout=self.poll_interval + OBSERVER_JOIN_TIMEOUT)
        logger.info(f"Stopped polling sentinel {self.path}")


def create_watchers(config: WatchConfiguration, native_available: bool | None = None) -> list[PathWatcher]:
    """Pick the watcher variants for a configuration.

    The sentinel poller is always included. A native watcher is added when
    auto-watch is on, the platform has native events and a watch path exists.

    Args:
        config: Watch configuration
        native_available: Override for the platform probe

    Returns:
        Watchers to start, sentinel poller first
    """
    watchers: list[PathWatcher] = [
        SentinelPollingWatcher(
            config.sentinel_path,
            poll_interval=config.poll_interval,
            min_mtime_delta=config.min_mtime_delta,
        )
    ]

    if not config.auto_watch:
        logger.debug("Auto-watch disabled; polling sentinel only")
        return watchers

    if native_available is None:
        native_available = native_events_available()
    if not native_available:
        logger.info("Native filesystem events unavailable; polling sentinel only")
        return watchers

    if any(root.exists() for root in config.watch_roots):
        watchers.append(NativeEventWatcher(config))
    else:
        logger.debug("No existing watch paths besides the sentinel")
    return watchers
