"""hotreload-trigger: file-change-triggered reload signal for UI frontends."""

__version__ = "0.1.0"

# Core
from hotreload_trigger.coordinator import ReloadCoordinator
from hotreload_trigger.debouncer import Debouncer
from hotreload_trigger.trigger_signal import TriggerSignal

# Watching
from hotreload_trigger.file_watcher import (
    NativeEventWatcher,
    SentinelPollingWatcher,
    create_watchers,
    native_events_available,
)
from hotreload_trigger.watchers import PathWatcher, WatchConfiguration, WatchEvent

# Errors
from hotreload_trigger.errors import AlreadyStarted, HotReloadError, SentinelUnwritable, WatchSetupFailed

# Config
from hotreload_trigger.config import default_watch_config, load_watch_config
from hotreload_trigger.notifier import LoggingNotifier, NoOpNotifier, ReloadNotifier
from hotreload_trigger.sentinel import default_sentinel_path, ensure_sentinel, find_project_root, touch_sentinel

__all__ = [
    "__version__",
    # Core
    "ReloadCoordinator",
    "Debouncer",
    "TriggerSignal",
    # Watching
    "PathWatcher",
    "NativeEventWatcher",
    "SentinelPollingWatcher",
    "WatchConfiguration",
    "WatchEvent",
    "create_watchers",
    "native_events_available",
    # Errors
    "HotReloadError",
    "AlreadyStarted",
    "WatchSetupFailed",
    "SentinelUnwritable",
    # Config
    "default_watch_config",
    "load_watch_config",
    "ReloadNotifier",
    "NoOpNotifier",
    "LoggingNotifier",
    "default_sentinel_path",
    "ensure_sentinel",
    "touch_sentinel",
    "find_project_root",
]
