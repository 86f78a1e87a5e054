"""Tests for the native and polling watcher implementations."""

import logging
import threading
from unittest.mock import MagicMock, patch

import pytest
from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent
from watchdog.observers.polling import PollingObserver

from conftest import bump_mtime
from hotreload_trigger.errors import WatchSetupFailed
from hotreload_trigger.file_watcher import (
    NativeEventWatcher,
    SentinelPollingWatcher,
    _FilteredHandler,
    create_watchers,
    native_events_available,
)
from hotreload_trigger.watchers import WatchConfiguration


@pytest.fixture
def project(tmp_path):
    """Project tree with a source file and a build artifact."""
    (tmp_path / "src").mkdir()
    (tmp_path / "build").mkdir()
    (tmp_path / "src" / "App.txt").write_text("v1")
    (tmp_path / "build" / "output.tmp").write_text("v1")
    return tmp_path


@pytest.fixture
def project_config(project):
    return WatchConfiguration(
        sentinel_path=project / ".hotreload",
        paths=frozenset({project}),
        extensions=frozenset({".txt"}),
        excluded_substrings=frozenset({"build"}),
    )


class TestFilteredHandler:
    """Tests for event filtering at the point of emission."""

    def test_only_relevant_changes_emitted(self, project, project_config):
        emitted = []
        handler = _FilteredHandler(project, project_config, emitted.append)

        handler.on_modified(FileModifiedEvent(str(project / "build" / "output.tmp")))
        handler.on_modified(FileModifiedEvent(str(project / "src" / "App.txt")))

        assert emitted == [project / "src" / "App.txt"]

    def test_created_and_moved_files_emitted(self, project, project_config):
        emitted = []
        handler = _FilteredHandler(project, project_config, emitted.append)

        handler.on_created(FileCreatedEvent(str(project / "src" / "New.txt")))
        handler.on_moved(FileMovedEvent(str(project / "src" / "App.txt~"), str(project / "src" / "App.txt")))

        assert emitted == [project / "src" / "New.txt", project / "src" / "App.txt"]

    def test_directory_events_ignored(self, project, project_config):
        emitted = []
        handler = _FilteredHandler(project, project_config, emitted.append)

        handler.on_modified(DirModifiedEvent(str(project / "src")))

        assert emitted == []

    def test_single_file_restriction(self, project, project_config):
        emitted = []
        target = project / "src" / "App.txt"
        handler = _FilteredHandler(target.parent, project_config, emitted.append, only=target)

        handler.on_modified(FileModifiedEvent(str(project / "src" / "Other.txt")))
        handler.on_modified(FileModifiedEvent(str(target)))

        assert emitted == [target]


class TestNativeEventWatcher:
    """Tests for the watchdog-backed watcher."""

    def test_schedules_directories_recursively(self, project, project_config):
        observer = MagicMock()
        watcher = NativeEventWatcher(project_config, observer_factory=lambda: observer)

        watcher.start(lambda event: None)

        observer.schedule.assert_called_once()
        _, path = observer.schedule.call_args[0]
        assert path == str(project)
        assert observer.schedule.call_args[1] == {"recursive": True}
        observer.start.assert_called_once()
        assert watcher.is_running is True

    def test_schedules_file_through_parent(self, project):
        target = project / "src" / "App.txt"
        config = WatchConfiguration(sentinel_path=project / ".hotreload", paths=frozenset({target}))
        observer = MagicMock()
        watcher = NativeEventWatcher(config, observer_factory=lambda: observer)

        watcher.start(lambda event: None)

        handler, path = observer.schedule.call_args[0]
        assert path == str(target.parent)
        assert handler.only == target
        assert observer.schedule.call_args[1] == {"recursive": False}

    def test_missing_paths_do_not_start_observer(self, tmp_path, caplog):
        config = WatchConfiguration(sentinel_path=tmp_path / ".hotreload", paths=frozenset({tmp_path / "missing"}))
        observer = MagicMock()
        watcher = NativeEventWatcher(config, observer_factory=lambda: observer)

        with caplog.at_level(logging.WARNING):
            watcher.start(lambda event: None)

        observer.start.assert_not_called()
        assert watcher.is_running is False
        assert "does not exist" in caplog.text

    def test_setup_failure_raises(self, project_config):
        observer = MagicMock()
        observer.start.side_effect = PermissionError("denied")
        watcher = NativeEventWatcher(project_config, observer_factory=lambda: observer)

        with pytest.raises(WatchSetupFailed) as exc_info:
            watcher.start(lambda event: None)

        assert isinstance(exc_info.value.__cause__, PermissionError)
        assert watcher.is_running is False

    def test_stop_is_idempotent(self, project_config):
        observer = MagicMock()
        watcher = NativeEventWatcher(project_config, observer_factory=lambda: observer)
        watcher.start(lambda event: None)

        watcher.stop()
        watcher.stop()

        observer.stop.assert_called_once()
        observer.join.assert_called_once()
        assert watcher.is_running is False

    def test_stop_before_start_is_noop(self, project_config):
        watcher = NativeEventWatcher(project_config, observer_factory=MagicMock)
        watcher.stop()

    def test_no_delivery_after_stop(self, project, project_config):
        observer = MagicMock()
        watcher = NativeEventWatcher(project_config, observer_factory=lambda: observer)
        received = []
        watcher.start(received.append)
        handler = observer.schedule.call_args[0][0]

        handler.on_modified(FileModifiedEvent(str(project / "src" / "App.txt")))
        watcher.stop()
        handler.on_modified(FileModifiedEvent(str(project / "src" / "App.txt")))

        assert len(received) == 1
        assert received[0].path == project / "src" / "App.txt"

    @pytest.mark.skipif(not native_events_available(), reason="no native filesystem events on this platform")
    def test_real_observer_reports_source_change(self, project, project_config):
        seen = threading.Event()
        received = []

        def on_event(event):
            received.append(event.path)
            seen.set()

        watcher = NativeEventWatcher(project_config)
        watcher.start(on_event)
        try:
            (project / "build" / "output.tmp").write_text("v2")
            (project / "src" / "App.txt").write_text("v2")
            assert seen.wait(timeout=5.0)
        finally:
            watcher.stop()

        assert project / "src" / "App.txt" in received
        assert project / "build" / "output.tmp" not in received


class TestSentinelPollingWatcher:
    """Tests for sentinel mtime polling. Ticks are driven by check()."""

    @pytest.fixture
    def watcher(self, sentinel):
        watcher = SentinelPollingWatcher(sentinel, poll_interval=60.0, min_mtime_delta=1.0)
        yield watcher
        watcher.stop()

    def test_stale_timestamp_does_not_fire(self, watcher):
        received = []
        watcher.start(received.append)

        assert watcher.check() is False
        assert received == []

    def test_touch_fires_once(self, watcher, sentinel):
        received = []
        watcher.start(received.append)

        bump_mtime(sentinel, 2.0)

        assert watcher.check() is True
        assert watcher.check() is False
        assert [event.path for event in received] == [sentinel]

    def test_small_advance_ignored(self, watcher, sentinel):
        received = []
        watcher.start(received.append)

        bump_mtime(sentinel, 0.5)

        assert watcher.check() is False
        assert received == []

    def test_touch_before_start_is_ignored(self, sentinel):
        bump_mtime(sentinel, 50.0)
        watcher = SentinelPollingWatcher(sentinel, poll_interval=60.0)
        received = []
        watcher.start(received.append)
        try:
            assert watcher.check() is False
        finally:
            watcher.stop()

    def test_missing_file_is_no_change(self, watcher, sentinel, caplog):
        received = []
        watcher.start(received.append)
        sentinel.unlink()

        with caplog.at_level(logging.WARNING):
            assert watcher.check() is False
            assert watcher.check() is False

        assert received == []
        assert caplog.text.count("Cannot stat sentinel") == 1

    def test_file_created_after_start_fires(self, tmp_path):
        path = tmp_path / ".hotreload"
        watcher = SentinelPollingWatcher(path, poll_interval=60.0)
        received = []
        watcher.start(received.append)
        try:
            path.write_text("")
            assert watcher.check() is True
        finally:
            watcher.stop()

    def test_stop_is_idempotent(self, watcher):
        watcher.start(lambda event: None)
        assert watcher.is_running is True

        watcher.stop()
        watcher.stop()

        assert watcher.is_running is False

    def test_no_delivery_after_stop(self, watcher, sentinel):
        received = []
        watcher.start(received.append)
        watcher.stop()

        bump_mtime(sentinel, 2.0)

        assert watcher.check() is False
        assert received == []

    def test_restart_after_stop(self, watcher, sentinel):
        received = []
        watcher.start(received.append)
        watcher.stop()
        watcher.start(received.append)

        bump_mtime(sentinel, 2.0)

        assert watcher.check() is True
        assert len(received) == 1

    def test_background_thread_polls(self, sentinel):
        seen = threading.Event()
        watcher = SentinelPollingWatcher(sentinel, poll_interval=0.02)
        watcher.start(lambda event: seen.set())
        try:
            bump_mtime(sentinel, 2.0)
            assert seen.wait(timeout=5.0)
        finally:
            watcher.stop()


class TestCreateWatchers:
    """Tests for watcher variant selection."""

    def test_manual_mode_polls_sentinel_only(self, project, project_config):
        config = WatchConfiguration(sentinel_path=project / ".hotreload", paths=frozenset({project}), auto_watch=False)
        watchers = create_watchers(config, native_available=True)

        assert len(watchers) == 1
        assert isinstance(watchers[0], SentinelPollingWatcher)
        assert watchers[0].path == project / ".hotreload"

    def test_no_native_events_polls_sentinel_only(self, project_config):
        watchers = create_watchers(project_config, native_available=False)

        assert [type(w) for w in watchers] == [SentinelPollingWatcher]

    def test_native_watcher_added(self, project_config):
        watchers = create_watchers(project_config, native_available=True)

        assert [type(w) for w in watchers] == [SentinelPollingWatcher, NativeEventWatcher]

    def test_missing_roots_skip_native_watcher(self, tmp_path):
        config = WatchConfiguration(sentinel_path=tmp_path / ".hotreload", paths=frozenset({tmp_path / "missing"}))
        watchers = create_watchers(config, native_available=True)

        assert [type(w) for w in watchers] == [SentinelPollingWatcher]

    def test_poller_uses_config_intervals(self, tmp_path):
        config = WatchConfiguration(sentinel_path=tmp_path / ".hotreload", poll_interval=0.5, min_mtime_delta=2.0)
        poller = create_watchers(config, native_available=False)[0]

        assert poller.poll_interval == 0.5
        assert poller.min_mtime_delta == 2.0


def test_probe_detects_generic_polling_backend():
    with patch("hotreload_trigger.file_watcher.Observer", PollingObserver):
        assert native_events_available() is False
