"""CLI entry point for hotreload: touch the sentinel, watch sources, set up a project."""

import argparse
import dataclasses
import json
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path

from watchdog.observers.polling import PollingObserver

from hotreload_trigger import (
    Debouncer,
    NativeEventWatcher,
    WatchConfiguration,
    WatchEvent,
    __version__,
    default_watch_config,
    ensure_sentinel,
    load_watch_config,
    native_events_available,
    touch_sentinel,
)
from hotreload_trigger.config import CONFIG_FILENAME, create_default_config

logger = logging.getLogger(__name__)

VSCODE_TASKS = {
    "version": "2.0.0",
    "tasks": [
        {
            "label": "Hot Reload",
            "type": "shell",
            "command": "hotreload touch",
            "group": "build",
            "presentation": {
                "echo": False,
                "reveal": "silent",
                "focus": False,
                "panel": "shared",
                "showReuseMessage": False,
                "clear": False,
            },
            "problemMatcher": [],
        },
        {
            "label": "Start Auto Hot Reload",
            "type": "shell",
            "command": "hotreload watch",
            "group": "build",
            "isBackground": True,
            "presentation": {
                "echo": True,
                "reveal": "always",
                "focus": False,
                "panel": "new",
            },
            "problemMatcher": [],
        },
    ],
}


def parse_args() -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="hotreload",
        description="Trigger and watch for hot reloads of Textual apps.",
        epilog="Examples:\n"
        "  hotreload touch                 # Trigger a reload now\n"
        "  hotreload watch src             # Touch the sentinel on every source save\n"
        "  hotreload init --vscode         # Create sentinel, config and VS Code tasks\n"
        "  hotreload demo                  # Run the demo app",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-s",
        "--sentinel",
        default=None,
        help="Sentinel file path (default: $HOTRELOAD_SENTINEL or ~/.hotreload)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("touch", help="Touch the sentinel file to trigger a reload")

    watch = subparsers.add_parser("watch", help="Touch the sentinel whenever a source file changes")
    watch.add_argument("dir", nargs="?", default=None, help="Directory to watch (default: project root)")
    watch.add_argument("-c", "--config", default=None, help=f"Path to config file (e.g. {CONFIG_FILENAME})")
    watch.add_argument("--ext", action="append", default=None, help="File extension to watch (repeatable)")
    watch.add_argument("--exclude", action="append", default=None, help="Path fragment to ignore (repeatable)")
    watch.add_argument("--debounce-ms", type=int, default=None, help="Debounce interval in milliseconds")

    init = subparsers.add_parser("init", help="Create the sentinel file and a default config")
    init.add_argument("-c", "--config", default=CONFIG_FILENAME, help=f"Config path (default: {CONFIG_FILENAME})")
    init.add_argument("--vscode", action="store_true", help="Also write .vscode/tasks.json next to the config")

    demo = subparsers.add_parser("demo", help="Run the demo app")
    demo.add_argument("-c", "--config", default=None, help="Path to config file")

    return parser.parse_args()


def build_config(args: argparse.Namespace) -> WatchConfiguration:
    """Resolve the watch configuration from a config file, flags and defaults."""
    config_path = getattr(args, "config", None)
    directory = getattr(args, "dir", None)

    if config_path:
        config = load_watch_config(config_path)
    elif directory:
        config = default_watch_config(paths=frozenset({Path(directory).resolve()}))
    else:
        config = default_watch_config()

    overrides = {}
    if args.sentinel:
        overrides["sentinel_path"] = Path(args.sentinel)
        overrides["paths"] = config.watch_roots
    if getattr(args, "ext", None):
        overrides["extensions"] = frozenset(args.ext)
    if getattr(args, "exclude", None):
        overrides["excluded_substrings"] = config.excluded_substrings | set(args.exclude)
    if getattr(args, "debounce_ms", None) is not None:
        overrides["debounce_interval"] = args.debounce_ms / 1000.0

    return dataclasses.replace(config, **overrides) if overrides else config


def run_touch(config: WatchConfiguration) -> None:
    """Trigger a reload by touching the sentinel."""
    touch_sentinel(config.sentinel_path)
    print(f"🔥 Hot reload triggered at {datetime.now():%H:%M:%S}")


def run_watch(config: WatchConfiguration, stop_event: threading.Event | None = None) -> None:
    """Watch source files and touch the sentinel on every qualifying save.

    Args:
        config: Watch configuration; its non-sentinel paths are watched
        stop_event: Set to end the loop (default: run until interrupted)
    """
    debouncer = Debouncer(config.debounce_interval)

    def on_event(event: WatchEvent) -> None:
        if event.path == config.sentinel_path:
            return
        if debouncer.accept(event):
            touch_sentinel(config.sentinel_path)
            print(f"🔄 {datetime.now():%H:%M:%S} - Change detected: {event.path.name}")

    if native_events_available():
        watcher = NativeEventWatcher(config)
    else:
        logger.info("Native filesystem events unavailable; falling back to directory polling")
        watcher = NativeEventWatcher(config, observer_factory=PollingObserver)

    roots = ", ".join(sorted(str(root) for root in config.watch_roots))
    if not any(root.exists() for root in config.watch_roots):
        raise FileNotFoundError(f"Nothing to watch: {roots or 'no paths configured'}")
    print(f"📁 Watching {roots} (press Ctrl+C to stop)")

    stop_event = stop_event or threading.Event()
    watcher.start(on_event)
    try:
        while not stop_event.wait(0.5):
            pass
    finally:
        watcher.stop()


def run_init(config: WatchConfiguration, config_path: Path, vscode: bool) -> None:
    """Create the sentinel, a default config and optionally VS Code tasks."""
    if ensure_sentinel(config.sentinel_path):
        print(f"✅ Created sentinel file: {config.sentinel_path}")
    else:
        print(f"Sentinel file already exists: {config.sentinel_path}")

    if create_default_config(config_path):
        print(f"✅ Created default config at: {config_path}")
    else:
        print(f"Config already exists: {config_path}")

    if vscode:
        tasks_path = config_path.parent / ".vscode" / "tasks.json"
        if tasks_path.exists():
            print(f"VS Code tasks already exist: {tasks_path}")
        else:
            tasks_path.parent.mkdir(parents=True, exist_ok=True)
            tasks_path.write_text(json.dumps(VSCODE_TASKS, indent=4) + "\n")
            print(f"✅ Created VS Code tasks: {tasks_path}")


def run_demo(config: WatchConfiguration) -> None:
    """Launch the demo app."""
    from textual_hotreload.demo_app import HotReloadDemoApp

    HotReloadDemoApp(config).run()


def main() -> None:
    """
    Main entry point for hotreload CLI.

    Handles:
    - Argument parsing
    - Logging setup
    - Dispatch to the sub-command
    - Error handling and exit codes
    """
    args = parse_args()

    if args.command != "demo":
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    try:
        if args.command == "init":
            config = build_config(argparse.Namespace(sentinel=args.sentinel))
            run_init(config, Path(args.config).resolve(), args.vscode)
            return

        config = build_config(args)
        if args.command == "touch":
            run_touch(config)
        elif args.command == "watch":
            run_watch(config)
        elif args.command == "demo":
            run_demo(config)

    except KeyboardInterrupt:
        # Gracefully handle Ctrl+C
        sys.exit(130)
    except (PermissionError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
