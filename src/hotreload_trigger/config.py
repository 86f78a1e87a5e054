"""Configuration parsing for hot reload."""

import logging
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from hotreload_trigger.sentinel import default_sentinel_path, find_project_root
from hotreload_trigger.watchers import (
    DEFAULT_DEBOUNCE_INTERVAL,
    DEFAULT_EXCLUDED_SUBSTRINGS,
    DEFAULT_EXTENSIONS,
    DEFAULT_MIN_MTIME_DELTA,
    DEFAULT_POLL_INTERVAL,
    WatchConfiguration,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "hotreload.toml"

DEFAULT_CONFIG_TEMPLATE = """\
# Auto-generated hotreload.toml

[hotreload]
# sentinel = "~/.hotreload"
paths = ["."]
debounce_ms = 500
extensions = [".py", ".tcss"]
exclude = ["__pycache__", ".git", ".venv", "venv", "build", "dist", ".tox"]
ignore_hidden = true
poll_interval_ms = 200
auto_watch = true
"""


def default_watch_config(root: Path | None = None, **overrides) -> WatchConfiguration:
    """Build a configuration watching the project containing `root`.

    Args:
        root: Directory to start project-root discovery from (default: cwd)
        **overrides: WatchConfiguration fields to override

    Returns:
        WatchConfiguration with the default sentinel and filters
    """
    overrides.setdefault("sentinel_path", default_sentinel_path())
    overrides.setdefault("paths", frozenset({find_project_root(root)}))
    return WatchConfiguration(**overrides)


def _milliseconds(raw: dict, key: str, default: float) -> float:
    value = raw.get(key)
    if value is None:
        return default
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ValueError(f"'{key}' must be a number of milliseconds, got {value!r}")
    return value / 1000.0


def _string_list(raw: dict, key: str, default) -> list[str]:
    value = raw.get(key)
    if value is None:
        return list(default)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{key}' must be a list of strings, got {value!r}")
    return value


def load_watch_config(path: str | Path) -> WatchConfiguration:
    """Load a watch configuration from a TOML file.

    Relative `paths` and `sentinel` entries resolve against the config file's directory.

    Args:
        path: Path to TOML config file

    Returns:
        Parsed WatchConfiguration

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file cannot be parsed or holds invalid values
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}\nRun 'hotreload init' to create a default config.")

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except Exception as e:
        raise ValueError(f"Failed to parse config file {path}: {e}") from e

    section = raw.get("hotreload", {})
    if not isinstance(section, dict):
        raise ValueError(f"[hotreload] in {path} must be a table")

    base_dir = path.parent
    sentinel_raw = section.get("sentinel")
    sentinel = (base_dir / Path(sentinel_raw).expanduser()) if sentinel_raw else default_sentinel_path()
    paths = frozenset(base_dir / Path(p).expanduser() for p in _string_list(section, "paths", ["."]))

    try:
        config = WatchConfiguration(
            sentinel_path=sentinel,
            paths=paths,
            debounce_interval=_milliseconds(section, "debounce_ms", DEFAULT_DEBOUNCE_INTERVAL),
            extensions=frozenset(_string_list(section, "extensions", DEFAULT_EXTENSIONS)),
            excluded_substrings=frozenset(_string_list(section, "exclude", DEFAULT_EXCLUDED_SUBSTRINGS)),
            ignore_hidden=bool(section.get("ignore_hidden", True)),
            poll_interval=_milliseconds(section, "poll_interval_ms", DEFAULT_POLL_INTERVAL),
            min_mtime_delta=_milliseconds(section, "min_mtime_delta_ms", DEFAULT_MIN_MTIME_DELTA),
            auto_watch=bool(section.get("auto_watch", True)),
        )
    except ValueError as e:
        raise ValueError(f"Invalid config in {path}: {e}") from e

    logger.debug(f"Loaded watch config from {path}: {sorted(map(str, config.paths))}")
    return config


def create_default_config(config_path: Path) -> bool:
    """
    Create a default hotreload.toml if it doesn't exist.

    Args:
        config_path: Path where config should be created

    Returns:
        True if config was created, False if it already exists

    Raises:
        PermissionError: If unable to write to the directory
        OSError: If other file system errors occur
    """
    if config_path.exists():
        return False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG_TEMPLATE)
    return True
