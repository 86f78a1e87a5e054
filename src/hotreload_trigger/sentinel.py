"""Sentinel file helpers. The file's mtime is the reload signal."""

import logging
import os
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

SENTINEL_ENV_VAR = "HOTRELOAD_SENTINEL"
SENTINEL_FILENAME = ".hotreload"

PROJECT_MARKERS = ("pyproject.toml", "setup.py", "setup.cfg", ".git")


def default_sentinel_path() -> Path:
    """Return the sentinel path: $HOTRELOAD_SENTINEL or ~/.hotreload."""
    override = os.environ.get(SENTINEL_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / SENTINEL_FILENAME


def ensure_sentinel(path: Path) -> bool:
    """Create the sentinel file if it is missing.

    Args:
        path: Sentinel path

    Returns:
        True if the file was created, False if it already existed

    Raises:
        PermissionError: If the file cannot be created
        OSError: If other file system errors occur
    """
    if path.exists():
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        "# hotreload trigger file\n"
        "# Touch this file to trigger a reload\n"
        f"# Created: {datetime.now().isoformat(timespec='seconds')}\n"
    )
    logger.info(f"Created sentinel file: {path}")
    return True


def touch_sentinel(path: Path) -> None:
    """Update the sentinel mtime to now, creating the file if needed."""
    ensure_sentinel(path)
    os.utime(path, None)
    logger.debug(f"Touched sentinel file: {path}")


def find_project_root(start: Path | None = None) -> Path:
    """Walk upward from `start` looking for a project marker.

    Args:
        start: Directory to start from (default: current directory)

    Returns:
        First directory containing a marker, or `start` if none is found
    """
    start = Path(start or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if any((candidate / marker).exists() for marker in PROJECT_MARKERS):
            return candidate
    return start
