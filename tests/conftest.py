"""Pytest configuration and fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from hotreload_trigger.watchers import WatchConfiguration  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def set(self, seconds: float) -> None:
        self.now = seconds


def bump_mtime(path: Path, seconds: float = 2.0) -> None:
    """Move a file's mtime forward for reliable polling tests."""
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + int(seconds * 1_000_000_000)))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def isolated_sentinel(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.hotreload."""
    sentinel = tmp_path / "home" / ".hotreload"
    monkeypatch.setenv("HOTRELOAD_SENTINEL", str(sentinel))
    return sentinel


@pytest.fixture
def sentinel(tmp_path):
    """An existing sentinel file with an mtime well in the past."""
    path = tmp_path / ".hotreload"
    path.write_text("# sentinel\n")
    bump_mtime(path, -100.0)
    return path


@pytest.fixture
def manual_config(sentinel):
    """Sentinel-only configuration whose poller never ticks on its own."""
    return WatchConfiguration(
        sentinel_path=sentinel,
        debounce_interval=0.3,
        poll_interval=60.0,
        auto_watch=False,
    )
