"""Watch configuration, watch events and the watcher protocol."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

DEFAULT_DEBOUNCE_INTERVAL = 0.5
DEFAULT_POLL_INTERVAL = 0.2
DEFAULT_MIN_MTIME_DELTA = 1.0
DEFAULT_EXTENSIONS = frozenset({".py", ".tcss"})
DEFAULT_EXCLUDED_SUBSTRINGS = frozenset({"__pycache__", ".git", ".venv", "venv", "build", "dist", ".tox"})


@dataclass(frozen=True)
class WatchEvent:
    """A single relevant change seen by a watcher."""

    path: Path
    """Path that changed."""

    observed_at: float
    """Monotonic time at which the change was observed."""


def _normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    return frozenset(ext if ext.startswith(".") else f".{ext}" for ext in extensions if ext)


def _has_fragment(parts: tuple[str, ...], fragment: str) -> bool:
    """True if `fragment` appears in `parts` as a run of whole path components.

    `"build"` matches `build/output.tmp` but not `rebuild.py` or `builds/app.py`;
    `"gen/out"` matches the two consecutive components `gen` and `out`.
    """
    needle = tuple(part for part in fragment.replace("\\", "/").split("/") if part)
    if not needle:
        return False
    width = len(needle)
    return any(parts[i : i + width] == needle for i in range(len(parts) - width + 1))


@dataclass(frozen=True)
class WatchConfiguration:
    """Configuration for one coordinator run. Immutable; restart to change."""

    sentinel_path: Path
    """Manually touchable trigger file. Always part of `paths`."""

    paths: frozenset[Path] = field(default_factory=frozenset)
    """Filesystem paths to observe."""

    debounce_interval: float = DEFAULT_DEBOUNCE_INTERVAL
    """Minimum seconds between two accepted triggers."""

    extensions: frozenset[str] = DEFAULT_EXTENSIONS
    """File suffixes of interest. Empty means every file."""

    excluded_substrings: frozenset[str] = DEFAULT_EXCLUDED_SUBSTRINGS
    """Path fragments to ignore, matched against whole components below the watched root."""

    ignore_hidden: bool = True
    """Skip files below dot-directories of a watched root."""

    poll_interval: float = DEFAULT_POLL_INTERVAL
    """Seconds between two sentinel polls."""

    min_mtime_delta: float = DEFAULT_MIN_MTIME_DELTA
    """Seconds the sentinel mtime must advance past the last accepted value."""

    auto_watch: bool = True
    """Watch `paths` for source changes. If False, only the sentinel is watched."""

    def __post_init__(self):
        sentinel = Path(self.sentinel_path).expanduser()
        paths = frozenset(Path(p).expanduser() for p in self.paths) | {sentinel}
        object.__setattr__(self, "sentinel_path", sentinel)
        object.__setattr__(self, "paths", paths)
        object.__setattr__(self, "extensions", _normalize_extensions(self.extensions))
        object.__setattr__(self, "excluded_substrings", frozenset(self.excluded_substrings))

        if self.debounce_interval <= 0:
            raise ValueError(f"debounce_interval must be positive, got {self.debounce_interval}")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.min_mtime_delta < 0:
            raise ValueError(f"min_mtime_delta must not be negative, got {self.min_mtime_delta}")

    @property
    def watch_roots(self) -> frozenset[Path]:
        """Watched paths other than the sentinel."""
        return self.paths - {self.sentinel_path}

    def matches(self, path: Path, root: Path | None = None) -> bool:
        """Check a changed path against the filters.

        Args:
            path: Path that changed
            root: Watched root the path was reported under. Excluded fragments and
                hidden directories are checked below it only

        Returns:
            True if the change is relevant
        """
        relative = None
        if root is not None:
            try:
                relative = path.relative_to(root).parts
            except ValueError:
                relative = None

        parts = relative if relative is not None else path.parts
        if any(_has_fragment(parts, fragment) for fragment in self.excluded_substrings):
            return False

        if self.extensions and path.suffix not in self.extensions:
            return False

        if self.ignore_hidden and relative is not None:
            if any(part.startswith(".") for part in relative[:-1]):
                return False

        return True


class PathWatcher(Protocol):
    """Protocol for watcher implementations."""

    def start(self, on_event: Callable[[WatchEvent], None]) -> None:
        """Start watching, delivering relevant changes to `on_event`."""
        ...

    def stop(self) -> None:
        """Stop watching and release resources. Idempotent."""
        ...
