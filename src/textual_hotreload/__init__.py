"""textual-hotreload: rebuild Textual content when source files or a sentinel file change."""

from hotreload_trigger import __version__

# Public API
from textual_hotreload.widgets import HotReloading

__all__ = [
    "__version__",
    "HotReloading",
]
