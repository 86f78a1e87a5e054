"""User-facing reload messages.

The coordinator reports three things through a notifier: an accepted reload
(info), a degraded start such as an unwritable sentinel (warning), and a
subscriber that raised while handling a new token (error). Hosts decide how
to surface them; the Textual wrapper uses toasts, scripts usually log.
"""

import logging
from typing import Protocol


class ReloadNotifier(Protocol):
    """Receives the coordinator's user-facing messages. Called from watcher threads."""

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class NoOpNotifier:
    """Discards every message. Default for coordinators created without a notifier."""

    def info(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass


class LoggingNotifier:
    """Forwards messages to a logger, tagged so they stand out in a host's log.

    Args:
        logger: Target logger (default: the "hotreload_trigger" logger)
        prefix: Text put in front of every message
    """

    def __init__(self, logger: logging.Logger | None = None, prefix: str = "[hot reload] "):
        self.logger = logger or logging.getLogger("hotreload_trigger")
        self.prefix = prefix

    def info(self, message: str) -> None:
        self.logger.info(f"{self.prefix}{message}")

    def warning(self, message: str) -> None:
        self.logger.warning(f"{self.prefix}{message}")

    def error(self, message: str) -> None:
        self.logger.error(f"{self.prefix}{message}")
