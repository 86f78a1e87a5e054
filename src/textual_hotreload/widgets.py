"""Textual container that rebuilds its content on every accepted reload trigger."""

import logging
import uuid
from collections.abc import Callable

from textual.app import ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widget import Widget

from hotreload_trigger import ReloadCoordinator, WatchConfiguration

logger = logging.getLogger(__name__)


class HotReloading(Widget):
    """Wraps content created by a factory and re-creates it when the reload token changes.

    Usage:
        coordinator = ReloadCoordinator()
        yield HotReloading(MainPanel, coordinator, config=default_watch_config())

    If `config` is given and the coordinator is idle, the widget starts it on
    mount and stops it on unmount. Otherwise the host owns the lifecycle.
    """

    DEFAULT_CSS = """
    HotReloading {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("ctrl+r", "hot_reload", "Reload"),
    ]

    class Reloaded(Message):
        """Posted when an accepted trigger produced a new token. Bubbles to the host."""

        def __init__(self, wrapper: "HotReloading", token: uuid.UUID) -> None:
            super().__init__()
            self.wrapper = wrapper
            self.token = token

        @property
        def control(self) -> "HotReloading":
            """The wrapper that received the token."""
            return self.wrapper

    def __init__(
        self,
        content: Callable[[], Widget],
        coordinator: ReloadCoordinator,
        config: WatchConfiguration | None = None,
        notify_on_reload: bool = True,
        *,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ):
        """Initialize wrapper.

        Args:
            content: Zero-argument factory returning the widget to wrap
            coordinator: Coordinator whose token drives rebuilds
            config: If set, start the coordinator with it on mount
            notify_on_reload: Show a toast after each rebuild
        """
        super().__init__(name=name, id=id, classes=classes)
        self.content_factory = content
        self.coordinator = coordinator
        self.config = config
        self.notify_on_reload = notify_on_reload
        self.token = coordinator.token
        self.reload_count = 0
        self._unsubscribe: Callable[[], None] | None = None
        self._owns_lifecycle = False

    def compose(self) -> ComposeResult:
        yield self.content_factory()

    def on_mount(self) -> None:
        """Subscribe to reloads and start watching if this widget owns the coordinator."""
        self._unsubscribe = self.coordinator.subscribe(self._on_token)

        if self.config is None or self.coordinator.is_running:
            return

        problems = self.coordinator.start(self.config)
        self._owns_lifecycle = True
        for problem in problems:
            self.notify(str(problem), title="Hot reload", severity="warning")

    def on_unmount(self) -> None:
        """Unsubscribe and stop the coordinator if this widget started it."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        if self._owns_lifecycle:
            self.coordinator.stop()
            self._owns_lifecycle = False

    def _on_token(self, token: uuid.UUID) -> None:
        # May run on a watcher thread; post_message is thread-safe
        self.post_message(self.Reloaded(self, token))

    async def on_hot_reloading_reloaded(self, message: "HotReloading.Reloaded") -> None:
        """Discard the current content and build it again."""
        # Nested wrappers see each other's messages bubble past
        if message.control is not self or message.token == self.token:
            return

        self.token = message.token
        await self.remove_children()
        await self.mount(self.content_factory())
        self.reload_count += 1
        logger.debug(f"Rebuilt content (reload #{self.reload_count})")

        if self.notify_on_reload:
            self.notify(f"Reloaded at {self.coordinator.last_triggered_at:%H:%M:%S}", title="🔥 Hot reload", timeout=1.5)

    def action_hot_reload(self) -> None:
        """Request a reload from the keyboard."""
        self.coordinator.trigger_now()
