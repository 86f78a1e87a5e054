#!/usr/bin/env python3
"""
Example: Headless Reload Loop
Shows how to use ReloadCoordinator without Textual.

This example demonstrates:
- Owning a coordinator explicitly (no global instance)
- Subscribing to token changes
- Marshalling notifications from watcher threads onto the main loop
- Degrading gracefully when watching cannot be set up
"""

import asyncio
import uuid

try:
    from hotreload_trigger import LoggingNotifier, ReloadCoordinator, default_watch_config
except ImportError:
    print("Error: Install textual-hotreload first: pip install textual-hotreload")
    exit(1)


class ReportRenderer:
    """
    Re-render a report whenever a reload is accepted.

    Use case: scripts or dashboards that print to the terminal.
    """

    def __init__(self):
        self.coordinator = ReloadCoordinator(notifier=LoggingNotifier())
        self.renders = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[uuid.UUID] = asyncio.Queue()

    def _on_token(self, token: uuid.UUID) -> None:
        # Called on a watcher thread; hand over to the event loop
        self._loop.call_soon_threadsafe(self._queue.put_nowait, token)

    def render(self, token: uuid.UUID) -> None:
        self.renders += 1
        print(f"🔥 Render #{self.renders} (token {str(token)[:8]})")

    async def run(self, renders: int = 3) -> None:
        self._loop = asyncio.get_running_loop()
        unsubscribe = self.coordinator.subscribe(self._on_token)

        config = default_watch_config()
        for problem in self.coordinator.start(config):
            print(f"⚠️ {problem}")

        print(f"💡 Touch {config.sentinel_path} or save a source file to re-render")
        self.render(self.coordinator.token)
        try:
            while self.renders < renders:
                self.render(await self._queue.get())
        finally:
            unsubscribe()
            self.coordinator.stop()


if __name__ == "__main__":
    try:
        asyncio.run(ReportRenderer().run())
    except KeyboardInterrupt:
        pass
