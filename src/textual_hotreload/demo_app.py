"""Demo app: a counter panel wrapped in HotReloading."""

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import Button, Footer, Header, Static

from hotreload_trigger import ReloadCoordinator, WatchConfiguration
from textual_hotreload.widgets import HotReloading


class CounterPanel(Vertical):
    """Example content. Its state is discarded on every reload."""

    DEFAULT_CSS = """
    CounterPanel {
        align: center middle;
    }

    CounterPanel > Static {
        width: auto;
        margin: 0 0 1 0;
    }

    CounterPanel > Horizontal {
        width: auto;
        height: auto;
    }

    .demo-title {
        text-style: bold;
        color: $accent;
    }

    .demo-hint {
        color: $text-muted;
    }
    """

    counter = reactive(0, init=False)

    def __init__(self, sentinel_hint: str = "~/.hotreload", **kwargs):
        super().__init__(**kwargs)
        self.sentinel_hint = sentinel_hint

    def compose(self) -> ComposeResult:
        yield Static("🔥 Hot reload demo", classes="demo-title")
        yield Static("Counter: 0", id="counter")
        with Horizontal():
            yield Button("Increment", id="increment", variant="primary")
            yield Button("Reset", id="reset")
        yield Static("Edit a source file, press ctrl+r, or run:", classes="demo-hint")
        yield Static(f"touch {self.sentinel_hint}", classes="demo-hint")

    def watch_counter(self, value: int) -> None:
        self.query_one("#counter", Static).update(f"Counter: {value}")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "increment":
            self.counter += 1
        elif event.button.id == "reset":
            self.counter = 0


class HotReloadDemoApp(App):
    """Shows a counter that resets whenever a reload is triggered."""

    TITLE = "hotreload demo"
    BINDINGS = [
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, config: WatchConfiguration, coordinator: ReloadCoordinator | None = None, **kwargs):
        """Initialize app.

        Args:
            config: Watch configuration passed to the HotReloading wrapper
            coordinator: Optional coordinator (default: a new silent one)
        """
        super().__init__(**kwargs)
        self.config = config
        self.coordinator = coordinator or ReloadCoordinator()

    def compose(self) -> ComposeResult:
        yield Header()
        yield HotReloading(
            lambda: CounterPanel(sentinel_hint=str(self.config.sentinel_path)),
            self.coordinator,
            config=self.config,
            id="hot-reloading",
        )
        yield Footer()

    def on_hot_reloading_reloaded(self, message: HotReloading.Reloaded) -> None:
        self.sub_title = f"token {str(message.token)[:8]}"
