from __future__ import annotations

from typing import Any, Callable, Optional

import pytest

from alizarin import runtime
from alizarin.errors import InitializationError
from alizarin.toolkit import Toolkit, translate_load_state


class FakeResource:
    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.children: list[FakeResource] = []
        self.destroyed = False
        self.destroy_handlers: list[Callable[[], None]] = []
        self.load_handlers: list[Callable[[Any], None]] = []
        self.settings: dict[str, Any] = {}
        self.title: Optional[str] = None
        self.size: Optional[tuple[int, int]] = None
        self.uri: Optional[str] = None
        self.shown = False
        self.inspector_shown = False

    def __repr__(self) -> str:
        return f"<FakeResource {self.kind}>"


class FakeToolkit(Toolkit):
    """In-memory toolkit that records calls and lets tests fire events."""

    def __init__(
        self, *, fail: bool = False, iterations: int = 0, inspector: bool = True
    ) -> None:
        self.fail = fail
        self.iterations = iterations
        self.inspector = inspector
        self.initialize_calls = 0
        self.shutdown_calls = 0
        self.events: list[tuple[Any, ...]] = []
        self.windows: list[FakeResource] = []
        self.containers: list[FakeResource] = []
        self.browsers: list[FakeResource] = []
        self.extension_handlers: dict[int, Callable[[], None]] = {}
        self._next_hook_id = 0
        self.on_main: Optional[Callable[[], None]] = None
        self.on_iteration: Optional[Callable[[int], None]] = None
        self.extensions_directory: Optional[str] = None
        self.pending_scripts: list[tuple[str, Callable[[Any, Any], None]]] = []
        self.main_calls = 0
        self.quit_calls = 0
        self.iteration_flags: list[bool] = []

    @property
    def window(self) -> FakeResource:
        return self.windows[-1]

    @property
    def browser(self) -> FakeResource:
        return self.browsers[-1]

    def initialize(self) -> None:
        self.initialize_calls += 1
        if self.fail:
            raise InitializationError("no display available")

    def shutdown(self) -> None:
        self.shutdown_calls += 1

    def create_window(self) -> FakeResource:
        resource = FakeResource("window")
        self.windows.append(resource)
        return resource

    def create_scroll_container(self) -> FakeResource:
        resource = FakeResource("scroll")
        self.containers.append(resource)
        return resource

    def create_browser(self) -> FakeResource:
        resource = FakeResource("browser")
        self.browsers.append(resource)
        return resource

    def add_child(self, parent: FakeResource, child: FakeResource) -> None:
        parent.children.append(child)

    def set_default_size(self, window: FakeResource, width: int, height: int) -> None:
        window.size = (width, height)

    def set_title(self, window: FakeResource, title: str) -> None:
        window.title = title

    def set_setting(self, browser: FakeResource, name: str, value: Any) -> None:
        browser.settings[name] = value

    def get_setting(self, browser: FakeResource, name: str) -> Any:
        return browser.settings.get(name)

    def load_uri(self, browser: FakeResource, url: str) -> None:
        browser.uri = url
        self.events.append(("load", url))

    def connect_destroy(self, resource: FakeResource, handler: Callable[[], None]) -> None:
        resource.destroy_handlers.append(handler)

    def connect_load_changed(self, browser: FakeResource, handler: Callable[[Any], None]) -> None:
        browser.load_handlers.append(handler)

    def connect_initialize_extensions(self, handler: Callable[[], None]) -> int:
        self._next_hook_id += 1
        self.extension_handlers[self._next_hook_id] = handler
        return self._next_hook_id

    def disconnect_initialize_extensions(self, hook_id: int) -> None:
        del self.extension_handlers[hook_id]

    def set_extensions_directory(self, path: str) -> None:
        self.extensions_directory = path

    def evaluate_script(self, browser: FakeResource, code: str, on_done) -> None:
        self.pending_scripts.append((code, on_done))

    def show_inspector(self, browser: FakeResource) -> bool:
        if not self.inspector:
            return False
        browser.inspector_shown = True
        return True

    def show_window(self, window: FakeResource) -> None:
        window.shown = True

    def destroy(self, resource: FakeResource) -> None:
        if resource.destroyed:
            return
        resource.destroyed = True
        self.events.append(("destroy", resource.kind))
        for handler in list(resource.destroy_handlers):
            handler()
        for child in resource.children:
            self.destroy(child)

    def main(self) -> None:
        self.main_calls += 1
        self.events.append(("main",))
        if self.on_main is not None:
            self.on_main()

    def main_iteration(self, blocking: bool) -> bool:
        self.iteration_flags.append(blocking)
        if self.on_iteration is not None:
            self.on_iteration(len(self.iteration_flags))
        if self.iterations <= 0:
            return False
        self.iterations -= 1
        return True

    def main_quit(self) -> None:
        self.quit_calls += 1
        self.events.append(("quit",))

    # Test helpers -----------------------------------------------------------

    def emit_load(self, raw: Any, browser: Optional[FakeResource] = None) -> None:
        state = translate_load_state(raw)
        if state is None:
            return
        for handler in list((browser or self.browser).load_handlers):
            handler(state)

    def finish_script(self, value: Any = None, error: Any = None) -> str:
        code, on_done = self.pending_scripts.pop(0)
        on_done(value, error)
        return code

    def fire_initialize_extensions(self) -> None:
        for handler in list(self.extension_handlers.values()):
            handler()


@pytest.fixture(autouse=True)
def _reset_runtime():
    runtime.shutdown()
    yield
    runtime.shutdown()


@pytest.fixture
def toolkit() -> FakeToolkit:
    fake = FakeToolkit()
    runtime.init(fake)
    return fake


@pytest.fixture
def view(toolkit):
    from alizarin.webview import WebView

    return WebView()
