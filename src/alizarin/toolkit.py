"""Boundary between the WebView facade and the GTK/WebKit toolkit."""

from __future__ import annotations

import abc
import enum
import json
import logging
import sys
from typing import Any, Callable, Optional, Sequence, Union

from .errors import InitializationError, ScriptExecutionError

LOGGER = logging.getLogger(__name__)

SettingValue = Union[bool, int, float, str]
ScriptHandler = Callable[[Any, Optional[ScriptExecutionError]], None]


class LoadState(enum.Enum):
    STARTED = "started"
    REDIRECTED = "redirected"
    COMMITTED = "committed"
    FINISHED = "finished"


# WebKitLoadEvent values as reported by the "load-changed" signal.
_RAW_LOAD_STATES = {
    0: LoadState.STARTED,
    1: LoadState.REDIRECTED,
    2: LoadState.COMMITTED,
    3: LoadState.FINISHED,
}


def translate_load_state(raw: Any) -> Optional[LoadState]:
    """Map a raw toolkit load code onto :class:`LoadState`.

    Unknown codes return ``None`` so callers can ignore them.
    """
    if isinstance(raw, LoadState):
        return raw
    try:
        code = int(raw)
    except (TypeError, ValueError):
        return None
    return _RAW_LOAD_STATES.get(code)


def jsc_to_python(value: Any) -> Any:
    """Convert a JavaScriptCore value into plain Python data."""
    if value is None or value.is_undefined() or value.is_null():
        return None
    if value.is_boolean():
        return value.to_boolean()
    if value.is_number():
        number = value.to_double()
        if number.is_integer():
            return int(number)
        return number
    if value.is_string():
        return value.to_string()
    serialized = value.to_json(0)
    if serialized is None:
        return value.to_string()
    return json.loads(serialized)


class Toolkit(abc.ABC):
    """Calls the facade makes into the windowing and browser toolkit.

    Resources returned by the ``create_*`` methods are opaque to the caller.
    Every handler is invoked on the thread running the toolkit's loop.
    """

    @abc.abstractmethod
    def initialize(self) -> None:
        """Start the toolkit, raising InitializationError on failure."""

    def shutdown(self) -> None:
        """Release process-wide toolkit state. Optional."""

    @abc.abstractmethod
    def create_window(self) -> Any: ...

    @abc.abstractmethod
    def create_scroll_container(self) -> Any: ...

    @abc.abstractmethod
    def create_browser(self) -> Any: ...

    @abc.abstractmethod
    def add_child(self, parent: Any, child: Any) -> None: ...

    @abc.abstractmethod
    def set_default_size(self, window: Any, width: int, height: int) -> None: ...

    @abc.abstractmethod
    def set_title(self, window: Any, title: str) -> None: ...

    @abc.abstractmethod
    def set_setting(self, browser: Any, name: str, value: SettingValue) -> None: ...

    @abc.abstractmethod
    def get_setting(self, browser: Any, name: str) -> Any: ...

    @abc.abstractmethod
    def load_uri(self, browser: Any, url: str) -> None: ...

    @abc.abstractmethod
    def connect_destroy(self, resource: Any, handler: Callable[[], None]) -> None: ...

    @abc.abstractmethod
    def connect_load_changed(
        self, browser: Any, handler: Callable[[LoadState], None]
    ) -> None: ...

    @abc.abstractmethod
    def connect_initialize_extensions(self, handler: Callable[[], None]) -> Any:
        """Hook extension start-up. Return an id for the disconnect call."""

    @abc.abstractmethod
    def disconnect_initialize_extensions(self, hook_id: Any) -> None: ...
    @abc.abstractmethod
    def set_extensions_directory(self, path: str) -> None: ...

    @abc.abstractmethod
    def evaluate_script(self, browser: Any, code: str, on_done: ScriptHandler) -> None:
        """Submit ``code``; ``on_done(value, error)`` runs when it completes."""

    @abc.abstractmethod
    def show_inspector(self, browser: Any) -> bool:
        """Show the developer inspector. Return False if unavailable."""

    @abc.abstractmethod
    def show_window(self, window: Any) -> None: ...

    @abc.abstractmethod
    def destroy(self, resource: Any) -> None: ...

    @abc.abstractmethod
    def main(self) -> None:
        """Block in the main loop until :meth:`main_quit` is called."""

    @abc.abstractmethod
    def main_iteration(self, blocking: bool) -> bool:
        """Run one loop iteration. Return False once the loop has ended.

        Views stop their own stepped loop when their window closes.
        """

    @abc.abstractmethod
    def main_quit(self) -> None: ...


class GtkToolkit(Toolkit):
    """Toolkit backed by GTK 3 and WebKit2GTK through PyGObject."""

    def __init__(
        self,
        *,
        gtk_version: str = "3.0",
        webkit_versions: Sequence[str] = ("4.1", "4.0"),
    ) -> None:
        self._gtk_version = gtk_version
        self._webkit_versions = tuple(webkit_versions)
        self.Gtk: Any = None
        self.GLib: Any = None
        self.WebKit2: Any = None
        self.webkit_version: Optional[str] = None

    def initialize(self) -> None:
        try:
            import gi
        except ImportError as exc:
            raise InitializationError(
                "PyGObject is required to drive WebKitGTK"
            ) from exc
        try:
            gi.require_version("Gtk", self._gtk_version)
        except ValueError as exc:
            raise InitializationError(
                f"GTK {self._gtk_version} is not available: {exc}"
            ) from exc
        for candidate in self._webkit_versions:
            try:
                gi.require_version("WebKit2", candidate)
            except ValueError:
                LOGGER.debug("WebKit2 %s not available", candidate)
                continue
            self.webkit_version = candidate
            break
        if self.webkit_version is None:
            raise InitializationError(
                "No usable WebKit2 namespace found (tried %s)"
                % ", ".join(self._webkit_versions)
            )

        from gi.repository import GLib, Gtk, WebKit2

        result = Gtk.init_check(sys.argv[:1])
        initialized = result[0] if isinstance(result, tuple) else result
        if not initialized:
            raise InitializationError("Gtk.init_check failed; is a display available?")
        self.Gtk = Gtk
        self.GLib = GLib
        self.WebKit2 = WebKit2
        LOGGER.debug(
            "Initialized GTK %s with WebKit2 %s", self._gtk_version, self.webkit_version
        )

    def create_window(self) -> Any:
        return self.Gtk.Window(type=self.Gtk.WindowType.TOPLEVEL)

    def create_scroll_container(self) -> Any:
        return self.Gtk.ScrolledWindow()

    def create_browser(self) -> Any:
        return self.WebKit2.WebView()

    def add_child(self, parent: Any, child: Any) -> None:
        parent.add(child)

    def set_default_size(self, window: Any, width: int, height: int) -> None:
        window.set_default_size(width, height)

    def set_title(self, window: Any, title: str) -> None:
        window.set_title(title)

    def set_setting(self, browser: Any, name: str, value: SettingValue) -> None:
        browser.get_settings().set_property(name, value)

    def get_setting(self, browser: Any, name: str) -> Any:
        return browser.get_settings().get_property(name)

    def load_uri(self, browser: Any, url: str) -> None:
        browser.load_uri(url)

    def connect_destroy(self, resource: Any, handler: Callable[[], None]) -> None:
        resource.connect("destroy", lambda _widget: handler())

    def connect_load_changed(
        self, browser: Any, handler: Callable[[LoadState], None]
    ) -> None:
        def on_load_changed(_view: Any, event: Any) -> None:
            state = translate_load_state(event)
            if state is None:
                LOGGER.debug("Ignoring unknown load event %r", event)
                return
            handler(state)

        browser.connect("load-changed", on_load_changed)

    def connect_initialize_extensions(self, handler: Callable[[], None]) -> Any:
        context = self.WebKit2.WebContext.get_default()
        return context.connect("initialize-web-extensions", lambda _context: handler())

    def disconnect_initialize_extensions(self, hook_id: Any) -> None:
        self.WebKit2.WebContext.get_default().disconnect(hook_id)

    def set_extensions_directory(self, path: str) -> None:
        self.WebKit2.WebContext.get_default().set_web_extensions_directory(path)

    def evaluate_script(self, browser: Any, code: str, on_done: ScriptHandler) -> None:
        if hasattr(browser, "evaluate_javascript"):

            def finished(view: Any, result: Any, _data: Any = None) -> None:
                self._complete_script(
                    on_done, lambda: view.evaluate_javascript_finish(result)
                )

            browser.evaluate_javascript(code, -1, None, None, None, finished, None)
            return

        def finished_legacy(view: Any, result: Any, _data: Any = None) -> None:
            def finish() -> Any:
                js_result = view.run_javascript_finish(result)
                return js_result.get_js_value() if js_result is not None else None

            self._complete_script(on_done, finish)

        browser.run_javascript(code, None, finished_legacy, None)

    def _complete_script(self, on_done: ScriptHandler, finish: Callable[[], Any]) -> None:
        try:
            value = finish()
        except self.GLib.Error as exc:
            on_done(None, ScriptExecutionError(exc.message))
            return
        if value is None:
            on_done(None, ScriptExecutionError("JavaScript returned no result"))
            return
        on_done(jsc_to_python(value), None)

    def show_inspector(self, browser: Any) -> bool:
        browser.get_settings().set_property("enable-developer-extras", True)
        inspector = browser.get_inspector()
        if inspector is None:
            return False
        inspector.show()
        return True

    def show_window(self, window: Any) -> None:
        window.show_all()

    def destroy(self, resource: Any) -> None:
        resource.destroy()

    def main(self) -> None:
        self.Gtk.main()

    def main_iteration(self, blocking: bool) -> bool:
        # main_iteration_do returns True once main_quit ended the innermost loop.
        return not self.Gtk.main_iteration_do(blocking)

    def main_quit(self) -> None:
        if self.Gtk.main_level() > 0:
            self.Gtk.main_quit()
