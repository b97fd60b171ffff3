"""The :class:`WebView` facade over a GTK window hosting a WebKit browser."""

from __future__ import annotations

import enum
import logging
import os
from typing import Any, Callable, Dict, Optional, Union

from . import runtime
from .errors import ScriptExecutionError
from .toolkit import LoadState, SettingValue, Toolkit

LOGGER = logging.getLogger(__name__)


class Event(enum.Enum):
    CLOSE = "close"
    DOCUMENT_LOADED = "document-loaded"
    SCRIPT_FINISHED = "script-finished"


class CallbackTable:
    """Single-slot callback registry keyed by :class:`Event`.

    Registering a callback for an event replaces whatever was there before.
    """

    def __init__(self) -> None:
        self._slots: Dict[Event, Callable[..., Any]] = {}

    def set(self, event: Event, callback: Callable[..., Any]) -> None:
        if not callable(callback):
            raise TypeError(f"callback for {event.value} must be callable")
        self._slots[event] = callback

    def get(self, event: Event) -> Optional[Callable[..., Any]]:
        return self._slots.get(event)

    def clear(self, event: Optional[Event] = None) -> None:
        if event is None:
            self._slots.clear()
        else:
            self._slots.pop(event, None)

    def __contains__(self, event: object) -> bool:
        return event in self._slots


class WebView:
    """A top-level window containing a scrollable WebKit browser.

    All callbacks run on the thread that drives :meth:`run`.

    ```
    view = WebView()
    view.title = "Alizarin App"
    view["enable-developer-extras"] = True
    view.on_document_loaded(lambda v: v.execute_script("document.title"))
    view.on_script_finished(print)
    view.load_url("https://example.com")
    view.run()
    ```
    """

    def __init__(self, toolkit: Optional[Toolkit] = None) -> None:
        # ``toolkit`` only takes effect if the runtime is not initialized yet.
        self._toolkit = runtime.init(toolkit)
        self._window = self._toolkit.create_window()
        self._scroll = self._toolkit.create_scroll_container()
        self._browser = self._toolkit.create_browser()
        self._toolkit.add_child(self._window, self._scroll)
        self._toolkit.add_child(self._scroll, self._browser)

        self._callbacks = CallbackTable()
        self._extension_dir = ""
        self._extension_hook_id: Any = None
        self._extensions_initialized = False
        self._title: Optional[str] = None
        self._load_state: Optional[LoadState] = None
        self._browser_destroyed = False
        self._closed = False
        self._in_main = False

        self._toolkit.connect_destroy(self._window, self._handle_destroy)
        self._toolkit.connect_load_changed(self._browser, self._handle_load_changed)
        runtime.register(self)

    @property
    def toolkit(self) -> Toolkit:
        return self._toolkit

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def load_state(self) -> Optional[LoadState]:
        """Latest load state of the current navigation, ``None`` while idle."""
        return self._load_state

    @property
    def extension_dir(self) -> str:
        return self._extension_dir

    @extension_dir.setter
    def extension_dir(self, path: Union[str, "os.PathLike[str]"]) -> None:
        self.set_extension_directory(path)

    def set_extension_directory(self, path: Union[str, "os.PathLike[str]"]) -> None:
        """Tell WebKit where to look for web extensions.

        Must be called before the first :meth:`load_url`; WebKit reads the
        directory only once, when it initializes its extension subsystem.
        """
        self._extension_dir = os.fspath(path)
        if self._extension_hook_id is not None or self._extensions_initialized:
            return
        self._extension_hook_id = self._toolkit.connect_initialize_extensions(
            self._handle_initialize_extensions
        )

    def set_default_size(self, width: int, height: int) -> None:
        for name, value in (("width", width), ("height", height)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{name} must be an int, got {type(value).__name__}")
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        self._toolkit.set_default_size(self._window, width, height)

    @property
    def title(self) -> Optional[str]:
        return self._title

    @title.setter
    def title(self, text: str) -> None:
        self.set_title(text)

    def set_title(self, text: str) -> None:
        self._title = str(text)
        self._toolkit.set_title(self._window, self._title)

    def set_setting(self, name: str, value: SettingValue) -> None:
        """Set a WebKitSettings property such as ``enable-developer-extras``."""
        if not isinstance(value, (bool, int, float, str)):
            raise TypeError(
                f"setting {name!r} must be bool, number or str, "
                f"got {type(value).__name__}"
            )
        self._toolkit.set_setting(self._browser, name, value)

    def get_setting(self, name: str) -> Any:
        return self._toolkit.get_setting(self._browser, name)

    def __setitem__(self, name: str, value: SettingValue) -> None:
        self.set_setting(name, value)

    def __getitem__(self, name: str) -> Any:
        return self.get_setting(name)

    def load_url(self, url: str) -> None:
        """Start navigating to ``url`` and return immediately."""
        self._load_state = None
        LOGGER.info("Loading %s", url)
        self._toolkit.load_uri(self._browser, url)

    def on_close(self, callback: Callable[["WebView"], Any]) -> None:
        """Call ``callback(view)`` after the window is destroyed.

        The browser widget is already destroyed when the callback runs.
        """
        self._callbacks.set(Event.CLOSE, callback)

    def on_document_loaded(self, callback: Callable[["WebView"], Any]) -> None:
        self._callbacks.set(Event.DOCUMENT_LOADED, callback)

    def on_script_finished(self, callback: Callable[[Any], Any]) -> None:
        """Call ``callback(value)`` each time :meth:`execute_script` succeeds.

        ``value`` is the script's result converted to Python data.
        """
        self._callbacks.set(Event.SCRIPT_FINISHED, callback)

    def execute_script(self, code: str) -> None:
        """Evaluate JavaScript asynchronously in the loaded page."""
        self._toolkit.evaluate_script(self._browser, code, self._handle_script_finished)

    def show_inspector(self) -> bool:
        shown = self._toolkit.show_inspector(self._browser)
        if shown:
            LOGGER.info("Opened web inspector")
        else:
            LOGGER.debug("Web inspector unavailable in this toolkit build")
        return shown

    def run(
        self,
        step: Optional[Callable[["WebView"], Any]] = None,
        *,
        blocking: bool = False,
    ) -> None:
        """Show the window and pump the toolkit loop until it closes.

        Without ``step`` this blocks inside the toolkit's own main loop. With
        ``step`` the loop is driven one iteration at a time and
        ``step(view)`` runs after every iteration; ``blocking`` makes each
        iteration wait for an event. Closing this view's window ends the
        loop; other views closing do not.
        """
        if self._closed:
            return
        self._toolkit.show_window(self._window)
        if step is None:
            self._in_main = True
            try:
                self._toolkit.main()
            finally:
                self._in_main = False
            return
        while not self._closed:
            if not self._toolkit.main_iteration(blocking) or self._closed:
                break
            step(self)

    def close(self) -> None:
        """Destroy the window and everything in it. Safe to call twice."""
        if self._closed:
            return
        self._toolkit.destroy(self._window)
        if not self._closed:
            self._handle_destroy()

    def _handle_destroy(self) -> None:
        if self._closed:
            return
        self._closed = True
        if not self._browser_destroyed:
            self._browser_destroyed = True
            self._toolkit.destroy(self._browser)
        self._disconnect_extension_hook()
        LOGGER.info("WebView window closed")
        callback = self._callbacks.get(Event.CLOSE)
        try:
            if callback is not None:
                callback(self)
        finally:
            if self._in_main:
                self._toolkit.main_quit()

    def _handle_load_changed(self, state: LoadState) -> None:
        previous, self._load_state = self._load_state, state
        if state is not LoadState.FINISHED or previous is LoadState.FINISHED:
            return
        callback = self._callbacks.get(Event.DOCUMENT_LOADED)
        if callback is not None:
            callback(self)

    def _handle_script_finished(
        self, value: Any, error: Optional[ScriptExecutionError]
    ) -> None:
        if error is not None:
            LOGGER.error("JavaScript execution failed: %s", error)
            return
        callback = self._callbacks.get(Event.SCRIPT_FINISHED)
        if callback is not None:
            callback(value)

    def _handle_initialize_extensions(self) -> None:
        if self._extensions_initialized:
            return
        self._extensions_initialized = True
        self._disconnect_extension_hook()
        LOGGER.debug("Using web extension directory %s", self._extension_dir)
        self._toolkit.set_extensions_directory(self._extension_dir)

    def _disconnect_extension_hook(self) -> None:
        if self._extension_hook_id is None:
            return
        hook_id, self._extension_hook_id = self._extension_hook_id, None
        self._toolkit.disconnect_initialize_extensions(hook_id)
