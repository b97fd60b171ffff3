"""alizarin: a small object-oriented wrapper around WebKitGTK."""

from .errors import AlizarinError, InitializationError, ScriptExecutionError
from .runtime import init, shutdown
from .toolkit import GtkToolkit, LoadState, Toolkit
from .webview import CallbackTable, Event, WebView

__all__ = [
    "AlizarinError",
    "CallbackTable",
    "Event",
    "GtkToolkit",
    "InitializationError",
    "LoadState",
    "ScriptExecutionError",
    "Toolkit",
    "WebView",
    "init",
    "shutdown",
]
