"""Process-wide toolkit state shared by every WebView."""

from __future__ import annotations

import logging
import threading
import weakref
from typing import TYPE_CHECKING, Optional

from .toolkit import GtkToolkit, Toolkit

if TYPE_CHECKING:  # pragma: no cover
    from .webview import WebView

LOGGER = logging.getLogger(__name__)

_lock = threading.RLock()
_toolkit: Optional[Toolkit] = None
_handles: "weakref.WeakSet[WebView]" = weakref.WeakSet()


def init(toolkit: Optional[Toolkit] = None) -> Toolkit:
    """Initialize the toolkit once and return it.

    Later calls return the already active toolkit and ignore ``toolkit``.
    If initialization raises, the runtime stays uninitialized.
    """
    global _toolkit
    with _lock:
        if _toolkit is not None:
            return _toolkit
        candidate = toolkit if toolkit is not None else GtkToolkit()
        candidate.initialize()
        _toolkit = candidate
        LOGGER.debug("Toolkit %s initialized", type(candidate).__name__)
        return candidate


def is_initialized() -> bool:
    return _toolkit is not None


def current() -> Optional[Toolkit]:
    return _toolkit


def register(handle: "WebView") -> None:
    with _lock:
        _handles.add(handle)


def shutdown() -> None:
    """Close every live WebView and forget the toolkit. Safe to repeat."""
    global _toolkit
    with _lock:
        if _toolkit is None:
            return
        handles = list(_handles)
        _handles.clear()
        try:
            for handle in handles:
                handle.close()
        finally:
            toolkit, _toolkit = _toolkit, None
            toolkit.shutdown()
        LOGGER.debug("Runtime shut down; closed %d handle(s)", len(handles))
