"""Exception types raised by alizarin."""

from __future__ import annotations


class AlizarinError(RuntimeError):
    """Base class for errors raised by the wrapper itself."""


class InitializationError(AlizarinError):
    """The GTK/WebKit toolkit could not be started."""


class ScriptExecutionError(AlizarinError):
    """A submitted JavaScript snippet failed to evaluate."""
