"""pywebview launcher used by ``alizarin --simple``."""
from __future__ import annotations

import logging

from .config import WebViewConfig

LOGGER = logging.getLogger(__name__)


def launch_webview(config: WebViewConfig) -> None:
    """Open ``config.url`` in a plain pywebview window and block until closed.

    Settings, scripts and web extensions are not supported on this path.
    """
    try:
        import webview
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pywebview is required for --simple mode") from exc

    if config.settings or config.script or config.extension_dir:
        LOGGER.warning(
            "settings, script and extension_dir are ignored in simple mode"
        )
    webview.create_window(
        config.title, url=config.url, width=config.width, height=config.height
    )
    LOGGER.info("Opening pywebview window at %s", config.url)
    webview.start(gui=None, debug=config.inspector)
