"""Command-line entry point for alizarin."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from . import runtime
from .config import (
    WebViewConfig,
    default_config_path,
    load_config_file,
    render_default_config_template,
)
from .errors import InitializationError

if TYPE_CHECKING:  # pragma: no cover
    from .webview import WebView

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Alizarin – open a URL in a WebKitGTK window"
    )
    parser.add_argument(
        "url", nargs="?", default=None, help="URL to load (default: about:blank)"
    )
    parser.add_argument("--title", default=None, help="Window title (default: Alizarin)")
    parser.add_argument(
        "--width", type=int, default=None, help="Default window width (default: 800)"
    )
    parser.add_argument(
        "--height", type=int, default=None, help="Default window height (default: 600)"
    )
    parser.add_argument(
        "--extension-dir",
        default=None,
        help="Directory containing WebKit web extensions",
    )
    parser.add_argument(
        "--setting",
        action="append",
        metavar="NAME=VALUE",
        help="WebKitSettings property to set; may be repeated",
    )
    parser.add_argument(
        "--script",
        default=None,
        help="JavaScript to evaluate after each page load; the result is printed as JSON",
    )
    parser.add_argument(
        "--inspector", action="store_true", help="Open the web inspector on start"
    )
    parser.add_argument(
        "--step",
        action="store_true",
        help="Pump the main loop one iteration at a time instead of gtk_main",
    )
    parser.add_argument(
        "--simple",
        action="store_true",
        help="Open the URL with pywebview instead of driving WebKitGTK directly",
    )
    parser.add_argument(
        "--log-level", help="Logging level (default: INFO)", default=None
    )
    parser.add_argument(
        "--config",
        help="Path to configuration file (JSON/TOML/YAML). Overrides may be provided by CLI flags.",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print an annotated configuration template (TOML) and exit.",
    )
    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )


def _log_iteration(view: "WebView") -> None:
    LOGGER.debug("Main loop iteration (load state: %s)", view.load_state)


def _print_result(value: Any) -> None:
    print(json.dumps(value, default=str))
    sys.stdout.flush()


def configure_webview(config: WebViewConfig) -> "WebView":
    """Create a WebView and apply ``config`` to it, without running it."""
    from .webview import WebView

    view = WebView()
    if config.extension_dir is not None:
        view.set_extension_directory(config.extension_dir)
    view.set_title(config.title)
    view.set_default_size(config.width, config.height)
    for name, value in config.settings.items():
        view.set_setting(name, value)
    view.on_close(lambda _view: LOGGER.info("Window closed"))
    if config.script:
        script = config.script
        view.on_document_loaded(lambda loaded: loaded.execute_script(script))
        view.on_script_finished(_print_result)
    if config.inspector:
        view.show_inspector()
    view.load_url(config.url)
    return view


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "print_config", False):
        print(render_default_config_template())
        return 0

    config_path_input = args.config
    if not config_path_input:
        discovered = default_config_path()
        config_path_input = str(discovered) if discovered else None

    config_data = None
    loaded_config_path = None
    if config_path_input:
        loaded_config_path = Path(config_path_input).expanduser()
        try:
            config_data = load_config_file(loaded_config_path)
        except FileNotFoundError:
            LOGGER.error("Configuration file not found: %s", loaded_config_path)
            return 2
        except Exception as exc:
            LOGGER.error("Failed to load configuration %s: %s", loaded_config_path, exc)
            return 2
        if config_data is None:
            config_data = {}
        elif not isinstance(config_data, Mapping):
            LOGGER.error(
                "Configuration root must be a mapping; got %s", type(config_data).__name__
            )
            return 2
        loaded_config_path = loaded_config_path.resolve()

    try:
        config = WebViewConfig.from_sources(
            args,
            file_options=config_data,
            config_path=loaded_config_path,
        )
    except (TypeError, ValueError) as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 2
    setup_logging(config.log_level)
    if loaded_config_path:
        LOGGER.info("Loaded configuration from %s", loaded_config_path)

    if config.simple:
        from .webview_app import launch_webview

        try:
            launch_webview(config)
        except RuntimeError as exc:
            LOGGER.error("unable to launch pywebview: %s", exc)
            return 1
        return 0

    try:
        try:
            view = configure_webview(config)
        except InitializationError as exc:
            LOGGER.error("Unable to start WebKitGTK: %s", exc)
            return 1
        except (TypeError, ValueError) as exc:
            LOGGER.error("Invalid configuration: %s", exc)
            return 2
        if config.blocking:
            view.run()
        else:
            view.run(_log_iteration, blocking=True)
    except KeyboardInterrupt:
        LOGGER.info("Shutting down...")
    finally:
        runtime.shutdown()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
