"""Configuration helpers for alizarin."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from textwrap import dedent
from typing import Any, Mapping, Optional, Union

DEFAULT_CONFIG_NAME = ".alizarin.toml"


def default_config_path() -> Optional[Path]:
    """Return ``$ALIZARIN_CONFIG`` or ``~/.alizarin.toml`` when it exists."""
    env_path = os.getenv("ALIZARIN_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    candidate = Path.home() / DEFAULT_CONFIG_NAME
    if candidate.exists():
        return candidate
    return None


def load_config_file(config_path: Path) -> Mapping[str, Any]:
    config_path = config_path.expanduser().resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    suffix = config_path.suffix.lower()
    if suffix in {".json"}:
        return json.loads(config_path.read_text(encoding="utf-8"))
    if suffix in {".toml", ".tml"}:
        try:
            import tomllib  # type: ignore[attr-defined]
        except ModuleNotFoundError:  # pragma: no cover - Python <3.11
            try:
                import tomli as tomllib  # type: ignore[import-not-found]
            except ModuleNotFoundError as fallback_exc:  # pragma: no cover
                raise RuntimeError(
                    "TOML configuration requested but neither tomllib nor tomli is available. "
                    "Install tomli or upgrade to Python 3.11+."
                ) from fallback_exc
        return tomllib.loads(config_path.read_text(encoding="utf-8"))
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml
        except ModuleNotFoundError as exc:  # pragma: no cover - optional dep
            raise RuntimeError(
                "YAML configuration requested but PyYAML is not installed."
            ) from exc
        return yaml.safe_load(config_path.read_text(encoding="utf-8"))
    # Default to JSON parsing for unknown suffixes.
    return json.loads(config_path.read_text(encoding="utf-8"))


def parse_setting_value(raw: str) -> Union[bool, int, float, str]:
    """Interpret a ``--setting`` value typed on the command line."""
    lowered = raw.strip().lower()
    if lowered in {"true", "yes", "on"}:
        return True
    if lowered in {"false", "no", "off"}:
        return False
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return raw


def parse_setting_assignments(values: Optional[list[str]]) -> dict[str, Any]:
    settings: dict[str, Any] = {}
    for item in values or []:
        name, sep, raw = item.partition("=")
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"Expected NAME=VALUE for --setting, got {item!r}")
        settings[name] = parse_setting_value(raw)
    return settings


@dataclass
class WebViewConfig:
    url: str = "about:blank"
    title: str = "Alizarin"
    width: int = 800
    height: int = 600
    extension_dir: Optional[Path] = None
    settings: dict[str, Any] = field(default_factory=dict)
    script: Optional[str] = None
    inspector: bool = False
    blocking: bool = True
    simple: bool = False
    log_level: str = "INFO"
    config_file: Optional[Path] = None

    @classmethod
    def from_sources(
        cls,
        args: "argparse.Namespace",
        *,
        file_options: Optional[Mapping[str, Any]] = None,
        config_path: Optional[Path] = None,
    ) -> "WebViewConfig":
        options = dict(file_options or {})

        def option(name: str, *aliases: str, default: Any = None) -> Any:
            for key in (name, *aliases):
                if key in options and options[key] is not None:
                    return options[key]
            return default

        def resolve(name: str, *aliases: str, default: Any = None) -> Any:
            value = getattr(args, name, None)
            if value is not None:
                return value
            return option(name, *aliases, default=default)

        config_base = config_path.parent if config_path else None

        extension_dir: Optional[Path] = None
        cli_extension_dir = getattr(args, "extension_dir", None)
        extension_option = option("extension_dir", "extensions")
        if cli_extension_dir:
            extension_dir = Path(cli_extension_dir).expanduser().resolve()
        elif extension_option:
            path = Path(str(extension_option)).expanduser()
            if config_base and not path.is_absolute():
                path = config_base / path
            extension_dir = path.resolve()

        settings_option = option("settings", default={})
        if not isinstance(settings_option, Mapping):
            raise ValueError("'settings' must be a table of NAME = VALUE pairs")
        settings = {str(key): value for key, value in settings_option.items()}
        settings.update(parse_setting_assignments(getattr(args, "setting", None)))
        for name, value in settings.items():
            if not isinstance(value, (bool, int, float, str)):
                raise ValueError(
                    f"setting {name!r} must be a bool, number or string, "
                    f"got {type(value).__name__}"
                )

        inspector = bool(getattr(args, "inspector", False) or option("inspector", default=False))
        if inspector:
            settings.setdefault("enable-developer-extras", True)

        step_mode = bool(getattr(args, "step", False))
        blocking_option = option("blocking")
        blocking = not step_mode and (
            bool(blocking_option) if blocking_option is not None else True
        )

        script_value = resolve("script")
        width_value = int(resolve("width", default=800))
        height_value = int(resolve("height", default=600))
        if width_value <= 0 or height_value <= 0:
            raise ValueError(
                f"window size must be positive, got {width_value}x{height_value}"
            )

        return cls(
            url=str(resolve("url", default="about:blank")),
            title=str(resolve("title", default="Alizarin")),
            width=width_value,
            height=height_value,
            extension_dir=extension_dir,
            settings=settings,
            script=str(script_value) if script_value else None,
            inspector=inspector,
            blocking=blocking,
            simple=bool(getattr(args, "simple", False) or option("simple", default=False)),
            log_level=str(resolve("log_level", default="INFO")).upper(),
            config_file=config_path,
        )


def render_default_config_template() -> str:
    """Return an annotated TOML configuration template."""
    return dedent(
        """\
        # Alizarin configuration template
        # Save as ~/.alizarin.toml or point --config / ALIZARIN_CONFIG here.

        # --- Window ------------------------------------------------------------
        url = "about:blank"
        title = "Alizarin"
        width = 800
        height = 600

        # --- Browser -----------------------------------------------------------
        # Directory holding WebKit web extensions (.so). Relative paths are
        # resolved against this file's directory.
        # extension_dir = "extensions"
        inspector = false
        # JavaScript evaluated after every document load; result printed as JSON.
        # script = "document.title"

        # --- Main loop ---------------------------------------------------------
        # false pumps the loop one iteration at a time instead of gtk_main.
        blocking = true
        # true opens the URL with pywebview instead of WebKitGTK directly.
        simple = false
        log_level = "INFO"

        # WebKitSettings properties, see
        # https://webkitgtk.org/reference/webkit2gtk/stable/WebKitSettings.html
        [settings]
        enable-developer-extras = false
        enable-html5-local-storage = true

        # Install extras:
        #   pip install alizarin[yaml,ui]
        """
    )
