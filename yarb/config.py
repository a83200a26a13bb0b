"""Persistent user settings."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from typing import Any

from yarb import log


@dataclass
class EasyFlags:
    """High-level toggles that expand into FastFlags."""

    disable_telemetry: bool = True
    render_api: str = "Default"
    fps_limit: int = 0
    lighting_technology: str = "Automatic"
    dpi_scaling: bool = True
    shadows: bool = True
    render_distance: int = 0
    limit_light_updates: bool = False
    light_fades: bool = True
    fix_fog: bool = False
    post_fx: bool = True
    better_vision: bool = False
    disable_ads: bool = True
    disable_fullscreen_titlebar: bool = False


def _as_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected string, got {type(value).__name__}")
    return value


def _as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected boolean, got {type(value).__name__}")
    return value


def _as_int(value: Any) -> int:
    if not isinstance(value, (int, float)):
        raise TypeError(f"expected number, got {type(value).__name__}")
    return int(value)


def _as_flags(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        raise TypeError(f"expected object, got {type(value).__name__}")
    return {key: _as_str(item) for key, item in value.items()}


_EASY_FLAG_CONVERTERS = {
    "disable_telemetry": _as_bool,
    "render_api": _as_str,
    "fps_limit": _as_int,
    "lighting_technology": _as_str,
    "dpi_scaling": _as_bool,
    "shadows": _as_bool,
    "render_distance": _as_int,
    "limit_light_updates": _as_bool,
    "light_fades": _as_bool,
    "fix_fog": _as_bool,
    "post_fx": _as_bool,
    "better_vision": _as_bool,
    "disable_ads": _as_bool,
    "disable_fullscreen_titlebar": _as_bool,
}


@dataclass
class Config:
    """User settings stored as JSON."""

    installed_version: str = ""
    fast_flags: dict[str, str] = field(default_factory=dict)
    verify_integrity_on_launch: bool = False
    easy_flags: EasyFlags = field(default_factory=EasyFlags)
    prevent_multi_launch: bool = True
    debug_mode: bool = False
    query_server_location: bool = False
    efficient_download: bool = True
    discord_rpc: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the settings as a JSON-ready dictionary."""
        return {
            "installed_version": self.installed_version,
            "verify_integrity_on_launch": self.verify_integrity_on_launch,
            "prevent_multi_launch": self.prevent_multi_launch,
            "query_server_location": self.query_server_location,
            "debug_mode": self.debug_mode,
            "fast_flags": dict(self.fast_flags),
            "efficient_download": self.efficient_download,
            "discord_rpc": self.discord_rpc,
            "easy_flags": asdict(self.easy_flags),
        }

    def load(self, path: str | os.PathLike[str]) -> None:
        """Read settings from ``path``.

        Fields are taken in order until one is missing or mistyped; on any
        failure an error is logged and the remaining fields keep their values.
        """
        try:
            with open(path, encoding="utf-8") as stream:
                data = json.load(stream)
            if not isinstance(data, dict):
                raise TypeError("config root is not an object")

            self.installed_version = _as_str(data.get("installed_version"))
            self.verify_integrity_on_launch = _as_bool(data.get("verify_integrity_on_launch"))
            self.prevent_multi_launch = _as_bool(data.get("prevent_multi_launch"))
            self.query_server_location = _as_bool(data.get("query_server_location"))
            self.debug_mode = _as_bool(data.get("debug_mode"))
            self.fast_flags = _as_flags(data.get("fast_flags"))
            self.efficient_download = _as_bool(data.get("efficient_download"))
            self.discord_rpc = _as_bool(data.get("discord_rpc"))

            easy = data.get("easy_flags")
            if isinstance(easy, dict):
                self.easy_flags = EasyFlags(
                    **{name: convert(easy.get(name)) for name, convert in _EASY_FLAG_CONVERTERS.items()}
                )
        except (OSError, ValueError, TypeError):
            log.error("Config.load", "Failed to load config. Using defaults")

    def save(self, path: str | os.PathLike[str]) -> None:
        """Write settings to ``path`` as indented JSON."""
        text = json.dumps(self.to_dict(), indent=4, sort_keys=True, ensure_ascii=False)
        with open(path, "w", encoding="utf-8") as stream:
            stream.write(text)


_CONFIG = Config()


def get_config() -> Config:
    """Return the process-wide configuration object."""
    return _CONFIG