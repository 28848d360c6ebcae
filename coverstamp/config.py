from __future__ import annotations

import copy
import os
import platform
from pathlib import Path
from typing import Any

import yaml

from coverstamp.constants import (
    BROWSER_USER_AGENT,
    DEFAULT_CATEGORY_TEXT,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_QUALITY,
    DEFAULT_TEMPLATE_ID,
    FETCH_MAX_BYTES,
    FETCH_MAX_REDIRECTS,
    FETCH_TIMEOUT_S,
)

DEFAULT_CONFIG: dict[str, Any] = {
    "output_dir": "generated",
    "output_format": DEFAULT_OUTPUT_FORMAT,
    "quality": DEFAULT_QUALITY,
    "default_template": DEFAULT_TEMPLATE_ID,
    "default_category": DEFAULT_CATEGORY_TEXT,
    "fetch_timeout": FETCH_TIMEOUT_S,
    "max_redirects": FETCH_MAX_REDIRECTS,
    "max_image_bytes": FETCH_MAX_BYTES,
    "user_agent": BROWSER_USER_AGENT,
    "font_path": None,
    "log_level": "info",
}


def get_user_data_dir() -> Path:
    """Per-user writable directory for CoverStamp settings."""
    system_name = platform.system().lower()
    if system_name == "windows":
        base = (
            os.environ.get("APPDATA")
            or os.environ.get("LOCALAPPDATA")
            or str(Path.home() / "AppData" / "Roaming")
        )
        return Path(base) / "CoverStamp"
    if system_name == "darwin":
        return Path.home() / "Library" / "Application Support" / "CoverStamp"

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "CoverStamp"
    return Path.home() / ".config" / "CoverStamp"


def get_config_path() -> Path:
    return get_user_data_dir() / "config.yaml"


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict[str, Any]:
    cfg_path = path or get_config_path()
    if not cfg_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    text = cfg_path.read_text(encoding="utf-8")
    loaded = yaml.safe_load(text) or {}
    if not isinstance(loaded, dict):
        loaded = {}
    return _deep_merge(DEFAULT_CONFIG, loaded)


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    cfg_path = path or get_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    if cfg_path.exists() and not force:
        return cfg_path
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg_path.write_text(yaml.safe_dump(cfg, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return cfg_path
