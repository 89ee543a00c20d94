"""Runtime configuration registry for template loading and locales.

Provides centralized configuration for locale defaults and template layout.
Environment variables take precedence over YAML config.

Usage:
    from promptdoc.config.runtime_config import get_default_locale, get_locales_dir

    locale = get_default_locale()  # Returns "en" unless overridden
    locales_dir = get_locales_dir()  # Returns a Path or None

Values are read by callers and passed into constructors explicitly; nothing in
this module searches the filesystem for a locales directory.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(__file__).parent / "runtime.yaml"
_cached_config: Optional[Dict[str, Any]] = None

ENV_DEFAULT_LOCALE = "PROMPTDOC_DEFAULT_LOCALE"
ENV_LOCALES_DIR = "PROMPTDOC_LOCALES_DIR"


@dataclass(frozen=True)
class RuntimeSettings:
    """Resolved configuration values after environment overrides."""

    default_locale: str
    locales_dir: Optional[Path]
    locale_file_extensions: Tuple[str, ...]
    rtl_languages: Tuple[str, ...]
    template_extension: str
    conversations_subdir: str


def _load_config() -> Dict[str, Any]:
    """Load runtime.yaml configuration, with caching."""
    global _cached_config
    if _cached_config is not None:
        return _cached_config

    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH, encoding="utf-8") as f:
            _cached_config = yaml.safe_load(f) or {}
        logger.debug("Loaded runtime config from %s", _CONFIG_PATH)
    else:
        _cached_config = _default_config()

    return _cached_config


def _default_config() -> Dict[str, Any]:
    """Return default configuration if runtime.yaml doesn't exist."""
    return {
        "version": "1.0",
        "locale": {
            "default": "en",
            "locales_dir": None,
            "file_extensions": [".yaml", ".yml"],
            "rtl_languages": ["ar", "he", "fa", "ur"],
        },
        "templates": {
            "extension": ".md",
            "conversations_subdir": "conversations",
        },
    }


def reset_config() -> None:
    """Reset cached config (for testing)."""
    global _cached_config
    _cached_config = None


def _section(name: str) -> Dict[str, Any]:
    config = _load_config()
    section = config.get(name) or {}
    if not isinstance(section, dict):
        logger.warning("Ignoring malformed '%s' section in runtime config", name)
        return {}
    return section


def get_default_locale() -> str:
    """Get the default locale.

    Precedence (highest to lowest):
    1. PROMPTDOC_DEFAULT_LOCALE
    2. Config file value (locale.default)
    3. Default: "en"
    """
    env_value = os.environ.get(ENV_DEFAULT_LOCALE)
    if env_value:
        return env_value.strip()

    config_value = _section("locale").get("default")
    if config_value:
        return str(config_value)

    return "en"


def get_locales_dir() -> Optional[Path]:
    """Get the configured locales directory, or None when not configured.

    Precedence (highest to lowest):
    1. PROMPTDOC_LOCALES_DIR
    2. Config file value (locale.locales_dir)
    """
    env_value = os.environ.get(ENV_LOCALES_DIR)
    if env_value:
        return Path(env_value)

    config_value = _section("locale").get("locales_dir")
    if config_value:
        return Path(config_value)

    return None


def get_locale_file_extensions() -> Tuple[str, ...]:
    """Get file extensions recognized as locale tables."""
    extensions = _section("locale").get("file_extensions") or [".yaml", ".yml"]
    return tuple(ext if ext.startswith(".") else f".{ext}" for ext in extensions)


def get_rtl_languages() -> Tuple[str, ...]:
    """Get language codes rendered right-to-left by default."""
    languages = _section("locale").get("rtl_languages")
    if languages is None:
        return ("ar", "he", "fa", "ur")
    return tuple(str(lang) for lang in languages)


def get_template_extension() -> str:
    """Get the file extension of template documents."""
    return str(_section("templates").get("extension") or ".md")


def get_conversations_subdir() -> str:
    """Get the subdirectory holding conversation templates."""
    return str(_section("templates").get("conversations_subdir") or "conversations")


def get_runtime_settings() -> RuntimeSettings:
    """Resolve every setting into a single snapshot."""
    return RuntimeSettings(
        default_locale=get_default_locale(),
        locales_dir=get_locales_dir(),
        locale_file_extensions=get_locale_file_extensions(),
        rtl_languages=get_rtl_languages(),
        template_extension=get_template_extension(),
        conversations_subdir=get_conversations_subdir(),
    )
