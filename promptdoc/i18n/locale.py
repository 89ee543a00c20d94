"""
locale.py - Load per-locale translation tables and resolve fallback chains.

Locale data lives in one directory per locale id:

    locales/
        en/messages.yaml
        es/messages.yaml
        es/errors.yml
        ar/messages.yaml

Every YAML file of a locale directory is merged into one table. Files are
merged in lexicographic filename order and later files override earlier ones
key by key, so the result does not depend on filesystem enumeration order.

Resolution follows the chain requested -> language prefix -> default:
"es-MX" resolves to "es-MX" when that directory exists, otherwise "es",
otherwise the manager's default locale.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from promptdoc.config.runtime_config import (
    get_default_locale,
    get_locale_file_extensions,
    get_rtl_languages,
)
from promptdoc.errors import (
    I18nKeyNotFoundError,
    LocaleConfigError,
    LocaleNotFoundError,
    TemplateParseError,
)

logger = logging.getLogger(__name__)

TEXT_DIRECTION_KEY = "text_direction"

# (thousands separator, decimal separator) per language; others use ("," ".")
_NUMBER_SEPARATORS = {
    "de": (".", ","),
    "es": (".", ","),
    "it": (".", ","),
    "nl": (".", ","),
    "pt": (".", ","),
}


class TextDirection(str, Enum):
    """Writing direction of a locale."""

    LEFT_TO_RIGHT = "ltr"
    RIGHT_TO_LEFT = "rtl"


def language_of(locale: str) -> str:
    """Return the language part of a locale id ("es-MX" -> "es")."""
    return locale.split("-", 1)[0]


def default_text_direction(locale: str) -> TextDirection:
    """Text direction implied by the language of ``locale``."""
    if language_of(locale) in get_rtl_languages():
        return TextDirection.RIGHT_TO_LEFT
    return TextDirection.LEFT_TO_RIGHT


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({str(k): _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _param_to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), default=str)


@dataclass(frozen=True)
class LocaleData:
    """Translations and formatting metadata for one locale.

    ``strings`` is a read-only nested mapping; dotted keys address nested maps.
    """

    locale: str
    strings: Mapping[str, Any]
    text_direction: TextDirection = TextDirection.LEFT_TO_RIGHT

    def get_value(self, key: str) -> Optional[Any]:
        """Walk a dotted key through nested maps, returning None when absent."""
        current: Any = self.strings
        for segment in key.split("."):
            if not isinstance(current, Mapping) or segment not in current:
                return None
            current = current[segment]
        return current

    def get_string(self, key: str) -> Optional[str]:
        """Get a translation string by (dotted) key."""
        value = self.get_value(key)
        return value if isinstance(value, str) else None

    def has_key(self, key: str) -> bool:
        return self.get_string(key) is not None

    def interpolate(self, key: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Look up ``key`` and substitute ``{name}`` placeholders from ``params``.

        Placeholders without a matching parameter are left untouched.

        Raises:
            I18nKeyNotFoundError: If the key has no string value in this locale.
        """
        template = self.get_string(key)
        if template is None:
            raise I18nKeyNotFoundError(key, self.locale)

        result = template
        for name, value in (params or {}).items():
            result = result.replace("{" + name + "}", _param_to_string(value))
        return result

    def format_number(self, number: float, precision: int = 2) -> str:
        """Format a number with this locale's grouping and decimal separators."""
        thousands, decimal = _NUMBER_SEPARATORS.get(language_of(self.locale), (",", "."))
        formatted = f"{number:,.{precision}f}"
        if (thousands, decimal) == (",", "."):
            return formatted
        return formatted.replace(",", "\x00").replace(".", decimal).replace("\x00", thousands)

    def format_percentage(self, value: float) -> str:
        """Format a ratio as a percentage ("0.25" -> "25%")."""
        formatted = self.format_number(value * 100)
        _, decimal = _NUMBER_SEPARATORS.get(language_of(self.locale), (",", "."))
        if decimal in formatted:
            formatted = formatted.rstrip("0").rstrip(decimal)
        return f"{formatted}%"

    @property
    def is_rtl(self) -> bool:
        return self.text_direction is TextDirection.RIGHT_TO_LEFT


class LocaleManager:
    """Loads locale data from a locales directory and caches it per locale id.

    A manager may be shared between templates and threads; the cache is the
    only mutable state and is guarded by a lock.
    """

    def __init__(
        self,
        locales_path: Union[str, Path],
        default_locale: Optional[str] = None,
    ):
        self.locales_path = Path(locales_path)
        if not self.locales_path.is_dir():
            raise LocaleConfigError(self.locales_path)

        self.default_locale = default_locale or get_default_locale()
        self._cache: Dict[str, LocaleData] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"LocaleManager(locales_path={str(self.locales_path)!r}, "
            f"default_locale={self.default_locale!r})"
        )

    def _fallback_chain(self, locale: str) -> List[str]:
        chain: List[str] = []
        for candidate in (locale, language_of(locale), self.default_locale):
            if candidate and candidate not in chain:
                chain.append(candidate)
        return chain

    def resolve_locale(self, requested_locale: str) -> str:
        """Resolve a locale id through the fallback chain.

        Returns:
            The first locale id in the chain with an existing directory.

        Raises:
            LocaleNotFoundError: If no candidate has a directory.
        """
        for candidate in self._fallback_chain(requested_locale):
            if (self.locales_path / candidate).is_dir():
                if candidate != requested_locale:
                    logger.debug(
                        "Locale %s resolved to fallback %s", requested_locale, candidate
                    )
                return candidate

        raise LocaleNotFoundError(requested_locale)

    def resolve_locale_path(self, locale: str) -> Path:
        """Resolve the directory backing ``locale`` (with fallback)."""
        return self.locales_path / self.resolve_locale(locale)

    def is_valid_locale(self, locale: str) -> bool:
        """Basic format check: alphanumerics, hyphens and underscores only."""
        if not locale:
            return False
        return (
            all(c.isalnum() or c in "-_" for c in locale)
            and not locale.endswith("-")
            and not locale.endswith("_")
        )

    def available_locales(self) -> List[str]:
        """List locale ids that have a directory."""
        return sorted(p.name for p in self.locales_path.iterdir() if p.is_dir())

    def cache_size(self) -> int:
        """Number of cached locales."""
        with self._lock:
            return len(self._cache)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def get_locale(self, locale: str) -> LocaleData:
        """Get locale data, loading and caching it on first access.

        Raises:
            LocaleNotFoundError: If nothing in the fallback chain exists.
            TemplateParseError: If a locale file is not a valid YAML mapping.
        """
        with self._lock:
            cached = self._cache.get(locale)
            if cached is not None:
                return cached

            data = self._load_locale_data(locale)
            self._cache[locale] = data
            return data

    load_locale = get_locale

    def _load_locale_data(self, locale: str) -> LocaleData:
        locale_dir = self.resolve_locale_path(locale)
        extensions = get_locale_file_extensions()

        merged: Dict[str, Any] = {}
        files = sorted(
            (p for p in locale_dir.iterdir() if p.is_file() and p.suffix in extensions),
            key=lambda p: p.name,
        )
        for locale_file in files:
            try:
                with open(locale_file, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise TemplateParseError(
                    f"Failed to parse locale file: {e}", source_name=str(locale_file)
                ) from e

            if data is None:
                continue
            if not isinstance(data, dict):
                raise TemplateParseError(
                    "Locale file must contain a mapping at the top level",
                    source_name=str(locale_file),
                )
            merged.update({str(k): v for k, v in data.items()})

        logger.debug(
            "Loaded locale %s from %s (%d file(s), %d key(s))",
            locale,
            locale_dir,
            len(files),
            len(merged),
        )

        return LocaleData(
            locale=locale,
            strings=_freeze(merged),
            text_direction=self._text_direction(locale, merged),
        )

    @staticmethod
    def _text_direction(locale: str, strings: Mapping[str, Any]) -> TextDirection:
        declared = strings.get(TEXT_DIRECTION_KEY)
        if isinstance(declared, str):
            declared = declared.strip().lower()
            if declared == "rtl":
                return TextDirection.RIGHT_TO_LEFT
            if declared == "ltr":
                return TextDirection.LEFT_TO_RIGHT
        return default_text_direction(locale)
