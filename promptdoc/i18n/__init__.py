"""promptdoc/i18n - Locale data loading, fallback resolution and interpolation."""

from .locale import (
    LocaleData,
    LocaleManager,
    TextDirection,
    default_text_direction,
    language_of,
)

__all__ = [
    "LocaleData",
    "LocaleManager",
    "TextDirection",
    "default_text_direction",
    "language_of",
]
