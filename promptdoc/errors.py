"""
errors.py - Exception hierarchy for template loading, parsing and rendering.

Fatal conditions surface as one of these exceptions. Degraded conditions
(missing include targets, helper problems) never raise; the executor writes an
inline diagnostic comment instead.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Union


class PromptdocError(Exception):
    """Base exception for all promptdoc errors."""

    pass


class TemplateParseError(PromptdocError):
    """Raised when template or locale source text is malformed."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source_name: Optional[str] = None,
    ):
        self.message = message
        self.line = line
        self.column = column
        self.source_name = source_name
        location = ""
        if source_name:
            location = source_name
        if line is not None:
            location += f":{line}:{column}" if location else f"line {line}, column {column}"
        super().__init__(f"{location}: {message}" if location else message)


class RequiredVariablesMissingError(PromptdocError):
    """Raised before rendering when required variables were not supplied."""

    def __init__(self, names: Iterable[str]):
        self.names: List[str] = list(names)
        super().__init__(f"Required variables missing: {', '.join(self.names)}")


class VariableNotFoundError(PromptdocError):
    """Raised when a referenced variable (or dotted path) has no binding."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Template variable not found: {name}")


class UnrenderableValueError(PromptdocError):
    """Raised when an array or object is substituted directly into text."""

    def __init__(self, name: str, value_type: str):
        self.name = name
        self.value_type = value_type
        super().__init__(
            f"Variable '{name}' holds a {value_type} and cannot be rendered as text; "
            "access its fields or iterate it with #each"
        )


class LocaleNotFoundError(PromptdocError):
    """Raised when no locale in the fallback chain has a backing directory."""

    def __init__(self, locale: str):
        self.locale = locale
        super().__init__(f"Locale not found: {locale}")


class LocaleConfigError(PromptdocError):
    """Raised when the configured locales directory does not exist."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"Locales directory does not exist: {self.path}")


class I18nKeyNotFoundError(PromptdocError):
    """Raised when a translation key is absent from the active locale."""

    def __init__(self, key: str, locale: str):
        self.key = key
        self.locale = locale
        super().__init__(f"i18n key '{key}' not found for locale '{locale}'")


class PromptFileReadError(PromptdocError):
    """Raised when a template file cannot be read."""

    def __init__(self, path: Union[str, Path], reason: Optional[str] = None):
        self.path = Path(path)
        self.reason = reason
        msg = f"Failed to read prompt file {self.path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class TemplateNotFoundError(PromptdocError):
    """Raised when a template set has no member with the requested name."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} '{name}' not found")
