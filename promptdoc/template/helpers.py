"""
helpers.py - Formatting helpers callable from template syntax.

A helper receives a resolver for its positional arguments and its named
parameters already resolved to values, and returns text. Problems with the
input raise HelperError, which the executor turns into an inline diagnostic
instead of failing the render.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, Mapping, Sequence

ArgResolver = Callable[[str], Any]
HelperFunc = Callable[[ArgResolver, Sequence[str], Mapping[str, Any]], str]


class HelperError(ValueError):
    """Raised by a helper when its input cannot be formatted."""

    pass


def _to_number(value: Any, label: str) -> float:
    if isinstance(value, bool) or value is None:
        raise HelperError(f"'{label}' is not a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise HelperError(f"'{label}' is not a number: {value!r}")
    if not isinstance(value, (int, float)):
        raise HelperError(f"'{label}' is not a number")
    try:
        number = float(value)
    except OverflowError:
        raise HelperError(f"'{label}' is out of range")
    if not math.isfinite(number):
        raise HelperError(f"'{label}' is not a finite number")
    return number


def _to_int(value: Any, label: str) -> int:
    number = _to_number(value, label)
    if number != int(number) or number < 0:
        raise HelperError(f"'{label}' must be a non-negative integer")
    return int(number)


def format_percent(value: float) -> str:
    """0.847 -> "84.7%", 0.75 -> "75%"."""
    formatted = f"{value * 100:.1f}"
    if formatted.endswith(".0"):
        formatted = formatted[:-2]
    return f"{formatted}%"


def format_currency(value: float, code: str = "USD") -> str:
    """Two-decimal amount, "$" prefix for USD, "<amount> <code>" otherwise."""
    amount = f"{value:.2f}"
    if code.upper() == "USD":
        return f"${amount}"
    return f"{amount} {code}"


def format_decimal(value: float, precision: int = 2) -> str:
    return f"{value:.{precision}f}"


def format_number(resolve: ArgResolver, args: Sequence[str], params: Mapping[str, Any]) -> str:
    """``{{format_number value style="percent|currency|decimal"}}``."""
    if not args:
        raise HelperError("expects a variable name")
    value = _to_number(resolve(args[0]), args[0])

    style = str(params.get("style", "decimal"))
    if style == "percent":
        return format_percent(value)
    if style == "currency":
        return format_currency(value, str(params.get("currency", "USD")))
    if style == "decimal":
        return format_decimal(value, _to_int(params.get("precision", 2), "precision"))
    raise HelperError(f"unknown style '{style}'")


def pluralize(resolve: ArgResolver, args: Sequence[str], params: Mapping[str, Any]) -> str:
    """``{{pluralize count "item" "items"}}``: singular when count is 1.

    The plural form defaults to the singular with an "s" appended. ``singular``
    and ``plural`` may also be passed as named parameters.
    """
    if not args:
        raise HelperError("expects a count variable")
    count = _to_number(resolve(args[0]), args[0])

    singular = params.get("singular")
    if singular is None:
        if len(args) < 2:
            raise HelperError("expects a singular form")
        singular = resolve(args[1])
    plural = params.get("plural")
    if plural is None:
        plural = resolve(args[2]) if len(args) > 2 else f"{singular}s"

    return str(singular) if count == 1 else str(plural)


HELPERS: Dict[str, HelperFunc] = {
    "format_number": format_number,
    "pluralize": pluralize,
}
