"""
parser.py - Recursive-descent parser for template source text.

The scanner splits source text into literal text and ``{{ ... }}`` tags. The
parser consumes tags in order; each block opener recurses into
``_parse_sequence`` with the set of tags that may close it, so an inner
``{{/if}}`` always closes the innermost ``{{#if}}``.

Usage:
    from promptdoc.template.parser import parse

    nodes = parse("Hello {{user.name}}{{#if admin}} (admin){{/if}}")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple, Union

from promptdoc.errors import TemplateParseError

from .helpers import HELPERS
from .nodes import (
    Case,
    Each,
    Helper,
    I18n,
    If,
    IfLocale,
    Include,
    NestedVariable,
    Node,
    Params,
    Switch,
    Text,
    Variable,
)

logger = logging.getLogger(__name__)

OPEN_TAG = "{{"
CLOSE_TAG = "}}"

HELPER_NAMES = frozenset(HELPERS)

# Structural tags that are only valid as the terminator of an open block
_STRUCTURAL_TAGS = frozenset({"else", "/if", "/each", "/switch", "/case", "/if_locale"})


@dataclass(frozen=True)
class _Tag:
    expr: str
    offset: int


def split_tokens(text: str) -> List[str]:
    """Split on whitespace outside quotes and parentheses.

    Raises:
        ValueError: On an unterminated quote or parenthesis.
    """
    tokens: List[str] = []
    buf: List[str] = []
    quote: Optional[str] = None
    depth = 0

    for ch in text:
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ("\"", "'"):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")" and depth > 0:
            depth -= 1
        elif ch.isspace() and depth == 0:
            if buf:
                tokens.append("".join(buf))
                buf = []
            continue
        buf.append(ch)

    if quote:
        raise ValueError(f"unterminated {quote} quote")
    if depth:
        raise ValueError("unbalanced parenthesis")
    if buf:
        tokens.append("".join(buf))
    return tokens


def split_keyword(expr: str) -> Tuple[str, str]:
    """Split a tag expression into its first word and the trimmed remainder."""
    parts = expr.split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1].strip() if len(parts) > 1 else ""


def is_quoted(token: str) -> bool:
    return len(token) >= 2 and token[0] == token[-1] and token[0] in ("\"", "'")


def unquote(token: str) -> str:
    return token[1:-1] if is_quoted(token) else token


def is_helper_call(token: str) -> bool:
    return len(token) >= 2 and token.startswith("(") and token.endswith(")")


class TemplateParser:
    """Parses one template source string into a tuple of nodes."""

    def __init__(self, source: str, source_name: Optional[str] = None):
        self.source = source
        self.source_name = source_name
        self.pos = 0

    def parse(self) -> Tuple[Node, ...]:
        nodes, _ = self._parse_sequence(frozenset(), opener=None)
        return nodes

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _error(self, message: str, offset: int) -> TemplateParseError:
        line = self.source.count("\n", 0, offset) + 1
        column = offset - (self.source.rfind("\n", 0, offset) + 1) + 1
        return TemplateParseError(message, line=line, column=column, source_name=self.source_name)

    def _next_token(self) -> Union[str, _Tag, None]:
        if self.pos >= len(self.source):
            return None

        start = self.source.find(OPEN_TAG, self.pos)
        if start == -1:
            text = self.source[self.pos:]
            self.pos = len(self.source)
            return text
        if start > self.pos:
            text = self.source[self.pos:start]
            self.pos = start
            return text

        end = self.source.find(CLOSE_TAG, start + len(OPEN_TAG))
        if end == -1:
            raise self._error("Unterminated '{{' (no matching '}}')", start)
        self.pos = end + len(CLOSE_TAG)
        return _Tag(self.source[start + len(OPEN_TAG):end].strip(), start)

    # ------------------------------------------------------------------
    # Sequences and blocks
    # ------------------------------------------------------------------

    def _parse_sequence(
        self, stop: FrozenSet[str], opener: Optional[_Tag]
    ) -> Tuple[Tuple[Node, ...], Optional[_Tag]]:
        """Parse nodes until one of ``stop`` tags; return (nodes, closing tag)."""
        nodes: List[Node] = []
        while True:
            token = self._next_token()
            if token is None:
                if opener is not None:
                    raise self._error(f"Unclosed block '{{{{{opener.expr}}}}}'", opener.offset)
                return tuple(nodes), None
            if isinstance(token, str):
                nodes.append(Text(token))
                continue
            if token.expr in stop:
                return tuple(nodes), token
            if token.expr in _STRUCTURAL_TAGS:
                raise self._error(f"Unexpected '{{{{{token.expr}}}}}'", token.offset)
            nodes.append(self._parse_tag(token))

    def _parse_tag(self, tag: _Tag) -> Node:
        expr = tag.expr
        if not expr:
            raise self._error("Empty expression '{{}}'", tag.offset)

        if expr.startswith("#"):
            keyword, rest = split_keyword(expr[1:])
            if keyword == "if":
                return self._parse_if(tag, self._block_name(rest, tag))
            if keyword == "each":
                return self._parse_each(tag, self._block_name(rest, tag))
            if keyword == "switch":
                return self._parse_switch(tag, self._block_name(rest, tag))
            if keyword == "if_locale":
                return self._parse_if_locale(tag, self._literal(rest, tag))
            if keyword == "case":
                raise self._error("'{{#case}}' outside of '{{#switch}}'", tag.offset)
            # Unknown block keywords fall through to variable classification.

        if expr.startswith(">"):
            return self._parse_include(tag)

        head = expr.split(None, 1)[0]
        if head == "i18n":
            return self._parse_i18n(tag)
        if head in HELPER_NAMES:
            return self._parse_helper(tag)

        if "." in expr:
            return NestedVariable(tuple(expr.split(".")))
        return Variable(expr)

    def _block_name(self, rest: str, tag: _Tag) -> str:
        if not rest or len(rest.split()) != 1:
            raise self._error(f"'{{{{{tag.expr}}}}}' expects exactly one name", tag.offset)
        return rest

    def _literal(self, rest: str, tag: _Tag) -> str:
        if not is_quoted(rest):
            raise self._error(f"'{{{{{tag.expr}}}}}' expects a quoted literal", tag.offset)
        return unquote(rest)

    def _parse_if(self, tag: _Tag, condition: str) -> If:
        then_nodes, closer = self._parse_sequence(frozenset({"else", "/if"}), tag)
        else_nodes = None
        if closer is not None and closer.expr == "else":
            else_nodes, _ = self._parse_sequence(frozenset({"/if"}), tag)
        return If(condition, then_nodes, else_nodes)

    def _parse_each(self, tag: _Tag, source: str) -> Each:
        body, _ = self._parse_sequence(frozenset({"/each"}), tag)
        return Each(source, body)

    def _parse_if_locale(self, tag: _Tag, locale: str) -> IfLocale:
        then_nodes, closer = self._parse_sequence(frozenset({"else", "/if_locale"}), tag)
        else_nodes = None
        if closer is not None and closer.expr == "else":
            else_nodes, _ = self._parse_sequence(frozenset({"/if_locale"}), tag)
        return IfLocale(locale, then_nodes, else_nodes)

    def _parse_switch(self, tag: _Tag, source: str) -> Switch:
        cases: List[Case] = []
        while True:
            start = self.pos
            token = self._next_token()
            if token is None:
                raise self._error(f"Unclosed block '{{{{{tag.expr}}}}}'", tag.offset)
            if isinstance(token, str):
                if token.strip():
                    raise self._error(
                        "Only '{{#case}}' blocks may appear inside '{{#switch}}'",
                        start + (len(token) - len(token.lstrip())),
                    )
                continue
            if token.expr == "/switch":
                return Switch(source, tuple(cases))

            keyword, rest = split_keyword(token.expr)
            if keyword != "#case":
                raise self._error(
                    f"Unexpected '{{{{{token.expr}}}}}' inside '{{{{{tag.expr}}}}}'",
                    token.offset,
                )
            value = self._literal(rest, token)
            body, _ = self._parse_sequence(frozenset({"/case"}), token)
            cases.append(Case(value, body))

    # ------------------------------------------------------------------
    # Inline directives
    # ------------------------------------------------------------------

    def _tokens(self, text: str, tag: _Tag) -> List[str]:
        try:
            return split_tokens(text)
        except ValueError as e:
            raise self._error(f"Malformed expression '{{{{{tag.expr}}}}}': {e}", tag.offset)

    def _split_args(self, tokens: List[str], tag: _Tag) -> Tuple[Tuple[str, ...], Params]:
        """Separate positional tokens from ``name=value`` params."""
        args: List[str] = []
        params: List[Tuple[str, str]] = []
        for token in tokens:
            if "=" in token and not is_quoted(token) and not token.startswith("("):
                name, _, value = token.partition("=")
                if not name or not value:
                    raise self._error(f"Malformed parameter '{token}'", tag.offset)
                if is_helper_call(value):
                    self._check_helper_call(value, tag)
                params.append((name, value))
            else:
                args.append(token)
        return tuple(args), tuple(params)

    def _check_helper_call(self, value: str, tag: _Tag) -> None:
        inner = value[1:-1].strip()
        head = inner.split(None, 1)[0] if inner else ""
        if head not in HELPER_NAMES:
            raise self._error(
                f"Parenthesized parameter '{value}' must be a helper call", tag.offset
            )
        self._split_args(self._tokens(inner, tag)[1:], tag)

    def _parse_include(self, tag: _Tag) -> Include:
        tokens = self._tokens(tag.expr[1:].strip(), tag)
        if not tokens:
            raise self._error("Include '{{>}}' expects a path", tag.offset)
        extra, params = self._split_args(tokens[1:], tag)
        if extra:
            logger.warning(
                "Ignoring positional tokens %s in include '%s'", list(extra), tag.expr
            )
        return Include(unquote(tokens[0]), params)

    def _parse_i18n(self, tag: _Tag) -> I18n:
        tokens = self._tokens(tag.expr, tag)
        if len(tokens) < 2 or not is_quoted(tokens[1]):
            raise self._error("'{{i18n}}' expects a quoted key", tag.offset)
        extra, params = self._split_args(tokens[2:], tag)
        if extra:
            logger.warning(
                "Ignoring positional tokens %s in i18n '%s'", list(extra), tag.expr
            )
        return I18n(unquote(tokens[1]), params)

    def _parse_helper(self, tag: _Tag) -> Helper:
        tokens = self._tokens(tag.expr, tag)
        args, params = self._split_args(tokens[1:], tag)
        return Helper(tokens[0], args, params)


def parse(source: str, source_name: Optional[str] = None) -> Tuple[Node, ...]:
    """Parse template source text into nodes.

    Raises:
        TemplateParseError: On malformed block syntax or an unterminated tag.
    """
    return TemplateParser(source, source_name).parse()


def parse_helper_expression(expr: str) -> Helper:
    """Parse the inside of a parenthesized helper parameter."""
    node = TemplateParser(OPEN_TAG + expr + CLOSE_TAG)._parse_tag(_Tag(expr.strip(), 0))
    if not isinstance(node, Helper):
        raise TemplateParseError(f"Not a helper call: {expr}")
    return node
