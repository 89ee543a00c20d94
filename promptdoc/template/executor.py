"""
executor.py - Render a parsed node tree against variables and a locale.

Strictness differs by directive:
- plain and dotted variables must resolve (VariableNotFoundError),
- translation keys must exist in the active locale (I18nKeyNotFoundError),
- conditions, loops and switches treat missing values as empty,
- include targets and helpers degrade to an inline ``<!-- ... -->`` comment.

Includes are read and parsed on every render. The chain of include files
currently being rendered travels with the executor as an immutable tuple;
an include whose path is already in that chain renders a circular-include
marker instead of recursing.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from promptdoc.errors import (
    I18nKeyNotFoundError,
    UnrenderableValueError,
    VariableNotFoundError,
)
from promptdoc.i18n.locale import LocaleManager

from .frontmatter import split_frontmatter
from .helpers import HELPERS, HelperError
from .nodes import (
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
from .parser import is_helper_call, is_quoted, parse, parse_helper_expression, unquote

logger = logging.getLogger(__name__)

CIRCULAR_INCLUDE_MARKER = "<!-- CIRCULAR INCLUDE: {path} -->"
INCLUDE_NOT_FOUND_MARKER = "<!-- INCLUDE NOT FOUND: {path} -->"
UNKNOWN_HELPER_MARKER = "<!-- UNKNOWN HELPER: {name} -->"
HELPER_ERROR_MARKER = "<!-- {name} ERROR: {problem} -->"

LOOP_ITEM = "this"
_LOOP_PREFIX = LOOP_ITEM + "."


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def lookup(variables: Mapping[str, Any], name: str) -> Any:
    """Resolve ``name`` (possibly dotted) in ``variables``.

    An exact binding wins, so loop bindings such as ``this.title`` resolve
    directly. Otherwise dotted names walk nested mappings. Returns MISSING when
    any segment is absent or an intermediate value is not a mapping.
    """
    if name in variables:
        return variables[name]
    if "." not in name:
        return MISSING

    head, *rest = name.split(".")
    current = variables.get(head, MISSING)
    for segment in rest:
        if not isinstance(current, Mapping) or segment not in current:
            return MISSING
        current = current[segment]
    return current


def is_truthy(value: Any) -> bool:
    """Truthiness used by ``#if``: empty strings, zero, null and empty collections are false."""
    if value is MISSING or value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (str, list, tuple, Mapping)):
        return len(value) > 0
    return True


def _type_label(value: Any) -> str:
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def value_to_string(value: Any, name: str = "") -> str:
    """Stringify a scalar for substitution.

    Raises:
        UnrenderableValueError: For arrays and objects.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (Mapping, list, tuple)):
        raise UnrenderableValueError(name, _type_label(value))
    return str(value)


class TemplateExecutor:
    """Tree-walking renderer bound to a locale and an include base path.

    Executors are immutable; rendering an include creates a child executor
    with the include path appended to ``include_stack``.
    """

    def __init__(
        self,
        locale: str = "en",
        locale_manager: Optional[LocaleManager] = None,
        base_path: Optional[Union[str, Path]] = None,
        include_stack: Tuple[str, ...] = (),
    ):
        self.locale = locale
        self.locale_manager = locale_manager
        self.base_path = Path(base_path) if base_path is not None else None
        self.include_stack = include_stack

    def render(self, nodes: Sequence[Node], variables: Mapping[str, Any]) -> str:
        """Render ``nodes`` to a string.

        Raises:
            VariableNotFoundError: A plain or dotted variable has no binding.
            UnrenderableValueError: An array or object was substituted as text.
            I18nKeyNotFoundError: A translation key is missing.
            LocaleNotFoundError: The active locale cannot be resolved.
            TemplateParseError: An included file is malformed.
        """
        out: List[str] = []
        self._render_nodes(nodes, variables, out)
        return "".join(out)

    def _render_nodes(
        self, nodes: Sequence[Node], variables: Mapping[str, Any], out: List[str]
    ) -> None:
        for node in nodes:
            if isinstance(node, Text):
                out.append(node.text)
            elif isinstance(node, (Variable, NestedVariable)):
                out.append(self._render_variable(node.name, variables))
            elif isinstance(node, If):
                if is_truthy(lookup(variables, node.condition)):
                    self._render_nodes(node.then_nodes, variables, out)
                elif node.else_nodes is not None:
                    self._render_nodes(node.else_nodes, variables, out)
            elif isinstance(node, Each):
                self._render_each(node, variables, out)
            elif isinstance(node, Switch):
                self._render_switch(node, variables, out)
            elif isinstance(node, IfLocale):
                if self.locale == node.locale:
                    self._render_nodes(node.then_nodes, variables, out)
                elif node.else_nodes is not None:
                    self._render_nodes(node.else_nodes, variables, out)
            elif isinstance(node, Include):
                out.append(self._render_include(node, variables))
            elif isinstance(node, I18n):
                out.append(self._render_i18n(node, variables))
            elif isinstance(node, Helper):
                out.append(self._render_helper(node, variables))
            else:
                raise TypeError(f"Unknown node type: {type(node).__name__}")

    def _render_variable(self, name: str, variables: Mapping[str, Any]) -> str:
        value = lookup(variables, name)
        if value is MISSING:
            raise VariableNotFoundError(name)
        return value_to_string(value, name)

    def _render_each(self, node: Each, variables: Mapping[str, Any], out: List[str]) -> None:
        items = lookup(variables, node.source)
        if not isinstance(items, (list, tuple)):
            if items is not MISSING:
                logger.debug("#each source '%s' is not an array; rendering nothing", node.source)
            return

        # Bindings from an enclosing loop must not leak into this one.
        outer = {k: v for k, v in variables.items() if not k.startswith(_LOOP_PREFIX)}
        for item in items:
            scope: Dict[str, Any] = dict(outer)
            scope[LOOP_ITEM] = item
            if isinstance(item, Mapping):
                for key, value in item.items():
                    scope[f"{_LOOP_PREFIX}{key}"] = value
            self._render_nodes(node.body, scope, out)

    def _render_switch(self, node: Switch, variables: Mapping[str, Any], out: List[str]) -> None:
        value = lookup(variables, node.source)
        if value is MISSING or isinstance(value, (Mapping, list, tuple)):
            return
        selector = value_to_string(value, node.source)
        for case in node.cases:
            if case.value == selector:
                self._render_nodes(case.body, variables, out)
                return

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def resolve_param(self, raw: str, variables: Mapping[str, Any]) -> Any:
        """Resolve a raw parameter expression.

        Quoted literal -> string; parenthesized helper -> its output; bound
        name or dotted path -> its value; anything else -> the raw text.
        """
        if is_quoted(raw):
            return unquote(raw)
        if is_helper_call(raw):
            return self._render_helper(parse_helper_expression(raw[1:-1]), variables)
        value = lookup(variables, raw)
        if value is MISSING:
            return raw
        return value

    def resolve_params(self, params: Params, variables: Mapping[str, Any]) -> Dict[str, Any]:
        return {name: self.resolve_param(raw, variables) for name, raw in params}

    # ------------------------------------------------------------------
    # Includes
    # ------------------------------------------------------------------

    def resolve_include_path(self, path: str) -> Path:
        include_path = Path(path)
        if include_path.is_absolute() or self.base_path is None:
            return include_path
        return self.base_path / include_path

    def _render_include(self, node: Include, variables: Mapping[str, Any]) -> str:
        params = self.resolve_params(node.params, variables)
        include_path = self.resolve_include_path(node.path)
        key = str(include_path.resolve())

        if key in self.include_stack:
            logger.warning(
                "Circular include detected: %s (chain: %s)",
                node.path,
                " -> ".join(self.include_stack),
            )
            return CIRCULAR_INCLUDE_MARKER.format(path=node.path)

        try:
            content = include_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Include not found: %s (%s)", node.path, e)
            return INCLUDE_NOT_FOUND_MARKER.format(path=node.path)

        frontmatter, body = split_frontmatter(content, source_name=str(include_path))
        nodes = parse(body, source_name=str(include_path))

        scope: Dict[str, Any] = dict(frontmatter.variables)
        scope.update(variables)
        scope.update(params)

        child = TemplateExecutor(
            locale=self.locale,
            locale_manager=self.locale_manager,
            base_path=self.base_path,
            include_stack=self.include_stack + (key,),
        )
        logger.debug("Rendering include %s (depth %d)", include_path, len(child.include_stack))
        return child.render(nodes, scope)

    # ------------------------------------------------------------------
    # Translations and helpers
    # ------------------------------------------------------------------

    def _render_i18n(self, node: I18n, variables: Mapping[str, Any]) -> str:
        params = self.resolve_params(node.params, variables)
        if self.locale_manager is None:
            raise I18nKeyNotFoundError(node.key, self.locale)

        resolved = self.locale_manager.resolve_locale(self.locale)
        data = self.locale_manager.get_locale(resolved)
        if not data.has_key(node.key):
            raise I18nKeyNotFoundError(node.key, self.locale)
        return data.interpolate(node.key, params)

    def _render_helper(self, node: Helper, variables: Mapping[str, Any]) -> str:
        func = HELPERS.get(node.name)
        if func is None:
            logger.warning("Unknown helper: %s", node.name)
            return UNKNOWN_HELPER_MARKER.format(name=node.name)

        def resolve_arg(token: str) -> Any:
            if is_quoted(token):
                return unquote(token)
            value = lookup(variables, token)
            if value is MISSING:
                raise HelperError(f"variable '{token}' not found")
            return value

        try:
            return func(resolve_arg, node.args, self.resolve_params(node.params, variables))
        except HelperError as e:
            logger.warning("Helper %s failed: %s", node.name, e)
            return HELPER_ERROR_MARKER.format(name=node.name, problem=e)


def render(
    nodes: Sequence[Node],
    variables: Optional[Mapping[str, Any]] = None,
    locale: str = "en",
    locale_manager: Optional[LocaleManager] = None,
    base_path: Optional[Union[str, Path]] = None,
) -> str:
    """Render nodes with a one-off executor."""
    executor = TemplateExecutor(locale=locale, locale_manager=locale_manager, base_path=base_path)
    return executor.render(nodes, variables or {})
