"""
nodes.py - AST node types produced by the parser and consumed by the executor.

The node set is closed. Every node is a frozen dataclass and children are held
in tuples, so a parsed tree is immutable and can be shared between renders.
Parameter expressions are kept as raw text and resolved at render time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

# (name, raw expression) pairs in source order
Params = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class Text:
    """Literal text emitted verbatim."""
    text: str


@dataclass(frozen=True)
class Variable:
    """``{{name}}`` substitution."""
    name: str


@dataclass(frozen=True)
class NestedVariable:
    """``{{a.b.c}}`` substitution through nested objects."""
    path: Tuple[str, ...]

    @property
    def name(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class If:
    """``{{#if cond}}...{{else}}...{{/if}}``."""
    condition: str
    then_nodes: Tuple["Node", ...]
    else_nodes: Optional[Tuple["Node", ...]] = None


@dataclass(frozen=True)
class Each:
    """``{{#each items}}...{{/each}}``."""
    source: str
    body: Tuple["Node", ...]


@dataclass(frozen=True)
class Case:
    """One ``{{#case "value"}}...{{/case}}`` arm of a switch."""
    value: str
    body: Tuple["Node", ...]


@dataclass(frozen=True)
class Switch:
    """``{{#switch v}}{{#case "x"}}...{{/case}}{{/switch}}``."""
    source: str
    cases: Tuple[Case, ...]


@dataclass(frozen=True)
class IfLocale:
    """``{{#if_locale "en"}}...{{else}}...{{/if_locale}}``."""
    locale: str
    then_nodes: Tuple["Node", ...]
    else_nodes: Optional[Tuple["Node", ...]] = None


@dataclass(frozen=True)
class Include:
    """``{{> path/file.md name=value}}``."""
    path: str
    params: Params = ()


@dataclass(frozen=True)
class I18n:
    """``{{i18n "dotted.key" name=value}}``."""
    key: str
    params: Params = ()


@dataclass(frozen=True)
class Helper:
    """``{{format_number value style="percent"}}`` and other helper calls."""
    name: str
    args: Tuple[str, ...] = ()
    params: Params = ()


Node = Union[Text, Variable, NestedVariable, If, Each, Switch, IfLocale, Include, I18n, Helper]


def child_blocks(node: Node) -> Tuple[Tuple[Node, ...], ...]:
    """Return every child node sequence of ``node`` (empty for leaves)."""
    if isinstance(node, (If, IfLocale)):
        if node.else_nodes is None:
            return (node.then_nodes,)
        return (node.then_nodes, node.else_nodes)
    if isinstance(node, Each):
        return (node.body,)
    if isinstance(node, Switch):
        return tuple(case.body for case in node.cases)
    return ()
