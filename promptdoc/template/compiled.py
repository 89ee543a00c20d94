"""
compiled.py - PromptTemplate: parsed frontmatter + AST, ready to render.

A PromptTemplate is immutable. Builder-style calls (``with_locale``, ``var``,
``with_variables``) return a new template and leave the receiver untouched, so
one template value can be rendered from many threads at once.

Usage:
    from promptdoc import PromptTemplate

    template = PromptTemplate.load("prompts/reviewer.md")
    text = template.with_locale("es").render({"name": "Alice"})
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel

from promptdoc.config.runtime_config import get_default_locale
from promptdoc.errors import PromptFileReadError, RequiredVariablesMissingError
from promptdoc.i18n.locale import LocaleManager, TextDirection, default_text_direction

from .executor import TemplateExecutor
from .frontmatter import TemplateFrontmatter, split_frontmatter
from .nodes import Node
from .parser import parse

logger = logging.getLogger(__name__)


def _read_template_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PromptFileReadError(path, str(e)) from e


@dataclass(frozen=True)
class PromptTemplate:
    """A compiled template ready for fast rendering with variables."""

    nodes: Tuple[Node, ...] = field(repr=False)
    frontmatter: TemplateFrontmatter = field(default_factory=TemplateFrontmatter)
    locale: str = field(default_factory=get_default_locale)
    locale_manager: Optional[LocaleManager] = None
    base_path: Optional[Path] = None
    source_path: Optional[Path] = None
    bound_variables: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), repr=False
    )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        locale_manager: Optional[LocaleManager] = None,
        base_path: Optional[Union[str, Path]] = None,
        locale: Optional[str] = None,
    ) -> "PromptTemplate":
        """Load a template from file.

        Includes resolve relative to ``base_path``, which defaults to the
        directory containing the template.

        Raises:
            PromptFileReadError: If the file (or a declared include) cannot be read.
            TemplateParseError: If the frontmatter or body is malformed.
        """
        path = Path(path)
        content = _read_template_file(path)
        return cls.from_content(
            content,
            locale_manager=locale_manager,
            base_path=base_path if base_path is not None else path.parent,
            source_path=path,
            locale=locale,
        )

    @classmethod
    def from_content(
        cls,
        content: str,
        locale_manager: Optional[LocaleManager] = None,
        base_path: Optional[Union[str, Path]] = None,
        source_path: Optional[Union[str, Path]] = None,
        locale: Optional[str] = None,
    ) -> "PromptTemplate":
        """Create a template from a content string.

        When ``base_path`` is given, every path in the frontmatter ``includes``
        list must exist under it.
        """
        source_name = str(source_path) if source_path is not None else None
        frontmatter, body = split_frontmatter(content, source_name)
        nodes = parse(body, source_name)

        base = Path(base_path) if base_path is not None else None
        if base is not None:
            for include in frontmatter.includes:
                include_path = base / include
                if not include_path.is_file():
                    raise PromptFileReadError(include_path, "declared include not found")

        logger.debug(
            "Compiled template %s (%d top-level node(s))", source_name or "<string>", len(nodes)
        )
        return cls(
            nodes=nodes,
            frontmatter=frontmatter,
            locale=locale or get_default_locale(),
            locale_manager=locale_manager,
            base_path=base,
            source_path=Path(source_path) if source_path is not None else None,
        )

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    def required_variables(self) -> List[str]:
        return list(self.frontmatter.required_variables)

    @property
    def default_variables(self) -> Dict[str, Any]:
        return dict(self.frontmatter.variables)

    @property
    def i18n_key(self) -> Optional[str]:
        return self.frontmatter.i18n_key

    @property
    def includes(self) -> List[str]:
        return list(self.frontmatter.includes)

    @property
    def text_direction(self) -> TextDirection:
        """Direction of the active locale, from locale data when available."""
        if self.locale_manager is None:
            return default_text_direction(self.locale)
        manager = self.locale_manager
        return manager.get_locale(manager.resolve_locale(self.locale)).text_direction

    # ------------------------------------------------------------------
    # Functional updates
    # ------------------------------------------------------------------

    def with_locale(self, locale: str) -> "PromptTemplate":
        """Return a copy bound to ``locale``."""
        return replace(self, locale=locale)

    def with_locale_manager(self, locale_manager: Optional[LocaleManager]) -> "PromptTemplate":
        return replace(self, locale_manager=locale_manager)

    def with_base_path(self, base_path: Optional[Union[str, Path]]) -> "PromptTemplate":
        return replace(self, base_path=Path(base_path) if base_path is not None else None)

    def var(self, name: str, value: Any) -> "PromptTemplate":
        """Return a copy with ``name`` bound to ``value``."""
        return self.with_variables({name: value})

    def with_variables(
        self, variables: Optional[Mapping[str, Any]] = None, **kwargs: Any
    ) -> "PromptTemplate":
        """Return a copy with additional bound variables (later values win)."""
        bound = dict(self.bound_variables)
        bound.update(variables or {})
        bound.update(kwargs)
        return replace(self, bound_variables=MappingProxyType(bound))

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def merged_variables(self, variables: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Frontmatter defaults, then bound variables, then ``variables``."""
        if variables is not None and not isinstance(variables, Mapping):
            raise TypeError(
                f"Variables must be a mapping, got {type(variables).__name__}"
            )
        merged: Dict[str, Any] = dict(self.frontmatter.variables)
        merged.update(self.bound_variables)
        merged.update(variables or {})
        return merged

    def missing_variables(self, variables: Optional[Mapping[str, Any]] = None) -> List[str]:
        merged = self.merged_variables(variables)
        return [name for name in self.frontmatter.required_variables if name not in merged]

    def validate_variables(self, variables: Optional[Mapping[str, Any]] = None) -> None:
        """Check that every required variable is available.

        Raises:
            RequiredVariablesMissingError: Listing every missing name.
        """
        missing = self.missing_variables(variables)
        if missing:
            raise RequiredVariablesMissingError(missing)

    def render(self, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Render the template.

        Raises:
            RequiredVariablesMissingError: Before rendering starts.
            PromptdocError: Any fatal render error (see TemplateExecutor.render).
        """
        self.validate_variables(variables)
        merged = self.merged_variables(variables)

        include_stack: Tuple[str, ...] = ()
        if self.source_path is not None:
            include_stack = (str(self.source_path.resolve()),)

        executor = TemplateExecutor(
            locale=self.locale,
            locale_manager=self.locale_manager,
            base_path=self.base_path,
            include_stack=include_stack,
        )
        return executor.render(self.nodes, merged)

    def render_with_context(self, context: Any) -> str:
        """Render with a pydantic model, dataclass instance or mapping."""
        if isinstance(context, BaseModel):
            variables = context.model_dump()
        elif dataclasses.is_dataclass(context) and not isinstance(context, type):
            variables = dataclasses.asdict(context)
        elif isinstance(context, Mapping):
            variables = dict(context)
        else:
            raise TypeError(
                f"Cannot render with context of type {type(context).__name__}"
            )
        return self.render(variables)
