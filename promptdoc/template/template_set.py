"""
template_set.py - Directory-scoped registry of templates.

Layout:

    prompts/
        reviewer.md              -> template "reviewer"
        partials/rules.md        -> include target, not a member
        conversations/tutor.md   -> conversation "tutor"

Members share one LocaleManager and resolve includes relative to the set root.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from promptdoc.config.runtime_config import (
    get_conversations_subdir,
    get_default_locale,
    get_locales_dir,
    get_template_extension,
)
from promptdoc.errors import TemplateNotFoundError
from promptdoc.i18n.locale import LocaleManager

from .analysis import validate_template_dir
from .compiled import PromptTemplate
from .conversation import ConversationMessage, ConversationTemplate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateSet:
    """Templates and conversation templates loaded from one directory."""

    base_path: Path
    templates: Mapping[str, PromptTemplate] = field(
        default_factory=lambda: MappingProxyType({}), repr=False
    )
    conversations: Mapping[str, ConversationTemplate] = field(
        default_factory=lambda: MappingProxyType({}), repr=False
    )
    locale: str = field(default_factory=get_default_locale)
    locale_manager: Optional[LocaleManager] = None

    @classmethod
    def from_dir(
        cls,
        path: Union[str, Path],
        locales_dir: Optional[Union[str, Path]] = None,
        default_locale: Optional[str] = None,
        locale: Optional[str] = None,
    ) -> "TemplateSet":
        """Load every template under ``path``.

        A missing directory yields an empty set. ``locales_dir`` falls back to
        the configured locales directory; without either, templates render
        without translations.

        Raises:
            LocaleConfigError: If the locales directory does not exist.
            PromptFileReadError, TemplateParseError: If a member fails to load.
        """
        base = Path(path)
        if locales_dir is None:
            locales_dir = get_locales_dir()
        manager = LocaleManager(locales_dir, default_locale) if locales_dir is not None else None
        active = locale or default_locale or get_default_locale()

        templates: Dict[str, PromptTemplate] = {}
        conversations: Dict[str, ConversationTemplate] = {}

        if not base.is_dir():
            logger.debug("Template directory not found: %s (empty set)", base)
        else:
            extension = get_template_extension()
            for template_file in sorted(base.glob(f"*{extension}")):
                if template_file.is_file():
                    templates[template_file.stem] = PromptTemplate.load(
                        template_file, manager, base_path=base, locale=active
                    )

            conversations_dir = base / get_conversations_subdir()
            if conversations_dir.is_dir():
                for conversation_file in sorted(conversations_dir.glob(f"*{extension}")):
                    if conversation_file.is_file():
                        conversations[conversation_file.stem] = ConversationTemplate.load(
                            conversation_file, manager, base_path=base, locale=active
                        )

            logger.debug(
                "Loaded %d template(s) and %d conversation(s) from %s",
                len(templates),
                len(conversations),
                base,
            )

        return cls(
            base_path=base,
            templates=MappingProxyType(templates),
            conversations=MappingProxyType(conversations),
            locale=active,
            locale_manager=manager,
        )

    @property
    def current_locale(self) -> str:
        return self.locale

    def with_locale(self, locale: str) -> "TemplateSet":
        """Return a copy with every member bound to ``locale``."""
        return TemplateSet(
            base_path=self.base_path,
            templates=MappingProxyType(
                {name: t.with_locale(locale) for name, t in self.templates.items()}
            ),
            conversations=MappingProxyType(
                {name: c.with_locale(locale) for name, c in self.conversations.items()}
            ),
            locale=locale,
            locale_manager=self.locale_manager,
        )

    def get_template(self, name: str) -> PromptTemplate:
        try:
            return self.templates[name]
        except KeyError:
            raise TemplateNotFoundError("Template", name) from None

    def get_conversation(self, name: str) -> ConversationTemplate:
        try:
            return self.conversations[name]
        except KeyError:
            raise TemplateNotFoundError("Conversation template", name) from None

    def render(self, name: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """Render a template by name."""
        return self.get_template(name).render(variables)

    def render_conversation(
        self, name: str, variables: Optional[Mapping[str, Any]] = None
    ) -> Tuple[ConversationMessage, ...]:
        """Render a conversation template by name."""
        return self.get_conversation(name).render(variables)

    def list_templates(self) -> List[str]:
        return sorted(self.templates)

    def list_conversations(self) -> List[str]:
        return sorted(self.conversations)

    def template_exists(self, name: str) -> bool:
        return name in self.templates

    def conversation_exists(self, name: str) -> bool:
        return name in self.conversations

    def validate(self) -> Dict[str, List[str]]:
        """Report problems per template file (only files with problems)."""
        if not self.base_path.is_dir():
            return {}
        return validate_template_dir(self.base_path)
