"""
conversation.py - Templates that render to role-tagged conversation turns.

The rendered text is split on level-2 headers naming a role:

    ## System
    You are teaching {{topic}}.

    ## User
    How do I get started?

Text before the first role header becomes a system turn. Other ``##``
headings are ordinary content of the current turn.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from promptdoc.i18n.locale import LocaleManager

from .compiled import PromptTemplate


class Role(str, Enum):
    """Speaker of a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    DEVELOPER = "developer"


ROLE_HEADER_PATTERN = re.compile(
    r"^\s*##\s+(system|user|assistant|developer)\s*$", re.IGNORECASE
)


@dataclass(frozen=True)
class ConversationMessage:
    """One rendered turn."""

    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


def split_conversation(content: str) -> Tuple[ConversationMessage, ...]:
    """Partition rendered text into role-tagged messages; empty turns are dropped."""
    messages: List[ConversationMessage] = []
    role = Role.SYSTEM
    lines: List[str] = []

    def flush() -> None:
        text = "\n".join(lines).strip()
        if text:
            messages.append(ConversationMessage(role, text))

    for line in content.splitlines():
        match = ROLE_HEADER_PATTERN.match(line)
        if match:
            flush()
            role = Role(match.group(1).lower())
            lines = []
        else:
            lines.append(line)
    flush()

    return tuple(messages)


@dataclass(frozen=True)
class ConversationTemplate:
    """A PromptTemplate whose output is split into conversation turns."""

    template: PromptTemplate

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        locale_manager: Optional[LocaleManager] = None,
        base_path: Optional[Union[str, Path]] = None,
        locale: Optional[str] = None,
    ) -> "ConversationTemplate":
        return cls(PromptTemplate.load(path, locale_manager, base_path, locale))

    @classmethod
    def from_content(cls, content: str, **kwargs: Any) -> "ConversationTemplate":
        return cls(PromptTemplate.from_content(content, **kwargs))

    @property
    def locale(self) -> str:
        return self.template.locale

    def with_locale(self, locale: str) -> "ConversationTemplate":
        return replace(self, template=self.template.with_locale(locale))

    def with_locale_manager(self, locale_manager: Optional[LocaleManager]) -> "ConversationTemplate":
        return replace(self, template=self.template.with_locale_manager(locale_manager))

    def var(self, name: str, value: Any) -> "ConversationTemplate":
        return replace(self, template=self.template.var(name, value))

    def render(self, variables: Optional[Mapping[str, Any]] = None) -> Tuple[ConversationMessage, ...]:
        return split_conversation(self.template.render(variables))
