"""
promptdoc - Locale-aware prompt templates compiled to an AST.

Templates are Markdown files with optional YAML frontmatter and ``{{ ... }}``
directives (variables, conditionals, loops, switches, locale branches,
includes, translations and formatting helpers).

Usage:
    from promptdoc import LocaleManager, PromptTemplate, TemplateSet

    template = PromptTemplate.load("prompts/reviewer.md")
    text = template.render({"name": "Alice"})

    prompts = TemplateSet.from_dir("prompts", locales_dir="locales").with_locale("es")
    messages = prompts.render_conversation("tutor", {"topic": "Rust"})
"""

from .errors import (
    I18nKeyNotFoundError,
    LocaleConfigError,
    LocaleNotFoundError,
    PromptdocError,
    PromptFileReadError,
    RequiredVariablesMissingError,
    TemplateNotFoundError,
    TemplateParseError,
    UnrenderableValueError,
    VariableNotFoundError,
)
from .i18n import LocaleData, LocaleManager, TextDirection
from .template import (
    ConversationMessage,
    ConversationTemplate,
    PromptTemplate,
    Role,
    TemplateExecutor,
    TemplateSet,
    parse,
)

__version__ = "0.1.0"

__all__ = [
    # Templates
    "PromptTemplate",
    "ConversationTemplate",
    "ConversationMessage",
    "Role",
    "TemplateSet",
    "TemplateExecutor",
    "parse",
    # Locales
    "LocaleData",
    "LocaleManager",
    "TextDirection",
    # Errors
    "PromptdocError",
    "TemplateParseError",
    "RequiredVariablesMissingError",
    "VariableNotFoundError",
    "UnrenderableValueError",
    "LocaleNotFoundError",
    "LocaleConfigError",
    "I18nKeyNotFoundError",
    "PromptFileReadError",
    "TemplateNotFoundError",
]
