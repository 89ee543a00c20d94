"""
promptdoc/template - Template language: parser, node model, executor and loaders.

This package provides:
- parse: template text -> immutable node tuple
- TemplateExecutor: node tuple + variables + locale -> text
- PromptTemplate: frontmatter + nodes, the unit callers render
- ConversationTemplate: rendered text split into role-tagged turns
- TemplateSet: directory-scoped registry with bulk locale switching
- analysis: static inspection and validation
"""

from .analysis import (
    collect_i18n_keys,
    collect_includes,
    collect_variables,
    validate_template,
    validate_template_dir,
)
from .compiled import PromptTemplate
from .conversation import ConversationMessage, ConversationTemplate, Role, split_conversation
from .executor import TemplateExecutor, is_truthy, render, value_to_string
from .frontmatter import TemplateFrontmatter, split_frontmatter
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
    Switch,
    Text,
    Variable,
)
from .parser import TemplateParser, parse
from .template_set import TemplateSet

__all__ = [
    # Nodes
    "Case",
    "Each",
    "Helper",
    "I18n",
    "If",
    "IfLocale",
    "Include",
    "NestedVariable",
    "Node",
    "Switch",
    "Text",
    "Variable",
    # Parsing and rendering
    "TemplateParser",
    "parse",
    "TemplateExecutor",
    "render",
    "is_truthy",
    "value_to_string",
    "TemplateFrontmatter",
    "split_frontmatter",
    # Templates
    "PromptTemplate",
    "ConversationTemplate",
    "ConversationMessage",
    "Role",
    "split_conversation",
    "TemplateSet",
    # Analysis
    "collect_i18n_keys",
    "collect_includes",
    "collect_variables",
    "validate_template",
    "validate_template_dir",
]
