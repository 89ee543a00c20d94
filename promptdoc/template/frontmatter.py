"""
frontmatter.py - Split and validate the YAML frontmatter of a template.

    ---
    variables:
      role: assistant
    required_variables: [name]
    i18n_key: system
    includes: [partials/rules.md]
    ---
    Hello {{name}}, I am your {{role}}.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from promptdoc.errors import TemplateParseError

FRONTMATTER_DELIMITER = "---"


class TemplateFrontmatter(BaseModel):
    """Template metadata from YAML frontmatter.

    Unknown top-level keys are kept as extra fields.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    variables: Dict[str, Any] = Field(default_factory=dict)
    required_variables: List[str] = Field(default_factory=list)
    i18n_key: Optional[str] = None
    includes: List[str] = Field(default_factory=list)

    @field_validator("variables", mode="before")
    @classmethod
    def _none_to_empty_map(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("required_variables", "includes", mode="before")
    @classmethod
    def _none_to_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("required_variables")
    @classmethod
    def _dedupe(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))


def split_frontmatter(
    content: str, source_name: Optional[str] = None
) -> Tuple[TemplateFrontmatter, str]:
    """Split ``content`` into (frontmatter, body).

    Content without a leading ``---`` line, or without a closing ``---`` line,
    has empty frontmatter and is returned unchanged as the body.

    Raises:
        TemplateParseError: If the YAML is invalid or has the wrong shape.
    """
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].lstrip("\ufeff").strip() != FRONTMATTER_DELIMITER:
        return TemplateFrontmatter(), content

    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_DELIMITER:
            yaml_text = "".join(lines[1:index])
            body = "".join(lines[index + 1:])
            break
    else:
        return TemplateFrontmatter(), content

    return parse_frontmatter(yaml_text, source_name), body


def parse_frontmatter(yaml_text: str, source_name: Optional[str] = None) -> TemplateFrontmatter:
    """Validate the YAML between the frontmatter delimiters."""
    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as e:
        raise TemplateParseError(f"Invalid YAML frontmatter: {e}", source_name=source_name) from e

    if data is None:
        return TemplateFrontmatter()
    if not isinstance(data, dict):
        raise TemplateParseError(
            "Frontmatter must be a YAML mapping", source_name=source_name
        )

    try:
        return TemplateFrontmatter.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise TemplateParseError(
            f"Invalid frontmatter: {problems}", source_name=source_name
        ) from e
