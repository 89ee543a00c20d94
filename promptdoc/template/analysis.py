"""
analysis.py - Static inspection and validation of templates.

Walks parsed node trees to report which variables, includes and translation
keys a template references, and validates template files without rendering
them: parse errors, missing include targets (followed recursively) and
missing frontmatter ``includes``.

Usage:
    from promptdoc.template.analysis import validate_template, validate_template_dir

    problems = validate_template("prompts/reviewer.md")
    report = validate_template_dir("prompts")  # {"reviewer.md": [...]} for broken files
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Set, Union

from promptdoc.config.runtime_config import get_conversations_subdir, get_template_extension
from promptdoc.errors import TemplateParseError

from .executor import LOOP_ITEM
from .frontmatter import split_frontmatter
from .nodes import Each, Helper, I18n, If, Include, NestedVariable, Node, Switch, Variable, child_blocks
from .parser import is_quoted, parse

logger = logging.getLogger(__name__)

# Maximum include depth followed during validation
MAX_INCLUDE_DEPTH = 10


def walk(nodes: Sequence[Node]) -> Iterator[Node]:
    """Yield every node depth-first, in source order."""
    for node in nodes:
        yield node
        for block in child_blocks(node):
            yield from walk(block)


def _is_loop_binding(name: str) -> bool:
    return name == LOOP_ITEM or name.startswith(LOOP_ITEM + ".")


def collect_variables(nodes: Sequence[Node]) -> List[str]:
    """Names the template reads from its context (loop bindings excluded)."""
    names: List[str] = []
    for node in walk(nodes):
        if isinstance(node, (Variable, NestedVariable)):
            names.append(node.name)
        elif isinstance(node, If):
            names.append(node.condition)
        elif isinstance(node, (Each, Switch)):
            names.append(node.source)
        elif isinstance(node, Helper) and node.args and not is_quoted(node.args[0]):
            names.append(node.args[0])
    return list(dict.fromkeys(n for n in names if not _is_loop_binding(n)))


def collect_includes(nodes: Sequence[Node]) -> List[str]:
    """Include paths in order of first appearance."""
    return list(dict.fromkeys(node.path for node in walk(nodes) if isinstance(node, Include)))


def collect_i18n_keys(nodes: Sequence[Node]) -> List[str]:
    """Translation keys in order of first appearance."""
    return list(dict.fromkeys(node.key for node in walk(nodes) if isinstance(node, I18n)))


def validate_template(
    path: Union[str, Path],
    base_path: Optional[Union[str, Path]] = None,
) -> List[str]:
    """Validate a template file.

    Args:
        path: Template file.
        base_path: Include root. Defaults to the template's directory.

    Returns:
        List of problems. Empty list if the template is valid.
    """
    template_file = Path(path)
    if not template_file.is_file():
        return [f"TEMPLATE_NOT_FOUND: {template_file}"]

    base = Path(base_path) if base_path is not None else template_file.parent
    return _validate_file(template_file, base, depth=0, seen={str(template_file.resolve())})


def _validate_file(template_file: Path, base: Path, depth: int, seen: Set[str]) -> List[str]:
    if depth > MAX_INCLUDE_DEPTH:
        return [f"INCLUDE_DEPTH_EXCEEDED: {template_file}"]

    try:
        content = template_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return [f"READ_ERROR: {template_file}: {e}"]

    try:
        frontmatter, body = split_frontmatter(content, str(template_file))
        nodes = parse(body, str(template_file))
    except TemplateParseError as e:
        return [f"PARSE_ERROR: {e}"]

    problems: List[str] = []
    for declared in frontmatter.includes:
        if not (base / declared).is_file():
            problems.append(f"DECLARED_INCLUDE_NOT_FOUND: {declared}")

    for include in collect_includes(nodes):
        include_path = Path(include) if Path(include).is_absolute() else base / include
        if not include_path.is_file():
            problems.append(f"INCLUDE_NOT_FOUND: {include}")
            continue
        key = str(include_path.resolve())
        if key in seen:
            continue
        seen.add(key)
        problems.extend(_validate_file(include_path, base, depth + 1, seen))

    return problems


def validate_template_dir(dir_path: Union[str, Path]) -> Dict[str, List[str]]:
    """Validate top-level and conversation templates in a directory.

    Returns:
        Dict mapping paths (relative to ``dir_path``) to their problems.
        Only includes templates with problems.
    """
    base = Path(dir_path)
    if not base.is_dir():
        return {"ERROR": [f"Directory not found: {base}"]}

    extension = get_template_extension()
    candidates = sorted(base.glob(f"*{extension}"))
    conversations_dir = base / get_conversations_subdir()
    if conversations_dir.is_dir():
        candidates.extend(sorted(conversations_dir.glob(f"*{extension}")))

    results: Dict[str, List[str]] = {}
    for template_file in candidates:
        problems = validate_template(template_file, base)
        if problems:
            results[template_file.relative_to(base).as_posix()] = problems
            logger.debug("%s: %d problem(s)", template_file, len(problems))

    return results
