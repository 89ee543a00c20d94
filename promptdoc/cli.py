"""
cli.py - Command line entry point for rendering and validating templates.

Usage:
    promptdoc render --template prompts/reviewer.md --vars '{"name": "Alice"}'
    promptdoc render --template prompts/reviewer.md --vars @vars.yaml \\
        --locale es --locales-dir locales --output out.md
    promptdoc validate --template prompts/reviewer.md
    promptdoc validate --dir prompts
    promptdoc list --dir prompts
    promptdoc inspect --template prompts/reviewer.md
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from promptdoc.config.runtime_config import get_locales_dir
from promptdoc.errors import PromptdocError
from promptdoc.i18n.locale import LocaleManager
from promptdoc.template.analysis import (
    collect_i18n_keys,
    collect_includes,
    collect_variables,
    validate_template,
    validate_template_dir,
)
from promptdoc.template.compiled import PromptTemplate
from promptdoc.template.template_set import TemplateSet

logger = logging.getLogger(__name__)


def _load_vars(raw: Optional[str]) -> Dict[str, Any]:
    """Parse --vars: inline JSON, or @path to a JSON/YAML file."""
    if not raw:
        return {}
    if raw.startswith("@"):
        text = Path(raw[1:]).read_text(encoding="utf-8")
    else:
        text = raw
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid --vars: {e}")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("--vars must be a JSON/YAML object")
    return data


def _cmd_render(args: argparse.Namespace) -> int:
    if not args.template:
        print("ERROR: --template required for render command", file=sys.stderr)
        return 1

    locales_dir = args.locales_dir or get_locales_dir()
    manager = LocaleManager(locales_dir, args.default_locale) if locales_dir else None

    template = PromptTemplate.load(args.template, locale_manager=manager, base_path=args.base_path)
    if args.locale:
        template = template.with_locale(args.locale)

    rendered = template.render(_load_vars(args.vars))

    if args.output:
        Path(args.output).write_text(rendered, encoding="utf-8")
        print(f"Written to: {args.output}")
    else:
        print(rendered)
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    if args.template:
        problems = validate_template(args.template, args.base_path)
        if problems:
            print(f"Problems in {args.template}:")
            for problem in problems:
                print(f"  - {problem}")
            return 1
        print(f"OK: {args.template}")
        return 0

    if not args.dir:
        print("ERROR: --template or --dir required for validate command", file=sys.stderr)
        return 1

    results = validate_template_dir(args.dir)
    if results:
        print("Templates with problems:")
        for path, problems in results.items():
            print(f"\n  {path}:")
            for problem in problems:
                print(f"    - {problem}")
        return 1
    print("OK: All templates valid")
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    if not args.dir:
        print("ERROR: --dir required for list command", file=sys.stderr)
        return 1

    template_set = TemplateSet.from_dir(args.dir, locales_dir=args.locales_dir)
    templates = template_set.list_templates()
    conversations = template_set.list_conversations()
    print(f"Templates ({len(templates)}):")
    for name in templates:
        print(f"  {name}")
    print(f"\nConversations ({len(conversations)}):")
    for name in conversations:
        print(f"  {name}")
    return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
    if not args.template:
        print("ERROR: --template required for inspect command", file=sys.stderr)
        return 1

    template = PromptTemplate.load(args.template, base_path=args.base_path)
    report = {
        "required_variables": template.required_variables,
        "default_variables": sorted(template.default_variables),
        "variables": collect_variables(template.nodes),
        "includes": collect_includes(template.nodes),
        "i18n_keys": collect_i18n_keys(template.nodes),
    }
    print(json.dumps(report, indent=2))
    return 0


_COMMANDS = {
    "render": _cmd_render,
    "validate": _cmd_validate,
    "list": _cmd_list,
    "inspect": _cmd_inspect,
}


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="promptdoc", description="Render and validate prompt templates"
    )
    parser.add_argument("command", choices=sorted(_COMMANDS), help="Command to run")
    parser.add_argument("--template", help="Template file for render/validate/inspect")
    parser.add_argument("--dir", help="Template directory for validate/list")
    parser.add_argument("--vars", help="Variables as JSON, or @file (JSON or YAML)")
    parser.add_argument("--locale", help="Locale to render with")
    parser.add_argument("--locales-dir", help="Locales directory")
    parser.add_argument("--default-locale", help="Fallback locale of the locales directory")
    parser.add_argument("--base-path", help="Include root (defaults to the template directory)")
    parser.add_argument("--output", help="Output file for the rendered template")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return _COMMANDS[args.command](args)
    except (PromptdocError, ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
