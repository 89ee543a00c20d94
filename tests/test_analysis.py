"""Tests for static template inspection and validation."""

from promptdoc.template.analysis import (
    MAX_INCLUDE_DEPTH,
    collect_i18n_keys,
    collect_includes,
    collect_variables,
    validate_template,
    validate_template_dir,
)
from promptdoc.template.parser import parse


class TestCollectors:
    """Tests for node tree collectors."""

    def test_collect_variables(self):
        nodes = parse(
            "{{name}} {{user.email}}"
            "{{#if debug}}{{#each items}}{{this.title}}{{this}}{{/each}}{{/if}}"
            '{{#switch mode}}{{#case "a"}}{{name}}{{/case}}{{/switch}}'
            '{{format_number ratio style="percent"}}'
        )
        assert collect_variables(nodes) == [
            "name",
            "user.email",
            "debug",
            "items",
            "mode",
            "ratio",
        ]

    def test_quoted_helper_arg_is_not_a_variable(self):
        assert collect_variables(parse('{{pluralize "3" "x"}}')) == []

    def test_collect_includes(self):
        nodes = parse("{{> a.md}}{{#if x}}{{> b.md}}{{/if}}{{> a.md}}")
        assert collect_includes(nodes) == ["a.md", "b.md"]

    def test_collect_i18n_keys(self):
        nodes = parse('{{i18n "greeting"}}{{#each xs}}{{i18n "item" n=this}}{{/each}}')
        assert collect_i18n_keys(nodes) == ["greeting", "item"]


class TestValidateTemplate:
    """Tests for validating single template files."""

    def test_missing_file(self, tmp_path):
        problems = validate_template(tmp_path / "missing.md")
        assert len(problems) == 1
        assert problems[0].startswith("TEMPLATE_NOT_FOUND:")

    def test_valid_template(self, prompts_dir):
        assert validate_template(prompts_dir / "reviewer.md") == []

    def test_parse_error(self, tmp_path):
        (tmp_path / "bad.md").write_text("{{#if x}}open")
        problems = validate_template(tmp_path / "bad.md")
        assert len(problems) == 1
        assert problems[0].startswith("PARSE_ERROR:")

    def test_missing_include(self, tmp_path):
        (tmp_path / "main.md").write_text("{{> nope.md}}")
        assert validate_template(tmp_path / "main.md") == ["INCLUDE_NOT_FOUND: nope.md"]

    def test_nested_missing_include(self, tmp_path):
        """Includes are followed recursively."""
        (tmp_path / "main.md").write_text("{{> mid.md}}")
        (tmp_path / "mid.md").write_text("{{> deep.md}}")
        assert validate_template(tmp_path / "main.md") == ["INCLUDE_NOT_FOUND: deep.md"]

    def test_parse_error_in_include(self, tmp_path):
        (tmp_path / "main.md").write_text("{{> bad.md}}")
        (tmp_path / "bad.md").write_text("{{/each}}")
        problems = validate_template(tmp_path / "main.md")
        assert len(problems) == 1
        assert problems[0].startswith("PARSE_ERROR:")

    def test_cycle_terminates(self, tmp_path):
        (tmp_path / "a.md").write_text("{{> b.md}}")
        (tmp_path / "b.md").write_text("{{> a.md}}")
        assert validate_template(tmp_path / "a.md") == []

    def test_declared_include_missing(self, tmp_path):
        (tmp_path / "main.md").write_text("---\nincludes: [partials/x.md]\n---\nBody")
        assert validate_template(tmp_path / "main.md") == [
            "DECLARED_INCLUDE_NOT_FOUND: partials/x.md"
        ]

    def test_depth_limit(self, tmp_path):
        count = MAX_INCLUDE_DEPTH + 3
        for i in range(count):
            (tmp_path / f"t{i}.md").write_text(f"{{{{> t{i + 1}.md}}}}")
        (tmp_path / f"t{count}.md").write_text("end")
        problems = validate_template(tmp_path / "t0.md")
        assert len(problems) == 1
        assert problems[0].startswith("INCLUDE_DEPTH_EXCEEDED:")


class TestValidateTemplateDir:
    """Tests for validating template directories."""

    def test_missing_directory(self, tmp_path):
        assert "ERROR" in validate_template_dir(tmp_path / "nope")

    def test_valid_directory(self, prompts_dir):
        assert validate_template_dir(prompts_dir) == {}

    def test_reports_only_broken_files(self, prompts_dir):
        (prompts_dir / "broken.md").write_text("{{#each xs}}")
        (prompts_dir / "conversations" / "chat.md").write_text("## User\n{{> nope.md}}")
        report = validate_template_dir(prompts_dir)
        assert sorted(report) == ["broken.md", "conversations/chat.md"]
        assert report["conversations/chat.md"] == ["INCLUDE_NOT_FOUND: nope.md"]
