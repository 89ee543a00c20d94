"""Tests for the promptdoc command line."""

import json

import pytest

from promptdoc.cli import main


@pytest.fixture
def template_file(tmp_path):
    path = tmp_path / "hello.md"
    path.write_text(
        '---\nrequired_variables: [name]\n---\n{{i18n "greeting"}}, {{name}}!',
        encoding="utf-8",
    )
    return path


class TestRender:
    """Tests for the render command."""

    def test_render_to_stdout(self, template_file, locales_dir, capsys):
        code = main(
            [
                "render",
                "--template", str(template_file),
                "--vars", '{"name": "Alice"}',
                "--locales-dir", str(locales_dir),
            ]
        )
        assert code == 0
        assert capsys.readouterr().out == "Hello, Alice!\n"

    def test_render_with_vars_file_and_locale(self, template_file, locales_dir, tmp_path, capsys):
        vars_file = tmp_path / "vars.yaml"
        vars_file.write_text("name: Ana\n")
        code = main(
            [
                "render",
                "--template", str(template_file),
                "--vars", f"@{vars_file}",
                "--locale", "es-MX",
                "--locales-dir", str(locales_dir),
            ]
        )
        assert code == 0
        assert "Hola, Ana!" in capsys.readouterr().out

    def test_render_to_file(self, template_file, locales_dir, tmp_path):
        output = tmp_path / "out.md"
        code = main(
            [
                "render",
                "--template", str(template_file),
                "--vars", '{"name": "Bo"}',
                "--locales-dir", str(locales_dir),
                "--output", str(output),
            ]
        )
        assert code == 0
        assert output.read_text(encoding="utf-8") == "Hello, Bo!"

    def test_missing_required_variable(self, template_file, locales_dir, capsys):
        code = main(["render", "--template", str(template_file), "--locales-dir", str(locales_dir)])
        assert code == 1
        assert "ERROR: Required variables missing: name" in capsys.readouterr().err

    def test_invalid_vars(self, template_file, capsys):
        code = main(["render", "--template", str(template_file), "--vars", "[1, 2]"])
        assert code == 1
        assert "ERROR" in capsys.readouterr().err

    def test_template_required(self, capsys):
        assert main(["render"]) == 1
        assert "--template" in capsys.readouterr().err


class TestValidate:
    """Tests for the validate command."""

    def test_valid_template(self, prompts_dir, capsys):
        assert main(["validate", "--template", str(prompts_dir / "reviewer.md")]) == 0
        assert capsys.readouterr().out.startswith("OK:")

    def test_broken_template(self, tmp_path, capsys):
        path = tmp_path / "main.md"
        path.write_text("{{> nope.md}}")
        assert main(["validate", "--template", str(path)]) == 1
        assert "INCLUDE_NOT_FOUND: nope.md" in capsys.readouterr().out

    def test_directory(self, prompts_dir, capsys):
        assert main(["validate", "--dir", str(prompts_dir)]) == 0
        assert "All templates valid" in capsys.readouterr().out

    def test_directory_with_problems(self, prompts_dir, capsys):
        (prompts_dir / "broken.md").write_text("{{#if x}}")
        assert main(["validate", "--dir", str(prompts_dir)]) == 1
        assert "broken.md" in capsys.readouterr().out


class TestListAndInspect:
    """Tests for the list and inspect commands."""

    def test_list(self, prompts_dir, capsys):
        assert main(["list", "--dir", str(prompts_dir)]) == 0
        out = capsys.readouterr().out
        assert "Templates (2):" in out
        assert "  greeting" in out
        assert "Conversations (1):" in out
        assert "  tutor" in out

    def test_inspect(self, prompts_dir, capsys):
        assert main(["inspect", "--template", str(prompts_dir / "reviewer.md")]) == 0
        report = json.loads(capsys.readouterr().out)
        assert report["default_variables"] == ["audience"]
        assert report["includes"] == ["partials/rules.md"]
        assert report["variables"] == []
        assert report["i18n_keys"] == []

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            main(["publish"])
