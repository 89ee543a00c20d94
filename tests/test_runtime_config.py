"""Tests for runtime configuration and environment overrides."""

from pathlib import Path

from promptdoc.config import runtime_config
from promptdoc.config.runtime_config import (
    ENV_DEFAULT_LOCALE,
    ENV_LOCALES_DIR,
    get_conversations_subdir,
    get_default_locale,
    get_locale_file_extensions,
    get_locales_dir,
    get_rtl_languages,
    get_runtime_settings,
    get_template_extension,
    reset_config,
)


class TestDefaults:
    """Tests for values shipped in runtime.yaml."""

    def test_default_locale(self):
        assert get_default_locale() == "en"

    def test_no_locales_dir(self):
        assert get_locales_dir() is None

    def test_layout(self):
        assert get_template_extension() == ".md"
        assert get_conversations_subdir() == "conversations"
        assert get_locale_file_extensions() == (".yaml", ".yml")

    def test_rtl_languages(self):
        assert set(get_rtl_languages()) == {"ar", "he", "fa", "ur"}


class TestEnvironmentOverrides:
    """Environment variables take precedence over the config file."""

    def test_default_locale_override(self, monkeypatch):
        monkeypatch.setenv(ENV_DEFAULT_LOCALE, "es")
        assert get_default_locale() == "es"

    def test_locales_dir_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv(ENV_LOCALES_DIR, str(tmp_path))
        assert get_locales_dir() == tmp_path

    def test_empty_env_value_ignored(self, monkeypatch):
        monkeypatch.setenv(ENV_DEFAULT_LOCALE, "")
        assert get_default_locale() == "en"

    def test_settings_snapshot(self, monkeypatch, tmp_path):
        monkeypatch.setenv(ENV_DEFAULT_LOCALE, "ar")
        monkeypatch.setenv(ENV_LOCALES_DIR, str(tmp_path))
        settings = get_runtime_settings()
        assert settings.default_locale == "ar"
        assert settings.locales_dir == tmp_path
        assert settings.template_extension == ".md"


class TestConfigFile:
    """Tests for loading and caching the config file."""

    def test_missing_file_uses_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setattr(runtime_config, "_CONFIG_PATH", tmp_path / "absent.yaml")
        reset_config()
        assert get_default_locale() == "en"
        assert get_conversations_subdir() == "conversations"

    def test_custom_file(self, monkeypatch, tmp_path):
        config_file = tmp_path / "runtime.yaml"
        config_file.write_text(
            "locale:\n"
            "  default: de\n"
            "  locales_dir: i18n\n"
            "  rtl_languages: [ar]\n"
            "templates:\n"
            "  extension: .prompt\n"
        )
        monkeypatch.setattr(runtime_config, "_CONFIG_PATH", config_file)
        reset_config()
        assert get_default_locale() == "de"
        assert get_locales_dir() == Path("i18n")
        assert get_rtl_languages() == ("ar",)
        assert get_template_extension() == ".prompt"
        assert get_conversations_subdir() == "conversations"

    def test_config_is_cached_until_reset(self, monkeypatch, tmp_path):
        config_file = tmp_path / "runtime.yaml"
        config_file.write_text("locale:\n  default: de\n")
        monkeypatch.setattr(runtime_config, "_CONFIG_PATH", config_file)
        reset_config()
        assert get_default_locale() == "de"

        config_file.write_text("locale:\n  default: it\n")
        assert get_default_locale() == "de"
        reset_config()
        assert get_default_locale() == "it"

    def test_malformed_section_ignored(self, monkeypatch, tmp_path):
        config_file = tmp_path / "runtime.yaml"
        config_file.write_text("locale: [not, a, mapping]\n")
        monkeypatch.setattr(runtime_config, "_CONFIG_PATH", config_file)
        reset_config()
        assert get_default_locale() == "en"
