"""
Test fixtures for promptdoc.

Provides temporary locale and template directories and keeps the runtime
configuration isolated from the developer's environment.
"""

from pathlib import Path

import pytest

from promptdoc.config.runtime_config import ENV_DEFAULT_LOCALE, ENV_LOCALES_DIR, reset_config
from promptdoc.i18n.locale import LocaleManager

# ============================================================================
# Configuration isolation
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Clear promptdoc environment overrides and the cached runtime config."""
    monkeypatch.delenv(ENV_DEFAULT_LOCALE, raising=False)
    monkeypatch.delenv(ENV_LOCALES_DIR, raising=False)
    reset_config()
    yield
    reset_config()


# ============================================================================
# Locale fixtures
# ============================================================================

EN_MESSAGES = """\
greeting: Hello
system:
  title: "You are a helpful assistant"
  welcome: "Welcome, {name}!"
stats:
  rate: "Success rate: {rate}"
  items: "{count} items for {name}"
"""

ES_MESSAGES = """\
greeting: Hola
system:
  title: "Eres un asistente útil"
  welcome: "¡Bienvenido, {name}!"
"""

AR_MESSAGES = """\
greeting: مرحبا
system:
  title: "أنت مساعد مفيد"
"""


@pytest.fixture
def locales_dir(tmp_path: Path) -> Path:
    """Create a locales directory with en, es and ar tables."""
    root = tmp_path / "locales"
    for locale, content in (("en", EN_MESSAGES), ("es", ES_MESSAGES), ("ar", AR_MESSAGES)):
        (root / locale).mkdir(parents=True)
        (root / locale / "messages.yaml").write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def locale_manager(locales_dir: Path) -> LocaleManager:
    return LocaleManager(locales_dir, "en")


# ============================================================================
# Template directory fixtures
# ============================================================================


@pytest.fixture
def prompts_dir(tmp_path: Path) -> Path:
    """Create a template directory with partials and conversation templates."""
    root = tmp_path / "prompts"
    (root / "partials").mkdir(parents=True)
    (root / "conversations").mkdir()

    (root / "partials" / "rules.md").write_text(
        "Rules for {{audience}}: be concise.", encoding="utf-8"
    )
    (root / "greeting.md").write_text(
        """---
required_variables:
  - name
---
{{i18n "greeting"}}, {{name}}!""",
        encoding="utf-8",
    )
    (root / "reviewer.md").write_text(
        """---
variables:
  audience: reviewers
includes:
  - partials/rules.md
---
You review code.
{{> partials/rules.md}}""",
        encoding="utf-8",
    )
    (root / "conversations" / "tutor.md").write_text(
        """---
required_variables: [topic]
---
## System
You are teaching {{topic}}.

## User
How do I get started with {{topic}}?
""",
        encoding="utf-8",
    )
    return root
