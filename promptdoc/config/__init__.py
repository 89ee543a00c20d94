"""promptdoc/config - Runtime configuration (runtime.yaml + environment overrides)."""

from .runtime_config import (
    RuntimeSettings,
    get_conversations_subdir,
    get_default_locale,
    get_locale_file_extensions,
    get_locales_dir,
    get_rtl_languages,
    get_runtime_settings,
    get_template_extension,
    reset_config,
)

__all__ = [
    "RuntimeSettings",
    "get_conversations_subdir",
    "get_default_locale",
    "get_locale_file_extensions",
    "get_locales_dir",
    "get_rtl_languages",
    "get_runtime_settings",
    "get_template_extension",
    "reset_config",
]
