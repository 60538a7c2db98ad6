"""Core shared helpers for the pdf2quiz server and client."""

from __future__ import annotations

from .ai import load_client
from .config import (
    TomlConfigError,
    load_toml,
    merge_defaults,
    write_toml_template,
)
from .logging import JsonLogFormatter, configure_logger, get_logger
from .settings import (
    LoadResult,
    Settings,
    SettingsError,
    SettingsOverrides,
    load_settings,
    write_config_template,
)
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "load_client",
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
    "JsonLogFormatter",
    "configure_logger",
    "get_logger",
    "LoadResult",
    "Settings",
    "SettingsError",
    "SettingsOverrides",
    "load_settings",
    "write_config_template",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
