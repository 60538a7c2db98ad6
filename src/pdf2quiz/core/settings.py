"""Settings loader for the pdf2quiz server and client.

Precedence is CLI overrides > environment > TOML file > built-in defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Mapping, MutableMapping, Optional, Sequence

from dotenv import load_dotenv

from . import config as core_config
from . import workspace as workspace_mod

CONFIG_FILENAME = "pdf2quiz.toml"
CONFIG_ENV = "PDF2QUIZ_CONFIG"
ENV_PREFIX = "PDF2QUIZ_"
PORT_ENV = "PORT"
BACKEND_URL_ENV = "PDF2QUIZ_BACKEND_URL"

DEFAULT_CORS_ORIGINS: tuple[str, ...] = (
    "http://localhost:5174",
    "https://pdf2quiz-chi.vercel.app",
)


class SettingsError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class Settings:
    """Fully resolved runtime settings."""

    host: str
    port: int
    cors_origins: tuple[str, ...]
    backend_url: str
    client_timeout: float
    model: str
    temperature: float
    max_tokens: int
    log_level: str


@dataclass(frozen=True)
class SettingsOverrides:
    """CLI-sourced overrides applied on top of env/file options."""

    host: Optional[str] = None
    port: Optional[int] = None
    backend_url: Optional[str] = None
    model: Optional[str] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    settings: Settings
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_settings(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[SettingsOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve :class:`Settings` and the workspace layout."""

    overrides = overrides or SettingsOverrides()
    if env is None:
        load_dotenv()
        env = os.environ

    try:
        layout = workspace_mod.ensure_workspace(env=env, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise SettingsError(str(exc)) from exc

    requested = _resolve_config_path(
        config_path=config_path,
        env=env,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )
    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        try:
            core_config.merge_defaults(table, core_config.load_toml(requested))
        except core_config.TomlConfigError as exc:
            raise SettingsError(str(exc)) from exc
        loaded_path = requested
    elif config_path is not None or (env.get(CONFIG_ENV) or "").strip():
        raise SettingsError(f"Config file not found: {requested}")

    server = table["server"]
    client = table["client"]
    ai = table["ai"]

    settings = Settings(
        host=_as_str(
            _pick_first(overrides.host, _env(env, "HOST"), server["host"]),
            "server.host",
        ),
        port=_as_port(
            _pick_first(
                overrides.port,
                _env(env, PORT_ENV, prefixed=False),
                server["port"],
            )
        ),
        cors_origins=_as_origins(
            _pick_first(_env_list(env, "CORS_ORIGINS"), server["cors_origins"])
        ),
        backend_url=_as_str(
            _pick_first(
                overrides.backend_url,
                _env(env, BACKEND_URL_ENV, prefixed=False),
                client["backend_url"],
            ),
            "client.backend_url",
        ).rstrip("/"),
        client_timeout=_as_positive_float(client["timeout"], "client.timeout"),
        model=_as_str(
            _pick_first(overrides.model, _env(env, "AI_MODEL"), ai["model"]),
            "ai.model",
        ),
        temperature=_as_float(ai["temperature"], "ai.temperature"),
        max_tokens=_as_positive_int(ai["max_tokens"], "ai.max_tokens"),
        log_level=_as_str(
            _pick_first(
                overrides.log_level,
                _env(env, "LOG_LEVEL"),
                table["logging"]["level"],
            ),
            "logging.level",
        ).upper(),
    )
    return LoadResult(settings=settings, layout=layout, config_path=loaded_path)


def config_template() -> str:
    """Return the packaged ``pdf2quiz.toml`` template text."""

    resource = resources.files("pdf2quiz").joinpath("template.toml")
    return resource.read_text(encoding="utf-8")


def write_config_template(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_toml_template(
            path, template=config_template(), overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise SettingsError(str(exc)) from exc


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "server": {
            "host": "0.0.0.0",
            "port": 5000,
            "cors_origins": list(DEFAULT_CORS_ORIGINS),
        },
        "client": {"backend_url": "http://localhost:5000", "timeout": 120.0},
        "ai": {"model": "gpt-4o-mini", "temperature": 0.2, "max_tokens": 4000},
        "logging": {"level": "INFO"},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    candidate = (env.get(CONFIG_ENV) or "").strip()
    if candidate:
        return Path(candidate).expanduser()
    return default_path


def _env(
    env: Mapping[str, str], key: str, *, prefixed: bool = True
) -> Optional[str]:
    name = f"{ENV_PREFIX}{key}" if prefixed else key
    raw = env.get(name)
    if raw is None:
        return None
    return raw.strip() or None


def _env_list(env: Mapping[str, str], key: str) -> Optional[list[str]]:
    raw = _env(env, key)
    if raw is None:
        return None
    return [part.strip() for part in raw.split(",") if part.strip()] or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _as_str(value: object, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SettingsError(f"{key} must be a non-empty string.")
    return value.strip()


def _as_port(value: object) -> int:
    try:
        port = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise SettingsError(f"Invalid port value: {value!r}") from exc
    if not 0 < port < 65536:
        raise SettingsError(f"Port out of range: {port}")
    return port


def _as_origins(value: object) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise SettingsError("server.cors_origins must be a list of strings.")
    origins = tuple(str(item).strip().rstrip("/") for item in value)
    if not all(origins):
        raise SettingsError("server.cors_origins entries must be non-empty.")
    return origins


def _as_float(value: object, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SettingsError(f"{key} must be a number.")
    return float(value)


def _as_positive_float(value: object, key: str) -> float:
    number = _as_float(value, key)
    if number <= 0:
        raise SettingsError(f"{key} must be greater than zero.")
    return number


def _as_positive_int(value: object, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise SettingsError(f"{key} must be a positive integer.")
    return value
