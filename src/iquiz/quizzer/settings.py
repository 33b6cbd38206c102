"""Persisted settings for iquiz, including the quiz data-source location."""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

from iquiz.core import config as core_config
from iquiz.core import workspace as workspace_mod

CONFIG_FILENAME = "iquiz.toml"
CONFIG_ENV = "IQUIZ_CONFIG"
LOG_LEVEL_ENV = "IQUIZ_LOG_LEVEL"
DEFAULT_SOURCE_URL = "https://tednewardsandbox.site44.com/questions.json"

_HEADER = "iquiz settings. Edit by hand or with `iquiz source <url>`."

_DEFAULTS: Mapping[str, Mapping[str, Any]] = {
    "source": {"url": DEFAULT_SOURCE_URL},
    "http": {"timeout_seconds": 10.0},
    "logging": {"level": "INFO", "verbose": False},
}

logger = logging.getLogger(__name__)


class SettingsError(RuntimeError):
    """Raised when the settings file cannot be read or validated."""


@dataclass(frozen=True)
class SourceSettings:
    url: str


@dataclass(frozen=True)
class HttpSettings:
    timeout_seconds: float


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    verbose: bool


@dataclass(frozen=True)
class QuizSettings:
    source: SourceSettings
    http: HttpSettings
    logging: LoggingSettings


class DataSourceConfig:
    """The persisted data-source location, injected into the repository.

    ``get`` never raises: a missing or damaged file reads as ``None`` so the
    repository can fall back to its default. ``set`` raises
    :class:`SettingsError` rather than overwrite a file it cannot read back.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def get(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            document = core_config.load_toml(self.path)
        except core_config.TomlConfigError as exc:
            logger.warning(
                "Ignoring unreadable settings file",
                extra={"path": str(self.path), "reason": str(exc)},
            )
            return None
        section = document.get("source")
        value = section.get("url") if isinstance(section, Mapping) else None
        if not isinstance(value, str):
            if value is not None:
                logger.warning(
                    "Ignoring non-string source url",
                    extra={"path": str(self.path)},
                )
            return None
        return value.strip() or None

    def set(self, location: str) -> None:
        value = (location or "").strip()
        if not value:
            raise ValueError("Source location must not be empty.")
        tables = self._current_tables()
        tables["source"]["url"] = value
        try:
            core_config.write_toml_template(
                self.path,
                template=core_config.render_toml(tables, header=_HEADER),
                overwrite=True,
            )
        except core_config.TomlConfigError as exc:
            raise SettingsError(str(exc)) from exc
        logger.info("Stored source location", extra={"url": value})

    def _current_tables(self) -> MutableMapping[str, MutableMapping[str, Any]]:
        tables = _default_tables()
        if not self.path.exists():
            return tables
        try:
            core_config.merge_defaults(
                tables, core_config.load_toml(self.path)
            )
        except core_config.TomlConfigError as exc:
            raise SettingsError(str(exc)) from exc
        return tables


@dataclass(frozen=True)
class SettingsLoadResult:
    """Loaded settings together with where they came from."""

    settings: QuizSettings
    layout: workspace_mod.WorkspaceLayout
    config_path: Path
    source: DataSourceConfig


def load_settings(
    *,
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> SettingsLoadResult:
    """Load settings applying precedence file > defaults, env for log level.

    A missing file is not an error; the defaults apply until something is
    stored.
    """

    env_map = os.environ if env is None else env
    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise SettingsError(str(exc)) from exc

    path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )
    tables = _default_tables()
    if path.exists():
        try:
            core_config.merge_defaults(tables, core_config.load_toml(path))
        except core_config.TomlConfigError as exc:
            raise SettingsError(str(exc)) from exc

    env_level = (env_map.get(LOG_LEVEL_ENV) or "").strip()
    if env_level:
        tables["logging"]["level"] = env_level

    return SettingsLoadResult(
        settings=_build_settings(tables),
        layout=layout,
        config_path=path,
        source=DataSourceConfig(path),
    )


def write_settings_template(path: Path, *, overwrite: bool = False) -> Path:
    """Write the packaged settings template to ``path``."""

    template = (
        resources.files("iquiz.quizzer")
        .joinpath(CONFIG_FILENAME)
        .read_text(encoding="utf-8")
    )
    try:
        return core_config.write_toml_template(
            path, template=template, overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise SettingsError(str(exc)) from exc


def _default_tables() -> MutableMapping[str, MutableMapping[str, Any]]:
    return {key: dict(value) for key, value in copy.deepcopy(_DEFAULTS).items()}


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return Path(config_path).expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _build_settings(tables: Mapping[str, Mapping[str, Any]]) -> QuizSettings:
    url = tables["source"]["url"]
    if not isinstance(url, str):
        raise SettingsError("'source.url' must be a string.")

    timeout = tables["http"]["timeout_seconds"]
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise SettingsError("'http.timeout_seconds' must be a number.")
    if timeout <= 0:
        raise SettingsError("'http.timeout_seconds' must be positive.")

    level = tables["logging"]["level"]
    if not isinstance(level, str) or not level.strip():
        raise SettingsError("'logging.level' must be a non-empty string.")
    verbose = tables["logging"]["verbose"]
    if not isinstance(verbose, bool):
        raise SettingsError("'logging.verbose' must be true or false.")

    return QuizSettings(
        source=SourceSettings(url=url.strip()),
        http=HttpSettings(timeout_seconds=float(timeout)),
        logging=LoggingSettings(level=level.strip().upper(), verbose=verbose),
    )
