from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import TodoRepositoryError, TodoValidationError
from .utils import atomic_write_text

logger = logging.getLogger(__name__)

PROVIDER_TYPES = ("json", "markdown", "memory")
DEFAULT_PROVIDER_TYPE = "markdown"
DEFAULT_APP_DIR = "~/.todo-cli"
CONFIG_FILE_NAME = "config.json"
DEFAULT_JSON_FILE_NAME = "todos.json"
DEFAULT_MARKDOWN_FILE_NAME = "todos.md"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TODO_CLI_HOME: application directory holding config.json and the default
      data files. Default '~/.todo-cli'
    - TODO_PROVIDER_TYPE: 'json', 'markdown' or 'memory'; consulted only when no
      config file has been written
    - TODO_JSON_FILE_PATH: path override for the JSON backend
    - TODO_MARKDOWN_FILE_PATH: path override for the Markdown backend
    - TODO_LOG_LEVEL: logging level name. Default 'WARNING'
    """

    app_dir: Path
    provider_type: Optional[str]
    json_file_path: Optional[str]
    markdown_file_path: Optional[str]
    log_level: str

    @property
    def config_file_path(self) -> Path:
        return self.app_dir / CONFIG_FILE_NAME


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value.strip() == "":
        return default
    return value


def _get_optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    app_dir = Path(_get_env("TODO_CLI_HOME", DEFAULT_APP_DIR).strip()).expanduser()
    provider = _get_optional_env("TODO_PROVIDER_TYPE")
    return Settings(
        app_dir=app_dir,
        provider_type=provider.lower() if provider else None,
        json_file_path=_get_optional_env("TODO_JSON_FILE_PATH"),
        markdown_file_path=_get_optional_env("TODO_MARKDOWN_FILE_PATH"),
        log_level=_get_env("TODO_LOG_LEVEL", "WARNING").strip().upper(),
    )


# PUBLIC_INTERFACE
class JsonProviderConfig(BaseModel):
    """JSON file backend; ``file_path`` falls back to env, then the default file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    type: Literal["json"] = "json"
    file_path: Optional[str] = Field(default=None, alias="filePath")


# PUBLIC_INTERFACE
class MarkdownProviderConfig(BaseModel):
    """Markdown file backend; ``file_path`` falls back to env, then the default file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    type: Literal["markdown"] = "markdown"
    file_path: Optional[str] = Field(default=None, alias="filePath")


# PUBLIC_INTERFACE
class MemoryProviderConfig(BaseModel):
    """Volatile in-process backend. Carries no parameters."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["memory"] = "memory"


DataProviderConfig = Annotated[
    Union[JsonProviderConfig, MarkdownProviderConfig, MemoryProviderConfig],
    Field(discriminator="type"),
]


class ConfigFile(BaseModel):
    """Shape of config.json: ``{"dataProvider": {"type": ..., "filePath"?: ...}}``."""

    model_config = ConfigDict(populate_by_name=True)

    data_provider: DataProviderConfig = Field(..., alias="dataProvider")


# PUBLIC_INTERFACE
def make_provider_config(provider_type: str, file_path: Optional[str] = None) -> DataProviderConfig:
    """
    Build a DataProviderConfig from a kind name and optional file path.

    Raises:
        TodoValidationError: for an unknown kind, or a file path given for memory.
    """
    kind = (provider_type or "").strip().lower()
    if kind == "json":
        return JsonProviderConfig(file_path=file_path)
    if kind == "markdown":
        return MarkdownProviderConfig(file_path=file_path)
    if kind == "memory":
        if file_path:
            raise TodoValidationError("filePath", "the memory provider does not take a file path")
        return MemoryProviderConfig()
    raise TodoValidationError(
        "type", f"unknown provider type '{provider_type}'; expected one of {', '.join(PROVIDER_TYPES)}"
    )


def describe_provider(config: DataProviderConfig) -> str:
    """Human readable name, e.g. 'JSON (/tmp/todos.json)' or 'Memory'."""
    name = {"json": "JSON", "markdown": "Markdown", "memory": "Memory"}[config.type]
    file_path = getattr(config, "file_path", None)
    return f"{name} ({file_path})" if file_path else name


# PUBLIC_INTERFACE
class ConfigManager:
    """
    Reads and persists the current data provider configuration.

    Resolution order for the active provider: explicit argument, then the
    persisted config file, then TODO_PROVIDER_TYPE, then the markdown default.
    The config file is written via write-temp-then-rename.
    """

    def __init__(
        self,
        config_file_path: Optional[Union[str, Path]] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.config_file_path = (
            Path(config_file_path).expanduser() if config_file_path else self.settings.config_file_path
        )

    def read_config(self) -> Optional[DataProviderConfig]:
        """Return the persisted config, or None when the file is absent or blank."""
        try:
            if not self.config_file_path.exists():
                return None
            content = self.config_file_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TodoRepositoryError(exc, f"reading {self.config_file_path}") from exc

        if not content.strip():
            return None

        try:
            return ConfigFile.model_validate_json(content).data_provider
        except ValidationError as exc:
            raise TodoRepositoryError(exc, f"invalid config file {self.config_file_path}") from exc

    def _config_from_env(self) -> Optional[DataProviderConfig]:
        if self.settings.provider_type is None:
            return None
        try:
            return make_provider_config(self.settings.provider_type)
        except TodoValidationError as exc:
            raise TodoValidationError("TODO_PROVIDER_TYPE", exc.reason) from exc

    def get_data_provider_config(self, explicit: Optional[DataProviderConfig] = None) -> DataProviderConfig:
        if explicit is not None:
            return explicit

        persisted = self.read_config()
        if persisted is not None:
            return persisted

        from_env = self._config_from_env()
        if from_env is not None:
            return from_env

        return make_provider_config(DEFAULT_PROVIDER_TYPE)

    def set_data_provider_config(self, config: DataProviderConfig) -> None:
        payload = {"dataProvider": config.model_dump(by_alias=True, exclude_none=True)}
        try:
            atomic_write_text(self.config_file_path, json.dumps(payload, indent=2) + "\n")
        except OSError as exc:
            raise TodoRepositoryError(exc, f"writing {self.config_file_path}") from exc
        logger.info("Data provider set to %s", describe_provider(config))

    def resolve_file_path(self, config: DataProviderConfig) -> Optional[Path]:
        """Data file for a config: explicit path, env override, then default. None for memory."""
        if config.type == "memory":
            return None
        if config.type == "json":
            raw = config.file_path or self.settings.json_file_path
            default = self.settings.app_dir / DEFAULT_JSON_FILE_NAME
        else:
            raw = config.file_path or self.settings.markdown_file_path
            default = self.settings.app_dir / DEFAULT_MARKDOWN_FILE_NAME
        return Path(raw).expanduser() if raw else default

    def same_backend(self, a: DataProviderConfig, b: DataProviderConfig) -> bool:
        """True when both configs denote the same kind backed by the same file."""
        if a.type != b.type:
            return False
        path_a = self.resolve_file_path(a)
        path_b = self.resolve_file_path(b)
        if path_a is None or path_b is None:
            return path_a is None and path_b is None
        return path_a.resolve() == path_b.resolve()
