"""
Configuration management with schema validation.
Defaults cover every field; an optional YAML file and environment
variables override them.
"""

import os
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError


class AppSettings(BaseModel):
    name: str = "CRUD App"
    version: str = "1.0.0"
    environment: str = "development"


class StorageSettings(BaseModel):
    backend: Literal["file", "memory"] = "file"
    data_dir: str = "data"
    file_name: str = "local_storage.json"
    database_key: str = "crud_app_database"
    token_key: str = "auth_token"
    user_id_key: str = "user_id"

    @property
    def file_path(self) -> Path:
        return Path(self.data_dir) / self.file_name


class AuthSettings(BaseModel):
    session_expiry_hours: int = Field(default=24, gt=0)
    min_password_length: int = Field(default=6, ge=1)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _substitute_env_vars(value: Any) -> Any:
    """Recursively substitute ${VAR} and ${VAR:default} references"""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            var_expr = value[2:-1]
            if ":" in var_expr:
                var_name, default = var_expr.split(":", 1)
                return os.getenv(var_name.strip(), default.strip())
            return os.getenv(var_expr, value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def load_settings(path: Optional[Union[str, Path]] = None) -> Settings:
    """Load and validate settings, falling back to defaults when no path is given"""
    load_dotenv()

    if path is None:
        return Settings()

    settings_path = Path(path)
    if not settings_path.exists():
        raise ConfigError(f"Settings file not found: {settings_path}")

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse settings from {settings_path}: {str(e)}")

    if not isinstance(raw_data, dict):
        raise ConfigError(f"Settings file must contain a mapping: {settings_path}")

    try:
        return Settings(**_substitute_env_vars(raw_data))
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {settings_path}: {str(e)}")
