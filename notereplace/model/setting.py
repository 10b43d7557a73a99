"""
Settings management using Pydantic.

This module provides a singleton Settings class that loads engine configuration
from environment variables and .env files, and the PanelSettings record that
the host persists between sessions.
"""
import os
from pathlib import Path
from typing import Literal, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_file() -> str | None:
    """
    Find the .env file by searching the usual locations.

    Search order:
    1. Path specified by NOTEREPLACE_ENV_FILE environment variable
    2. Current working directory (.env)
    3. Project root directory (where setup.py/pyproject.toml exists) (.env)

    Returns:
        str | None: Path to .env file if found, None otherwise
    """
    custom_path = os.getenv('NOTEREPLACE_ENV_FILE')
    if custom_path and Path(custom_path).exists():
        return custom_path

    cwd = Path.cwd()
    env_file = cwd / '.env'
    if env_file.exists():
        return str(env_file)

    current = cwd
    for _ in range(5):  # Search up to 5 levels
        if (current / 'setup.py').exists() or (current / 'pyproject.toml').exists():
            env_file = current / '.env'
            if env_file.exists():
                return str(env_file)
            break
        if current.parent == current:
            break
        current = current.parent

    return None


class Settings(BaseSettings):
    """Engine-wide settings."""

    model_config = SettingsConfigDict(
        env_prefix="NOTEREPLACE_",
        env_file=None,  # resolved per instance by _find_env_file
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    def __init__(self, **kwargs: Any):
        """Initialize Settings, reading NOTEREPLACE_* entries from the nearest .env file.

        Process environment variables take precedence over the .env file.
        """
        kwargs.setdefault("_env_file", _find_env_file())
        super().__init__(**kwargs)

    max_matches: int = Field(
        default=10000,
        ge=1,
        description="Hard cap on matches collected by one search pass"
    )

    history_capacity: int = Field(
        default=10,
        ge=1,
        description="Number of batch operations kept for undo"
    )

    debounce_seconds: float = Field(
        default=0.5,
        ge=0,
        le=5,
        description="Quiet period after typing before a search starts"
    )

    page_size: int = Field(
        default=200,
        ge=1,
        description="Matches per page exposed while a scan is in flight"
    )

    document_suffixes: list[str] = Field(
        default_factory=lambda: [".md"],
        description="File suffixes treated as documents by the local vault"
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )

    log_file: str | None = Field(
        default=None,
        description="Optional log file path"
    )


class PanelSettings(BaseModel):
    """持久化的面板状态（扁平记录，缺失字段使用默认值，未知字段忽略）"""

    model_config = ConfigDict(extra="ignore")

    find_text: str = ""
    replace_text: str = ""
    use_regex: bool = True
    case_insensitive: bool = False
    whole_word: bool = False
    selection_only: bool = False
    process_line_break: bool = False
    process_tab: bool = False
    prefill_find: bool = False
    all_files: bool = False

    @classmethod
    def merge(cls, stored: dict[str, Any] | None) -> "PanelSettings":
        """将存储的记录合并到默认值之上

        Args:
            stored: 宿主返回的原始记录，可能为 None

        Returns:
            PanelSettings: 合并后的设置
        """
        return cls.model_validate(stored or {})


# Global singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global singleton Settings instance.

    Returns:
        Settings: The global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings from environment variables.

    This is useful for testing or when environment variables change at runtime.

    Returns:
        Settings: The new settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
