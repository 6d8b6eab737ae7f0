"""
Application Configuration Module.

Manages application settings and environment variables using Pydantic for validation.
Provides centralized configuration management with type safety and validation.

Features:
- Environment variable loading and validation
- Secure credential management
- Path normalization for workspace directories

Settings are built once by the command line layer and passed explicitly to the
clients and aggregators that need them. Only the logging configuration is read
at import time, so that every module can share one logger.
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from logger import LogManager


class LoggingSettings(BaseSettings):
    """
    Logging configuration, independent of any GitHub credentials.

    Attributes:
        app_name (str): Name of the application, used as the logger name
        dev (bool): Debug mode flag, enables console output
        log_dir (str): Directory for log files
        log_level (int): Logging level (default: info)
    """

    app_name: str = Field(default="orgsync", description="Application name")
    dev: bool = Field(default=False, description="Debug mode")
    log_dir: str = Field(default="logs", description="Logging directory")
    log_level: int = Field(default=20, description="Logging level, default info")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(LoggingSettings):
    """
    Application configuration settings with validation.

    Attributes:
        github_token (SecretStr): GitHub API authentication token
        github_org (Optional[str]): Default organization to operate on
        github_timeout (int): Per-request timeout in seconds
        github_per_page (int): Page size used for listing endpoints
        workspace_file (str): Path to the workspace manifest
        workspace_root (str): Directory holding the workspace checkouts
    """

    # GitHub configuration
    github_token: SecretStr = Field(..., description="GitHub token")
    github_org: Optional[str] = Field(
        default=None, description="Default GitHub organization"
    )
    github_timeout: int = Field(
        default=5, gt=0, description="GitHub request timeout in seconds"
    )
    github_per_page: int = Field(
        default=100, ge=1, le=100, description="Page size for listing endpoints"
    )

    # Workspace configuration
    workspace_file: str = Field(
        default="workspace.json", description="Workspace manifest file"
    )
    workspace_root: str = Field(
        default=".", description="Directory containing the workspace checkouts"
    )

    @field_validator("workspace_root")
    def ensure_absolute_path(cls, v: str) -> str:
        """
        Ensure workspace root path is absolute.

        Args:
            v (str): Directory path to validate

        Returns:
            str: Absolute path to the workspace root
        """
        if not os.path.isabs(v):
            return os.path.abspath(v)
        return v


@lru_cache
def get_settings() -> Settings:
    """Load and cache the application settings."""
    return Settings()


_log_settings = LoggingSettings()

# Initialize logging configuration
logger = LogManager(
    app_name=_log_settings.app_name.lower(),
    log_dir=_log_settings.log_dir,
    development=_log_settings.dev,
    level=_log_settings.log_level,
).logger
