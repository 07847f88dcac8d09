"""Configuration management using Pydantic settings.

This module implements a two-layer configuration system:
1. Environment: Loads raw values from environment variables (UPPER_CASE)
2. Settings: Clean settings with lowercase fields and resolved values

Usage:
    # CLI: Load from environment, then apply command line overrides
    settings = Settings.load().with_overrides(namespace="vms")

    # Tests: Construct directly with test values
    settings = Settings(namespace="default", verify_ssl=True)
"""

import os

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Environment(BaseSettings):
    """Raw environment variable loading.

    This class loads values directly from environment variables with UPPER_CASE names.
    It should not contain any derived values or transformation logic.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    KUBECONFIG: str | None = Field(
        default=None,
        description="Path to the kubeconfig file, or a path list merged by the kubernetes client",
    )
    VIRTCTL_CONTEXT: str | None = Field(
        default=None,
        description="Kubeconfig context to use instead of the current one",
    )
    VIRTCTL_NAMESPACE: str | None = Field(
        default=None,
        description="Namespace override; defaults to the active context's namespace",
    )
    VIRTCTL_VERIFY_SSL: bool = Field(
        default=True,
        description="Verify the API server certificate",
    )
    VIRTCTL_LOG_LEVEL: str = Field(
        default="WARNING",
        description="Root log level",
    )


class Settings(BaseModel):
    """Resolved settings for a single command invocation.

    For the CLI, use Settings.load() and apply flag values with with_overrides().
    For tests, construct directly with test values (defaults provided for convenience).
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    kubeconfig: str | None = None
    context: str | None = None
    namespace: str | None = None
    verify_ssl: bool = True
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _VALID_LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(sorted(_VALID_LOG_LEVELS))}")
        return level

    @field_validator("kubeconfig", "context", "namespace")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        return trimmed or None

    def with_overrides(self, **overrides: str | bool | None) -> "Settings":
        """Return a copy with every non-None override applied."""
        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return self
        return self.model_validate({**self.model_dump(), **updates})

    @classmethod
    def load(cls, env: Environment | None = None) -> "Settings":
        """Load settings from environment variables.

        Args:
            env: Optional Environment instance (for testing). If None, loads from environment.

        Returns:
            Settings instance with all values resolved
        """
        if env is None:
            env = Environment()

        # A path list is left to the kubernetes client, which merges every file in it
        kubeconfig = env.KUBECONFIG
        if kubeconfig and os.pathsep in kubeconfig:
            kubeconfig = None

        return cls(
            kubeconfig=kubeconfig,
            context=env.VIRTCTL_CONTEXT,
            namespace=env.VIRTCTL_NAMESPACE,
            verify_ssl=env.VIRTCTL_VERIFY_SSL,
            log_level=env.VIRTCTL_LOG_LEVEL,
        )
