"""
Operator settings using Pydantic.

Provides environment-based configuration loading with APB_OPERATOR_ prefix.
Command line flags are applied on top of these values by the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OperatorSettings(BaseSettings):
    """Operator settings."""

    # Watch
    resync: int = Field(5, ge=1, description="Seconds between full resyncs of watched resources")

    # Service definitions: config_file wins over the single-definition flags
    config_file: str | None = None
    api_version: str | None = None
    kind: str | None = None
    apb_image: str | None = None
    plan: str | None = None

    # APB spec source (bundled spec when unset)
    spec_dir: str | None = None

    # Kubernetes client
    kubeconfig: str | None = None
    context: str | None = None

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="APB_OPERATOR_",
        extra="ignore",
    )


@dataclass(frozen=True)
class ClusterConfig:
    """Cluster defaults handed to APB provisioning.

    Built once by the bootstrapper before any watch starts and passed
    explicitly to whatever needs it.
    """

    namespace: str
    pull_policy: str = "always"
    sandbox_role: str = "admin"
    keep_namespace: bool = True
