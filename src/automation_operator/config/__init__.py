"""
Operator configuration.

Provides:
- Pydantic-based settings (environment variables, .env files, CLI flags)
- Service definition loading from a config file or flags
- The cluster defaults value shared with provisioning
"""

from automation_operator.config.loader import (
    definition_from_flags,
    load_service_definitions,
    resolve_service_definitions,
)
from automation_operator.config.models import ServiceDefinition
from automation_operator.config.settings import ClusterConfig, OperatorSettings

__all__ = [
    "ClusterConfig",
    "OperatorSettings",
    "ServiceDefinition",
    "definition_from_flags",
    "load_service_definitions",
    "resolve_service_definitions",
]
