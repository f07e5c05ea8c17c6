"""
Service definition loading.

Definitions come from exactly one of two sources:
1. A config file (--configFile) with a top-level ``APBs`` collection
2. The single-definition flags (--api-version, --kind, --apb-image, --plan)

Config file layout (YAML or JSON):

    APBs:
      postgresql:
        api-version: app.example.com/v1alpha1
        kind: Postgresql
        image: docker.io/ansibleplaybookbundle/postgresql-apb
        plan: dev

``APBs`` may also be a list of entries.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from automation_operator.config.models import ServiceDefinition
from automation_operator.config.settings import OperatorSettings
from automation_operator.core.errors import ConfigError

logger = structlog.get_logger()

COLLECTION_KEY = "APBs"


def _find_collection(data: dict[str, Any]) -> Any:
    # Key lookup is case-insensitive ("apbs", "APBs", ...)
    for key, value in data.items():
        if isinstance(key, str) and key.lower() == COLLECTION_KEY.lower():
            return value
    return None


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<entry>'}: {err['msg']}" for err in exc.errors()
    )


def load_service_definitions(path: str | Path) -> list[ServiceDefinition]:
    """
    Load service definitions from a config file.

    Args:
        path: Path to a YAML or JSON config file

    Returns:
        Definitions in document order

    Raises:
        ConfigError: If the file is unreadable, unparsable, or any entry
            fails validation. Nothing is returned for partial configs.
    """
    path = Path(path)

    # Read as bytes: the YAML reader reports bad encodings as YAMLError
    try:
        with open(path, "rb") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {e}", {"path": str(path)}) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}", {"path": str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigError("Config file must be a mapping", {"path": str(path)})

    collection = _find_collection(data)
    if collection is None:
        raise ConfigError(f"Config file has no '{COLLECTION_KEY}' section", {"path": str(path)})

    if isinstance(collection, dict):
        entries = list(collection.items())
    elif isinstance(collection, list):
        entries = list(enumerate(collection))
    else:
        raise ConfigError(
            f"'{COLLECTION_KEY}' must be a mapping or a list",
            {"path": str(path), "type": type(collection).__name__},
        )

    if not entries:
        raise ConfigError(f"'{COLLECTION_KEY}' is empty", {"path": str(path)})

    definitions: list[ServiceDefinition] = []
    for name, entry in entries:
        try:
            definition = ServiceDefinition.model_validate(entry)
        except ValidationError as e:
            raise ConfigError(
                f"Invalid service definition: {_validation_message(e)}",
                {"path": str(path), "entry": name},
            ) from e

        logger.info(
            "service_definition_loaded",
            entry=name,
            api_version=definition.api_version,
            kind=definition.kind,
            image=definition.image,
            plan=definition.plan,
        )
        definitions.append(definition)

    return definitions


def definition_from_flags(settings: OperatorSettings) -> ServiceDefinition:
    """Build the single service definition described by the flags."""
    try:
        return ServiceDefinition(
            api_version=settings.api_version or "",
            kind=settings.kind or "",
            image=settings.apb_image or "",
            plan=settings.plan or "",
        )
    except ValidationError as e:
        raise ConfigError(
            f"Incomplete service definition flags: {_validation_message(e)}",
            {"source": "flags"},
        ) from e


def resolve_service_definitions(settings: OperatorSettings) -> list[ServiceDefinition]:
    """
    Resolve the ordered list of service definitions.

    The config file, when set, overrides all single-definition flags.
    """
    if settings.config_file:
        logger.debug("using_config_file", path=settings.config_file)
        return load_service_definitions(settings.config_file)
    return [definition_from_flags(settings)]
