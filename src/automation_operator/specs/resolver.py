"""
APB spec resolution.

Fetches the APB spec for a service definition's image, parses it, stamps it
with the image and runtime marker, and picks the requested plan.
"""

from __future__ import annotations

from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from automation_operator.config.models import ServiceDefinition
from automation_operator.core.errors import PlanNotFoundError, SpecificationError
from automation_operator.specs.fetchers import SpecFetcher
from automation_operator.specs.models import RUNTIME_VERSION, Plan, Specification

logger = structlog.get_logger()


def parse_spec(document: str, source: str | None = None) -> Specification:
    """
    Parse an apb.yml document.

    Raises:
        SpecificationError: If the document is not valid YAML or does not
            describe a spec
    """
    details: dict[str, Any] = {"source": source} if source else {}

    try:
        data = yaml.safe_load(document)
    except yaml.YAMLError as e:
        raise SpecificationError(f"Invalid YAML in spec: {e}", details) from e

    if not isinstance(data, dict):
        raise SpecificationError("Spec must be a YAML mapping", details)

    try:
        return Specification.model_validate(data)
    except ValidationError as e:
        raise SpecificationError(f"Invalid spec: {e.error_count()} validation error(s): {e}", details) from e


class SpecResolver:
    """Resolves service definitions to a (spec, plan) pair."""

    def __init__(self, fetcher: SpecFetcher):
        self.fetcher = fetcher

    def get_spec(self, image: str) -> Specification:
        """Fetch and parse the spec for ``image`` and stamp its provenance."""
        document = self.fetcher.fetch(image)
        spec = parse_spec(document, source=image)
        return spec.model_copy(update={"image": image, "runtime": RUNTIME_VERSION})

    def resolve(self, definition: ServiceDefinition) -> tuple[Specification, Plan]:
        """
        Resolve a definition's spec and plan.

        Raises:
            SpecificationError: If the APB spec cannot be fetched or parsed
            PlanNotFoundError: If the APB spec has no plan named definition.plan
        """
        spec = self.get_spec(definition.image)

        plan = spec.get_plan(definition.plan)
        if plan is None:
            raise PlanNotFoundError(
                f"unable to find plan: {definition.plan} in the spec for apb-image: {definition.image}",
                {
                    "plan": definition.plan,
                    "image": definition.image,
                    "available_plans": spec.plan_names,
                },
            )

        logger.info(
            "spec_resolved",
            image=definition.image,
            spec=spec.name,
            plan=plan.name,
            parameters=len(plan.parameters),
        )
        return spec, plan
