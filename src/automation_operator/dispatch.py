"""
Dispatch table for reconcile events.

Maps "apiVersion:kind" to the APB spec and plan resolved for that kind. The
table is built once during startup and is read-only afterwards, so the
reconcile handler may read it from any number of threads without locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

import structlog

from automation_operator.config.models import ServiceDefinition
from automation_operator.core.errors import DuplicateKeyError
from automation_operator.specs.models import Plan, Specification

logger = structlog.get_logger()


def dispatch_key(api_version: str, kind: str) -> str:
    """Key of a resource kind in the dispatch table."""
    return f"{api_version}:{kind}"


@dataclass(frozen=True)
class DispatchEntry:
    """The resolved spec and plan for one resource kind."""

    spec: Specification
    plan: Plan


class DispatchTable(Mapping[str, DispatchEntry]):
    """Read-only mapping of dispatch key to DispatchEntry."""

    def __init__(self, entries: Mapping[str, DispatchEntry]):
        self._entries = MappingProxyType(dict(entries))

    def __getitem__(self, key: str) -> DispatchEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"DispatchTable({list(self._entries)})"

    def lookup(self, api_version: str, kind: str) -> DispatchEntry | None:
        return self._entries.get(dispatch_key(api_version, kind))


class DispatchTableBuilder:
    """
    Collects resolved entries and produces the dispatch table once.

    Collision policy: reject. A second definition with the same
    apiVersion and kind raises DuplicateKeyError.
    """

    def __init__(self) -> None:
        self._entries: dict[str, DispatchEntry] = {}
        self._owners: dict[str, ServiceDefinition] = {}
        self._built = False

    def add(self, definition: ServiceDefinition, spec: Specification, plan: Plan) -> str:
        if self._built:
            raise RuntimeError("dispatch table already built")

        key = dispatch_key(definition.api_version, definition.kind)
        if key in self._entries:
            first = self._owners[key]
            raise DuplicateKeyError(
                f"Duplicate dispatch key {key}",
                {
                    "key": key,
                    "first_image": first.image,
                    "first_plan": first.plan,
                    "duplicate_image": definition.image,
                    "duplicate_plan": definition.plan,
                },
            )

        self._entries[key] = DispatchEntry(spec=spec, plan=plan)
        self._owners[key] = definition
        logger.debug("dispatch_entry_added", key=key, spec=spec.name, plan=plan.name)
        return key

    def build(self) -> DispatchTable:
        if self._built:
            raise RuntimeError("dispatch table already built")
        self._built = True
        table = DispatchTable(self._entries)
        logger.info("dispatch_table_built", keys=list(table))
        return table


def build_dispatch_table(
    resolved: Iterable[tuple[ServiceDefinition, Specification, Plan]],
) -> DispatchTable:
    """Build a dispatch table from (definition, spec, plan) triples."""
    builder = DispatchTableBuilder()
    for definition, spec, plan in resolved:
        builder.add(definition, spec, plan)
    return builder.build()
