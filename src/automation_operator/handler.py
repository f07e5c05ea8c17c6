"""Reconcile handler: routes watch events to the APB spec and plan of their kind."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import structlog

from automation_operator.config.settings import ClusterConfig
from automation_operator.dispatch import DispatchEntry, DispatchTable
from automation_operator.scheme import Unstructured

logger = structlog.get_logger()

# Event types emitted by the watch runtime
ADDED = "ADDED"
MODIFIED = "MODIFIED"
DELETED = "DELETED"
SYNC = "SYNC"


@dataclass(frozen=True)
class Event:
    """A change to a watched resource."""

    type: str
    object: Unstructured

    @property
    def deleted(self) -> bool:
        return self.type == DELETED


@runtime_checkable
class Provisioner(Protocol):
    """Runs an APB plan for a resource. Owns all provisioning logic."""

    def __call__(self, event: Event, entry: DispatchEntry, cluster: ClusterConfig) -> None:
        ...


def log_provisioner(event: Event, entry: DispatchEntry, cluster: ClusterConfig) -> None:
    """Default provisioner: records what would be provisioned."""
    logger.info(
        "reconcile_requested",
        event_type=event.type,
        kind=event.object.kind,
        name=event.object.name,
        namespace=event.object.namespace,
        spec=entry.spec.name,
        image=entry.spec.image,
        plan=entry.plan.name,
        parameters=entry.plan.parameter_names,
        sandbox_role=cluster.sandbox_role,
        pull_policy=cluster.pull_policy,
    )


class Handler:
    """Looks up each event's kind in the dispatch table and provisions it."""

    def __init__(
        self,
        table: DispatchTable,
        cluster: ClusterConfig,
        provisioner: Provisioner = log_provisioner,
    ):
        self.table = table
        self.cluster = cluster
        self.provisioner = provisioner

    def handle(self, event: Event) -> bool:
        """Returns False when the event's kind has no dispatch entry."""
        obj = event.object
        entry = self.table.lookup(obj.api_version, obj.kind)
        if entry is None:
            logger.warning("no_dispatch_entry", api_version=obj.api_version, kind=obj.kind, name=obj.name)
            return False

        self.provisioner(event, entry, self.cluster)
        return True
