"""
Operator startup.

Runs the fixed startup sequence:
1. Resolve the watch namespace
2. Resolve the resync interval
3. Build the cluster defaults
4. Resolve every definition's spec and plan, check its apiVersion and
   build the dispatch table, then register each kind and declare its watch
5. Hand the dispatch table to the handler and run the watch runtime

Any failure in steps 1-4 raises before the runtime starts, so the operator
either watches every declared kind or none.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Sequence

import structlog

from automation_operator.config.models import ServiceDefinition
from automation_operator.config.settings import ClusterConfig, OperatorSettings
from automation_operator.dispatch import DispatchTable, DispatchTableBuilder
from automation_operator.handler import Handler
from automation_operator.runtime import WatchRuntime, get_watch_namespace
from automation_operator.scheme import TypeRegistry, parse_api_version, register_type
from automation_operator.specs.resolver import SpecResolver

logger = structlog.get_logger()

HandlerFactory = Callable[[DispatchTable, ClusterConfig], Handler]


@dataclass(frozen=True)
class BootstrapResult:
    """Everything startup produced, ready to be handed to the runtime."""

    namespace: str
    resync: int
    cluster: ClusterConfig
    table: DispatchTable


class Bootstrapper:
    """Resolves, registers and watches the declared service definitions."""

    def __init__(
        self,
        settings: OperatorSettings,
        definitions: Sequence[ServiceDefinition],
        resolver: SpecResolver,
        registry: TypeRegistry,
        runtime: WatchRuntime,
        handler_factory: HandlerFactory = Handler,
        namespace_resolver: Callable[[], str] = get_watch_namespace,
    ):
        self.settings = settings
        self.definitions = list(definitions)
        self.resolver = resolver
        self.registry = registry
        self.runtime = runtime
        self.handler_factory = handler_factory
        self.namespace_resolver = namespace_resolver

    def prepare(self) -> BootstrapResult:
        """Run startup steps 1-4 and return the finished dispatch table."""
        namespace = self.namespace_resolver()
        resync = self.settings.resync
        cluster = ClusterConfig(namespace=namespace)

        log = logger.bind(namespace=namespace or "*", resync=resync)
        log.info("bootstrap_started", definitions=len(self.definitions))

        # Resolve every plan, identifier and dispatch key before touching the
        # registry or runtime, so any failure leaves no watch declared
        resolved = [(d, *self.resolver.resolve(d)) for d in self.definitions]

        builder = DispatchTableBuilder()
        for definition, spec, plan in resolved:
            parse_api_version(definition.api_version)
            builder.add(definition, spec, plan)
        table = builder.build()

        for definition in self.definitions:
            register_type(self.registry, definition)
            self.runtime.watch(definition.api_version, definition.kind, namespace, resync)

        log.info("bootstrap_completed", kinds=len(table))
        return BootstrapResult(namespace=namespace, resync=resync, cluster=cluster, table=table)

    def run(self, stop: threading.Event | None = None) -> BootstrapResult:
        """Prepare, then hand the table to the handler and block in the runtime."""
        result = self.prepare()
        self.runtime.handle(self.handler_factory(result.table, result.cluster))
        self.runtime.run(stop)
        return result
