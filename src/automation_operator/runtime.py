"""
Watch runtime.

Declares watches on registered kinds, streams their events from the
cluster and feeds them to the reconcile handler. Watches are only declared
by watch(); nothing talks to the cluster until run().

Environment variables:
    WATCH_NAMESPACE: Namespace to watch (empty = all namespaces)
    KUBECONFIG: Standard kubeconfig path, used outside a cluster
"""

from __future__ import annotations

import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

import structlog

from automation_operator.core.errors import NamespaceError, WatchRuntimeError
from automation_operator.handler import SYNC, Event, Handler
from automation_operator.scheme import GroupVersionKind, TypeRegistry, UnknownKindError, parse_api_version

logger = structlog.get_logger()

WATCH_NAMESPACE_ENV = "WATCH_NAMESPACE"


def get_watch_namespace() -> str:
    """
    Namespace the operator should watch.

    Raises:
        NamespaceError: If WATCH_NAMESPACE is not set
    """
    namespace = os.environ.get(WATCH_NAMESPACE_ENV)
    if namespace is None:
        raise NamespaceError(
            f"{WATCH_NAMESPACE_ENV} must be set", {"env": WATCH_NAMESPACE_ENV}
        )
    return namespace


@dataclass(frozen=True)
class WatchSpec:
    """A declared watch."""

    api_version: str
    kind: str
    namespace: str | None
    resync_period: int


class WatchRuntime(ABC):
    """
    Abstract base class for watch runtimes.

    Subclasses implement run(), which blocks until ``stop`` is set.
    """

    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self.watches: list[WatchSpec] = []
        self.handler: Handler | None = None

    def watch(self, api_version: str, kind: str, namespace: str, resync_period: int) -> WatchSpec:
        """
        Declare a watch.

        Raises:
            UnknownKindError: If the kind was not registered first
        """
        group, version = parse_api_version(api_version)
        gvk = GroupVersionKind(group=group, version=version, kind=kind)
        if not self.registry.is_registered(gvk):
            raise UnknownKindError(f"cannot watch unregistered kind {gvk}")

        spec = WatchSpec(
            api_version=api_version,
            kind=kind,
            namespace=namespace or None,
            resync_period=resync_period,
        )
        self.watches.append(spec)
        logger.info(
            "watching",
            api_version=api_version,
            kind=kind,
            namespace=namespace or "*",
            resync=resync_period,
        )
        return spec

    def handle(self, handler: Handler) -> None:
        self.handler = handler

    def dispatch(self, event_type: str, raw: Mapping[str, Any]) -> bool:
        """Decode a raw object and pass it to the handler."""
        if self.handler is None:
            raise RuntimeError("no handler registered")
        try:
            obj = self.registry.decode(raw)
        except UnknownKindError as e:
            logger.warning("event_decode_failed", event_type=event_type, error=str(e))
            return False

        try:
            return self.handler.handle(Event(type=event_type, object=obj))
        except Exception as e:
            # Reconcile errors are the handler's business; keep watching
            logger.error(
                "reconcile_failed",
                event_type=event_type,
                kind=obj.kind,
                name=obj.name,
                namespace=obj.namespace,
                error=f"{type(e).__name__}: {e}",
            )
            return False

    @abstractmethod
    def run(self, stop: threading.Event | None = None) -> None:
        """Start all declared watches and block until ``stop`` is set."""


class KubernetesWatchRuntime(WatchRuntime):
    """
    Watch runtime backed by the Kubernetes API.

    Uses the dynamic client, so watched kinds need no generated model.
    Each watch lists all objects (emitted as SYNC events), then streams
    changes for ``resync_period`` seconds before listing again.
    """

    def __init__(
        self,
        registry: TypeRegistry,
        kubeconfig: str | None = None,
        context: str | None = None,
    ):
        super().__init__(registry)
        self.kubeconfig = kubeconfig or os.environ.get("KUBECONFIG")
        self.context = context
        self._client: Any = None

    def _ensure_initialized(self) -> None:
        """Initialize the dynamic client if not already done."""
        if self._client is not None:
            return

        from kubernetes import client, config, dynamic

        # Try in-cluster config first, then kubeconfig
        try:
            config.load_incluster_config()
        except config.ConfigException:
            try:
                config.load_kube_config(config_file=self.kubeconfig, context=self.context)
            except config.ConfigException as e:
                raise WatchRuntimeError(f"Failed to load Kubernetes config: {e}") from e

        self._client = dynamic.DynamicClient(client.ApiClient())

    def run(self, stop: threading.Event | None = None) -> None:
        if not self.watches:
            raise RuntimeError("no watches declared")
        if self.handler is None:
            raise RuntimeError("no handler registered")

        self._ensure_initialized()
        stop = stop or threading.Event()

        threads = [
            threading.Thread(
                target=self._watch_loop,
                args=(spec, stop),
                name=f"watch-{spec.kind}",
                daemon=True,
            )
            for spec in self.watches
        ]
        for thread in threads:
            thread.start()
        logger.info("runtime_started", watches=len(threads))

        try:
            while not stop.wait(1.0):
                pass
        finally:
            stop.set()
            for thread in threads:
                thread.join(timeout=5)
            logger.info("runtime_stopped")

    def _watch_loop(self, spec: WatchSpec, stop: threading.Event) -> None:
        log = logger.bind(api_version=spec.api_version, kind=spec.kind, namespace=spec.namespace or "*")
        while not stop.is_set():
            try:
                resource = self._client.resources.get(api_version=spec.api_version, kind=spec.kind)
                resource_version = self._sync(resource, spec)
                self._stream(resource, spec, resource_version, stop)
            except Exception as e:
                log.error("watch_failed", error=f"{type(e).__name__}: {e}")
                stop.wait(spec.resync_period)

    def _sync(self, resource: Any, spec: WatchSpec) -> str | None:
        """List every object and emit it as a SYNC event."""
        listing = resource.get(namespace=spec.namespace).to_dict()
        items = listing.get("items") or []
        for item in items:
            # List items may omit their type
            item.setdefault("apiVersion", spec.api_version)
            item.setdefault("kind", spec.kind)
            self.dispatch(SYNC, item)
        logger.debug("resynced", kind=spec.kind, count=len(items))
        return (listing.get("metadata") or {}).get("resourceVersion")

    def _stream(
        self,
        resource: Any,
        spec: WatchSpec,
        resource_version: str | None,
        stop: threading.Event,
    ) -> None:
        """Stream change events until the resync period expires."""
        for event in self._client.watch(
            resource,
            namespace=spec.namespace,
            resource_version=resource_version,
            timeout=spec.resync_period,
        ):
            if stop.is_set():
                return
            event_type = event.get("type")
            raw = event.get("raw_object")
            if event_type == "ERROR":
                # Usually 410 Gone: relist from scratch
                logger.warning("watch_expired", kind=spec.kind, detail=raw)
                return
            if event_type == "BOOKMARK" or not isinstance(raw, dict):
                continue
            self.dispatch(event_type, raw)
