"""
Resource type registry.

Kinds served by APBs have no compiled Python model. Registering a kind's
group/version/kind here tells the watch runtime it may decode objects of
that kind generically, as Unstructured documents.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Mapping

import structlog

from automation_operator.config.models import ServiceDefinition
from automation_operator.core.errors import InvalidIdentifierError

logger = structlog.get_logger()

API_VERSION_SEPARATOR = "/"


class UnknownKindError(LookupError):
    """Raised when decoding or watching a kind that was never registered."""


@dataclass(frozen=True)
class GroupVersionKind:
    """Identifies a cluster resource type."""

    group: str
    version: str
    kind: str

    @property
    def api_version(self) -> str:
        return f"{self.group}{API_VERSION_SEPARATOR}{self.version}"

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"


def parse_api_version(api_version: str) -> tuple[str, str]:
    """
    Split an apiVersion into (group, version).

    Examples:
        app.example.com/v1alpha1 → ("app.example.com", "v1alpha1")

    Raises:
        InvalidIdentifierError: Unless there is exactly one separator with a
            non-empty group and version on either side
    """
    parts = api_version.split(API_VERSION_SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidIdentifierError(
            f"apiVersion must have the format $GROUP_NAME/$VERSION, got {api_version!r}",
            {"api_version": api_version},
        )
    return parts[0], parts[1]


class Unstructured(Mapping[str, Any]):
    """
    A resource object without a static schema.

    Wraps the raw document and exposes the fields every object must carry
    through validated accessors.
    """

    def __init__(self, obj: Mapping[str, Any]):
        if not isinstance(obj.get("apiVersion"), str) or not isinstance(obj.get("kind"), str):
            raise UnknownKindError("object has no apiVersion/kind")
        self._obj = dict(obj)

    def __getitem__(self, key: str) -> Any:
        return self._obj[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._obj)

    def __len__(self) -> int:
        return len(self._obj)

    def __repr__(self) -> str:
        return f"Unstructured({self.api_version}, {self.kind}, {self.namespace}/{self.name})"

    @property
    def api_version(self) -> str:
        return self._obj["apiVersion"]

    @property
    def kind(self) -> str:
        return self._obj["kind"]

    @property
    def metadata(self) -> dict[str, Any]:
        metadata = self._obj.get("metadata")
        return metadata if isinstance(metadata, dict) else {}

    @property
    def name(self) -> str | None:
        return self.metadata.get("name")

    @property
    def namespace(self) -> str | None:
        return self.metadata.get("namespace")

    @property
    def resource_version(self) -> str | None:
        return self.metadata.get("resourceVersion")

    @property
    def spec(self) -> dict[str, Any]:
        spec = self._obj.get("spec")
        return spec if isinstance(spec, dict) else {}

    @property
    def gvk(self) -> GroupVersionKind:
        group, version = parse_api_version(self.api_version)
        return GroupVersionKind(group=group, version=version, kind=self.kind)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._obj)


class TypeRegistry:
    """In-memory registry of generically decodable resource kinds."""

    def __init__(self) -> None:
        self._kinds: set[GroupVersionKind] = set()

    def register(self, gvk: GroupVersionKind) -> None:
        """Register a kind. Registering the same kind twice is a no-op."""
        if gvk in self._kinds:
            return
        self._kinds.add(gvk)
        logger.info("type_registered", group=gvk.group, version=gvk.version, kind=gvk.kind)

    def is_registered(self, gvk: GroupVersionKind) -> bool:
        return gvk in self._kinds

    def registered(self) -> list[GroupVersionKind]:
        """All registered kinds, sorted for stable output."""
        return sorted(self._kinds, key=lambda g: (g.group, g.version, g.kind))

    def decode(self, obj: Mapping[str, Any]) -> Unstructured:
        """
        Decode a raw object of a registered kind.

        Raises:
            UnknownKindError: If the object's kind is not registered
        """
        unstructured = Unstructured(obj)
        try:
            gvk = unstructured.gvk
        except InvalidIdentifierError as e:
            raise UnknownKindError(str(e)) from e
        if gvk not in self._kinds:
            raise UnknownKindError(f"no kind registered for {gvk}")
        return unstructured


def register_type(registry: TypeRegistry, definition: ServiceDefinition) -> GroupVersionKind:
    """
    Register a definition's kind with the type registry.

    The apiVersion is validated before anything is registered.
    """
    group, version = parse_api_version(definition.api_version)
    gvk = GroupVersionKind(group=group, version=version, kind=definition.kind)
    registry.register(gvk)
    return gvk
