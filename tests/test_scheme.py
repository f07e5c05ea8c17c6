"""Tests for the resource type registry."""

import pytest
from automation_operator.config.models import ServiceDefinition
from automation_operator.core.errors import ExitCode, InvalidIdentifierError
from automation_operator.scheme import (
    GroupVersionKind,
    TypeRegistry,
    UnknownKindError,
    Unstructured,
    parse_api_version,
    register_type,
)

POSTGRESQL = GroupVersionKind(group="app.example.com", version="v1alpha1", kind="Postgresql")


def postgresql_object(**metadata):
    return {
        "apiVersion": "app.example.com/v1alpha1",
        "kind": "Postgresql",
        "metadata": {"name": "db", "namespace": "operators", **metadata},
        "spec": {"postgresql_database": "admin"},
    }


class TestParseApiVersion:
    """Tests for parse_api_version."""

    def test_valid(self):
        assert parse_api_version("app.example.com/v1alpha1") == ("app.example.com", "v1alpha1")

    @pytest.mark.parametrize(
        "api_version",
        ["badformat", "/v1", "app.example.com/", "/", "a/b/c", ""],
    )
    def test_invalid(self, api_version):
        """Test anything but exactly one separator with both halves is rejected."""
        with pytest.raises(InvalidIdentifierError) as exc:
            parse_api_version(api_version)

        assert exc.value.exit_code == ExitCode.INVALID_IDENTIFIER
        assert exc.value.details == {"api_version": api_version}


class TestGroupVersionKind:
    def test_api_version(self):
        assert POSTGRESQL.api_version == "app.example.com/v1alpha1"

    def test_str(self):
        assert str(POSTGRESQL) == "app.example.com/v1alpha1, Kind=Postgresql"


class TestRegisterType:
    """Tests for register_type."""

    def test_registers_triple(self, registry, postgresql_definition):
        gvk = register_type(registry, postgresql_definition)

        assert gvk == POSTGRESQL
        assert registry.is_registered(POSTGRESQL)

    def test_idempotent(self, registry, postgresql_definition):
        register_type(registry, postgresql_definition)
        register_type(registry, postgresql_definition)

        assert registry.registered() == [POSTGRESQL]

    def test_malformed_api_version_registers_nothing(self, registry):
        """Test a bad apiVersion fails without a partial registration."""
        definition = ServiceDefinition(
            api_version="badformat", kind="Postgresql", image="img/postgresql-apb", plan="dev"
        )

        with pytest.raises(InvalidIdentifierError):
            register_type(registry, definition)

        assert registry.registered() == []

    def test_registered_is_sorted(self, registry):
        registry.register(GroupVersionKind("b.example.com", "v1", "B"))
        registry.register(GroupVersionKind("a.example.com", "v1", "A"))

        assert [g.kind for g in registry.registered()] == ["A", "B"]


class TestDecode:
    """Tests for TypeRegistry.decode."""

    def test_decodes_registered_kind(self, registry):
        registry.register(POSTGRESQL)

        obj = registry.decode(postgresql_object(resourceVersion="42"))

        assert isinstance(obj, Unstructured)
        assert obj.api_version == "app.example.com/v1alpha1"
        assert obj.kind == "Postgresql"
        assert obj.name == "db"
        assert obj.namespace == "operators"
        assert obj.resource_version == "42"
        assert obj.spec == {"postgresql_database": "admin"}
        assert obj.gvk == POSTGRESQL

    def test_unregistered_kind(self, registry):
        with pytest.raises(UnknownKindError, match="no kind registered"):
            registry.decode(postgresql_object())

    def test_missing_type_fields(self, registry):
        registry.register(POSTGRESQL)

        with pytest.raises(UnknownKindError, match="no apiVersion/kind"):
            registry.decode({"metadata": {"name": "db"}})

    def test_malformed_api_version(self, registry):
        registry.register(POSTGRESQL)
        obj = postgresql_object()
        obj["apiVersion"] = "v1"

        with pytest.raises(UnknownKindError):
            registry.decode(obj)


class TestUnstructured:
    """Tests for Unstructured accessors."""

    def test_mapping_interface(self):
        obj = Unstructured(postgresql_object())

        assert obj["kind"] == "Postgresql"
        assert set(obj) == {"apiVersion", "kind", "metadata", "spec"}
        assert len(obj) == 4
        assert obj.to_dict()["spec"] == {"postgresql_database": "admin"}

    def test_missing_optional_sections(self):
        obj = Unstructured({"apiVersion": "app.example.com/v1alpha1", "kind": "Postgresql"})

        assert obj.metadata == {}
        assert obj.name is None
        assert obj.namespace is None
        assert obj.spec == {}

    def test_copy_is_independent(self):
        raw = postgresql_object()
        obj = Unstructured(raw)
        raw["kind"] = "Changed"

        assert obj.kind == "Postgresql"
