"""Root test configuration."""

import logging
import threading

import pytest
import structlog
from automation_operator.config.models import ServiceDefinition
from automation_operator.runtime import WatchRuntime
from automation_operator.scheme import TypeRegistry
from automation_operator.specs.fetchers import StaticSpecFetcher
from automation_operator.specs.resolver import SpecResolver


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class RecordingRuntime(WatchRuntime):
    """Watch runtime that records what it was asked to do."""

    def __init__(self, registry: TypeRegistry):
        super().__init__(registry)
        self.started = False
        self.stop: threading.Event | None = None

    def run(self, stop: threading.Event | None = None) -> None:
        self.started = True
        self.stop = stop


@pytest.fixture
def postgresql_document() -> str:
    return StaticSpecFetcher.builtin().document


@pytest.fixture
def resolver() -> SpecResolver:
    return SpecResolver(StaticSpecFetcher.builtin())


@pytest.fixture
def registry() -> TypeRegistry:
    return TypeRegistry()


@pytest.fixture
def runtime(registry) -> RecordingRuntime:
    return RecordingRuntime(registry)


@pytest.fixture
def postgresql_definition() -> ServiceDefinition:
    return ServiceDefinition(
        api_version="app.example.com/v1alpha1",
        kind="Postgresql",
        image="img/postgresql-apb",
        plan="dev",
    )


@pytest.fixture
def watch_namespace(monkeypatch) -> str:
    monkeypatch.setenv("WATCH_NAMESPACE", "operators")
    return "operators"
