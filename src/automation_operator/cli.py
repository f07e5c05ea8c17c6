"""
Command line entry point for the automation operator.

Usage:
    automation-operator --api-version app.example.com/v1alpha1 --kind Postgresql \\
        --apb-image docker.io/ansibleplaybookbundle/postgresql-apb --plan dev
    automation-operator --configFile config.yaml

Every flag can also be set through an APB_OPERATOR_* environment variable;
flags win. The watch namespace comes from WATCH_NAMESPACE.
"""

from __future__ import annotations

import argparse
import platform
import signal
import threading
from importlib import metadata
from typing import Any, NoReturn, Sequence

import structlog
from pydantic import ValidationError

from automation_operator import __version__
from automation_operator.bootstrap import Bootstrapper
from automation_operator.config.loader import resolve_service_definitions
from automation_operator.config.settings import OperatorSettings
from automation_operator.core.errors import ConfigError, main_with_error_handling
from automation_operator.logging import configure_logging
from automation_operator.runtime import KubernetesWatchRuntime
from automation_operator.scheme import TypeRegistry
from automation_operator.specs.fetchers import DirectorySpecFetcher, SpecFetcher, StaticSpecFetcher
from automation_operator.specs.resolver import SpecResolver

logger = structlog.get_logger()


class OperatorArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports bad flags as configuration errors."""

    def error(self, message: str) -> NoReturn:
        raise ConfigError(f"Invalid arguments: {message}", {"usage": self.format_usage().strip()})


def build_parser() -> argparse.ArgumentParser:
    parser = OperatorArgumentParser(
        prog="automation-operator",
        description="Watch custom resources and provision them with APB plans",
    )
    # Defaults stay None so unset flags fall through to the environment
    parser.add_argument("--resync", type=int, help="time in seconds that the resources will be re synced (default 5)")
    parser.add_argument(
        "--configFile", "--config-file", dest="config_file",
        help="config file that should be used. The config will override all other command line values",
    )
    parser.add_argument(
        "--api-version", dest="api_version",
        help="Kubernetes apiVersion and has a format of $GROUP_NAME/$VERSION (e.g app.example.com/v1alpha1)",
    )
    parser.add_argument("--kind", help="Kubernetes CustomResourceDefinition kind (e.g AppService)")
    parser.add_argument("--apb-image", dest="apb_image", help="APB image path for which we can get the APB spec")
    parser.add_argument("--plan", help="Plan that the operator should be interacting with for an APB")
    parser.add_argument("--spec-dir", dest="spec_dir", help="Directory of apb.yml files, named after the image")
    parser.add_argument("--kubeconfig", help="Path to kubeconfig (defaults to in-cluster config, then $KUBECONFIG)")
    parser.add_argument("--context", help="Kubeconfig context to use")
    parser.add_argument("--log-level", dest="log_level", help="Log level (default INFO)")
    parser.add_argument("--log-format", dest="log_format", choices=["json", "console"], help="Log output format")
    return parser


def load_settings(args: argparse.Namespace) -> OperatorSettings:
    """Environment settings with explicitly passed flags applied on top."""
    overrides: dict[str, Any] = {k: v for k, v in vars(args).items() if v is not None}
    try:
        return OperatorSettings(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


def build_fetcher(settings: OperatorSettings) -> SpecFetcher:
    if settings.spec_dir:
        return DirectorySpecFetcher(settings.spec_dir)
    return StaticSpecFetcher.builtin()


def print_version() -> None:
    try:
        kubernetes_version = metadata.version("kubernetes")
    except metadata.PackageNotFoundError:
        kubernetes_version = "unknown"

    logger.info(
        "version",
        python=platform.python_version(),
        os_arch=f"{platform.system().lower()}/{platform.machine()}",
        kubernetes_client=kubernetes_version,
        operator=__version__,
    )


@main_with_error_handling()
def main(argv: Sequence[str] | None = None) -> int:
    # Flag and settings errors are logged with the default format
    configure_logging()
    args = build_parser().parse_args(argv)
    settings = load_settings(args)
    configure_logging(settings.log_level, settings.log_format)
    print_version()

    definitions = resolve_service_definitions(settings)

    registry = TypeRegistry()
    runtime = KubernetesWatchRuntime(registry, kubeconfig=settings.kubeconfig, context=settings.context)
    bootstrapper = Bootstrapper(
        settings=settings,
        definitions=definitions,
        resolver=SpecResolver(build_fetcher(settings)),
        registry=registry,
        runtime=runtime,
    )

    stop = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: stop.set())

    bootstrapper.run(stop)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
