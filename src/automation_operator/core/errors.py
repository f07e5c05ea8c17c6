"""
Unified error handling for the automation operator.

Every startup failure is raised as an OperatorError subclass and travels up
to the command line entry point, which alone turns it into a process exit
status.

Exit Codes:
- 0: Success
- 2: Requested plan not found in the resolved APB spec
- 10: Configuration error
- 11: Watch namespace could not be resolved
- 12: Malformed apiVersion / resource identifier
- 13: Two definitions resolve to the same dispatch key
- 14: APB spec could not be fetched or parsed
- 15: Watch runtime failure (cluster credentials, API access)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for the operator process."""

    SUCCESS = 0
    PLAN_NOT_FOUND = 2
    CONFIG_ERROR = 10
    NAMESPACE_ERROR = 11
    INVALID_IDENTIFIER = 12
    DUPLICATE_KEY = 13
    SPECIFICATION_ERROR = 14
    WATCH_RUNTIME_ERROR = 15
    UNKNOWN_ERROR = 127


class OperatorError(Exception):
    """Base exception for operator errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(OperatorError):
    """Raised when configuration is unreadable, unparsable or undecodable."""

    exit_code = ExitCode.CONFIG_ERROR


class NamespaceError(OperatorError):
    """Raised when the watch namespace cannot be resolved."""

    exit_code = ExitCode.NAMESPACE_ERROR


class InvalidIdentifierError(OperatorError):
    """Raised for an apiVersion that does not split into group and version."""

    exit_code = ExitCode.INVALID_IDENTIFIER


class PlanNotFoundError(OperatorError):
    """Raised when the requested plan is absent from the resolved spec."""

    exit_code = ExitCode.PLAN_NOT_FOUND


class DuplicateKeyError(OperatorError):
    """Raised when two definitions produce the same dispatch key."""

    exit_code = ExitCode.DUPLICATE_KEY


class SpecificationError(OperatorError):
    """Raised when an APB spec cannot be fetched or parsed."""

    exit_code = ExitCode.SPECIFICATION_ERROR


class WatchRuntimeError(OperatorError):
    """Raised when the watch runtime cannot reach the cluster."""

    exit_code = ExitCode.WATCH_RUNTIME_ERROR


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for the operator main function that provides unified error handling.

    Catches exceptions and converts them to appropriate exit codes with
    consistent error reporting.

    Args:
        log_errors: If True, log errors to structlog

    Usage:
        @main_with_error_handling()
        def main() -> int:
            # bootstrap and run
            return 0

    Exit codes:
        - OperatorError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error), logged with traceback
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except OperatorError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=int(e.exit_code),
                        **e.details,
                    )
                return int(e.exit_code)
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130  # Standard exit code for SIGINT
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=int(ExitCode.UNKNOWN_ERROR),
                        exc_info=True,
                    )
                return int(ExitCode.UNKNOWN_ERROR)

        return wrapper  # type: ignore[return-value]

    return decorator
