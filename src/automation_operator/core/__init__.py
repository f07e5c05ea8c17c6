"""Core modules for the automation operator - error taxonomy and exit codes."""

from automation_operator.core.errors import (
    ConfigError,
    DuplicateKeyError,
    ExitCode,
    InvalidIdentifierError,
    NamespaceError,
    OperatorError,
    PlanNotFoundError,
    SpecificationError,
    WatchRuntimeError,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "OperatorError",
    "ConfigError",
    "NamespaceError",
    "InvalidIdentifierError",
    "PlanNotFoundError",
    "DuplicateKeyError",
    "SpecificationError",
    "WatchRuntimeError",
    "main_with_error_handling",
]
