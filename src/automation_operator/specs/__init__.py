"""
APB spec models, sources and resolution.
"""

from automation_operator.specs.fetchers import (
    DirectorySpecFetcher,
    SpecFetcher,
    StaticSpecFetcher,
    image_basename,
)
from automation_operator.specs.models import RUNTIME_VERSION, Parameter, Plan, Specification
from automation_operator.specs.resolver import SpecResolver, parse_spec

__all__ = [
    "RUNTIME_VERSION",
    "Parameter",
    "Plan",
    "Specification",
    "SpecFetcher",
    "StaticSpecFetcher",
    "DirectorySpecFetcher",
    "image_basename",
    "SpecResolver",
    "parse_spec",
]
