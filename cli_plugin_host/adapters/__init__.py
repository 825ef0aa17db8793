"""Rendering-library adapters and version negotiation."""

from .base import BaseCLIAdapter, BaseRenderInstance
from .features import CLIFeature, INK_FEATURES, PASTEL_FEATURES
from .negotiator import (
    ParsedVersion,
    RangeCondition,
    VersionCompatibility,
    VersionNegotiator,
    compare_versions,
    parse_range,
    parse_version,
    satisfies_range,
)
from .protocol import CLIAdapter, RenderInstance
from .registry import (
    AdapterRegistry,
    create_adapter,
    get_adapter_class,
    list_builtin_adapters,
)

__all__ = [
    "AdapterRegistry",
    "BaseCLIAdapter",
    "BaseRenderInstance",
    "CLIAdapter",
    "CLIFeature",
    "INK_FEATURES",
    "PASTEL_FEATURES",
    "ParsedVersion",
    "RangeCondition",
    "RenderInstance",
    "VersionCompatibility",
    "VersionNegotiator",
    "compare_versions",
    "create_adapter",
    "get_adapter_class",
    "list_builtin_adapters",
    "parse_range",
    "parse_version",
    "satisfies_range",
]
