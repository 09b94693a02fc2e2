"""Feature gate registry and status resolution."""

from .registry import (
    DEFAULT_REGISTRY,
    FEATURE_GATES,
    WINDOWS_UNSUPPORTED,
    ComponentRole,
    FeatureGateDefinition,
    Maturity,
    Platform,
    Registry,
    current_platform,
)
from .resolver import Response, get_status, resolve

__all__ = [
    "DEFAULT_REGISTRY",
    "FEATURE_GATES",
    "WINDOWS_UNSUPPORTED",
    "ComponentRole",
    "FeatureGateDefinition",
    "Maturity",
    "Platform",
    "Registry",
    "Response",
    "current_platform",
    "get_status",
    "resolve",
]
