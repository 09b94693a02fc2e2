"""Core components of featuregates."""

from .errors import DiscoveryError, FeatureGateError, ResourceNotFoundError, TransportError

__all__ = ["DiscoveryError", "FeatureGateError", "ResourceNotFoundError", "TransportError"]
