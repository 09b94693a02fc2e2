"""Errors raised while discovering an instance's feature-gate overrides."""


class FeatureGateError(Exception):
    """Base class for failures that abort a feature-gate report."""


class DiscoveryError(FeatureGateError):
    """The instance's pod, ConfigMap, or config entry could not be located."""


class ResourceNotFoundError(DiscoveryError):
    """The Kubernetes API answered 404 for a requested object."""

    def __init__(self, kind: str, namespace: str, name: str) -> None:
        super().__init__(f"{kind} {namespace}/{name} not found")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class TransportError(FeatureGateError):
    """The Kubernetes API was unreachable, timed out, or returned an error."""
