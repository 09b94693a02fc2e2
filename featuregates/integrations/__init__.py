"""Cluster API integrations."""

from .kubernetes import ClusterClient, KubernetesClient

__all__ = ["ClusterClient", "KubernetesClient"]
