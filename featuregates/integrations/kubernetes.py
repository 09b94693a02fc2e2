"""Kubernetes API access for instance self-discovery.

Only two read-only lookups are needed: the instance's own Pod and a
ConfigMap by name. ``ClusterClient`` is that narrow interface;
``KubernetesClient`` implements it against the REST API with the pod's
service-account credentials, so no kubeconfig machinery is involved.
"""

import asyncio
import os
import ssl
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import httpx

from ..core.errors import ResourceNotFoundError, TransportError
from ..utils.config import Settings, get_settings
from ..utils.logging import get_logger

logger = get_logger(__name__)


class ClusterClient(ABC):
    """Read-only view of the cluster objects discovery needs."""

    @abstractmethod
    async def get_pod(self, namespace: str, name: str) -> dict[str, Any]:
        """Return the Pod object, or raise ResourceNotFoundError."""

    @abstractmethod
    async def get_config_map(self, namespace: str, name: str) -> dict[str, Any]:
        """Return the ConfigMap object, or raise ResourceNotFoundError."""

    async def aclose(self) -> None:
        """Release any held connections."""


def in_cluster_api_url() -> str:
    host = os.environ.get("KUBERNETES_SERVICE_HOST", "kubernetes.default.svc")
    port = os.environ.get("KUBERNETES_SERVICE_PORT", "443")
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"  # IPv6 service address
    return f"https://{host}:{port}"


def read_first_line(path: str) -> str | None:
    try:
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            line = f.readline()
    except OSError:
        return None
    line = line.strip()
    return line or None


class KubernetesClient(ClusterClient):
    """ClusterClient backed by the Kubernetes REST API over httpx."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        token_file: str | None = None,
        verify: bool | ssl.SSLContext = True,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._token_file = token_file
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            verify=verify,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "KubernetesClient":
        """Build a client from the ``kubernetes`` settings section."""
        settings = settings or get_settings()
        cfg = settings.kubernetes

        verify: bool | ssl.SSLContext = cfg.verify_ssl
        if cfg.verify_ssl and cfg.ca_file and Path(cfg.ca_file).is_file():
            verify = ssl.create_default_context(cafile=cfg.ca_file)

        base_url = cfg.api_url or in_cluster_api_url()
        logger.info("Kubernetes API client configured", base_url=base_url)
        return cls(
            base_url=base_url,
            token_file=cfg.token_file or None,
            verify=verify,
            timeout=cfg.timeout_seconds,
        )

    async def _headers(self) -> dict[str, str]:
        # Projected service-account tokens rotate, so re-read the file each time
        token = self._token
        if token is None and self._token_file:
            token = await asyncio.to_thread(read_first_line, self._token_file)
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _get(self, path: str, kind: str, namespace: str, name: str) -> dict[str, Any]:
        try:
            resp = await self._client.get(path, headers=await self._headers())
        except httpx.TimeoutException as e:
            raise TransportError(f"Timed out fetching {kind} {namespace}/{name}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to fetch {kind} {namespace}/{name}: {e}") from e

        if resp.status_code == 404:
            raise ResourceNotFoundError(kind, namespace, name)
        if resp.status_code >= 400:
            raise TransportError(
                f"Failed to fetch {kind} {namespace}/{name} ({resp.status_code}): "
                f"{resp.text[:500]}"
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON for {kind} {namespace}/{name}") from e
        if not isinstance(data, dict):
            raise TransportError(f"Unexpected payload for {kind} {namespace}/{name}")
        return data

    async def get_pod(self, namespace: str, name: str) -> dict[str, Any]:
        return await self._get(f"/api/v1/namespaces/{namespace}/pods/{name}", "Pod", namespace, name)

    async def get_config_map(self, namespace: str, name: str) -> dict[str, Any]:
        return await self._get(
            f"/api/v1/namespaces/{namespace}/configmaps/{name}", "ConfigMap", namespace, name
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "KubernetesClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
