"""FastAPI app serving the feature-gate report."""

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request
from pydantic import BaseModel

from .. import __version__
from ..core.discovery import InstanceDiscovery
from ..core.errors import FeatureGateError
from ..features.registry import DEFAULT_REGISTRY, Platform, Registry
from ..features.resolver import resolve
from ..integrations.kubernetes import ClusterClient, KubernetesClient
from ..utils.config import Settings, get_settings
from ..utils.logging import get_logger

logger = get_logger(__name__)

# ── Pydantic response models ──────────────────────────────────────────────────


class FeatureGateResponse(BaseModel):
    component: str
    name: str
    status: str
    version: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"


def create_app(
    settings: Settings | None = None,
    registry: Registry | None = None,
    client: ClusterClient | None = None,
    platform: Platform | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    The registry and cluster client are fixed for the lifetime of the app;
    when no client is given one is built from settings and closed on
    shutdown.
    """
    settings = settings or get_settings()
    registry = registry or DEFAULT_REGISTRY
    owns_client = client is None
    if client is None:
        client = KubernetesClient.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_client:
            await app.state.client.aclose()

    app = FastAPI(
        title="featuregates",
        description="Feature gate status of an Antrea component",
        version=__version__,
        lifespan=lifespan,
    )

    # Store instances
    app.state.settings = settings
    app.state.registry = registry
    app.state.client = client
    app.state.discovery = InstanceDiscovery(
        client, settings=settings, registry=registry, platform=platform
    )
    app.state.platform = platform

    router = APIRouter()

    @router.get("/healthz", response_model=HealthResponse)
    async def healthz():
        return HealthResponse()

    @router.get(
        "/featuregates",
        response_model=list[FeatureGateResponse],
        response_model_exclude_none=True,
    )
    async def get_feature_gates(request: Request) -> list[dict[str, Any]]:
        """Effective state of every feature gate of this component."""
        discovery: InstanceDiscovery = request.app.state.discovery
        try:
            result = await discovery.discover()
        except FeatureGateError as e:
            logger.error("Feature gate discovery failed", error=str(e), error_type=type(e).__name__)
            raise HTTPException(status_code=500, detail=f"Error when getting feature gates: {e}")

        gates = resolve(
            result.role,
            result.overrides,
            registry=request.app.state.registry,
            platform=request.app.state.platform,
        )
        logger.info(
            "Feature gates reported",
            component=result.role.label,
            gates=len(gates),
            overrides=len(result.overrides),
        )
        return [gate.to_dict() for gate in gates]

    app.include_router(router)
    return app
