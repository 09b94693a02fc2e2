"""Merge compiled-in gate defaults with per-instance overrides."""

from dataclasses import dataclass
from typing import Any, Mapping

from .registry import DEFAULT_REGISTRY, ComponentRole, Platform, Registry, current_platform

ENABLED = "Enabled"
DISABLED = "Disabled"


@dataclass(frozen=True)
class Response:
    """One row of a feature-gate report."""

    component: str
    name: str
    status: str
    version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {"component": self.component, "name": self.name, "status": self.status}
        if self.version is not None:
            data["version"] = self.version
        return data


def get_status(enabled: bool) -> str:
    return ENABLED if enabled else DISABLED


def resolve(
    role: ComponentRole,
    overrides: Mapping[str, bool] | None = None,
    *,
    registry: Registry = DEFAULT_REGISTRY,
    platform: Platform | None = None,
) -> list[Response]:
    """
    Compute the feature-gate report for ``role``.

    Every gate applicable to the role appears exactly once. An override
    wins over the compiled default; override names the registry does not
    know are ignored. The result is sorted by gate name.

    Args:
        role: Component the report is for
        overrides: Gate name to enabled flag, usually from the instance's ConfigMap
        registry: Gate definitions to report on
        platform: Platform used for platform-conditional defaults
            (defaults to the running platform)
    """
    overrides = overrides or {}
    platform = platform or current_platform()

    gates = []
    for definition in registry.lookup(role):
        if definition.name in overrides:
            enabled = bool(overrides[definition.name])
        else:
            enabled = definition.default_enabled(platform)
        gates.append(
            Response(
                component=role.label,
                name=definition.name,
                status=get_status(enabled),
                version=definition.maturity.label,
            )
        )
    gates.sort(key=lambda r: r.name)
    return gates
