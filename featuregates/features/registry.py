"""Central registry of Antrea feature gates with their compiled-in defaults."""

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable


class Platform(str, Enum):
    """Operating platform a component runs on."""

    LINUX = "linux"
    WINDOWS = "windows"


def current_platform() -> Platform:
    """Platform of the running process."""
    if sys.platform.startswith("win"):
        return Platform.WINDOWS
    return Platform.LINUX


class Maturity(str, Enum):
    ALPHA = "ALPHA"
    BETA = "BETA"
    GA = "GA"

    @property
    def label(self) -> str | None:
        """Label shown in reports; GA gates have none."""
        if self is Maturity.GA:
            return None
        return self.value


class ComponentRole(str, Enum):
    """Component reporting its gates. Values are the display labels."""

    AGENT = "agent"
    AGENT_WINDOWS = "agent-windows"
    CONTROLLER = "controller"

    @property
    def label(self) -> str:
        return self.value


DefaultValue = bool | Callable[[Platform], bool]


def linux_only(platform: Platform) -> bool:
    """Default for gates that are on everywhere except Windows."""
    return platform is not Platform.WINDOWS


@dataclass(frozen=True)
class FeatureGateDefinition:
    """Definition of a feature gate."""

    name: str
    default: DefaultValue
    maturity: Maturity
    roles: frozenset[ComponentRole]

    def default_enabled(self, platform: Platform) -> bool:
        """Compiled-in default on the given platform."""
        if callable(self.default):
            return bool(self.default(platform))
        return self.default

    def applies_to(self, role: ComponentRole) -> bool:
        return role in self.roles


class Registry:
    """
    Immutable table of feature-gate definitions.

    Built once at start-up and handed to whatever needs it. The Windows
    agent sees the agent gates minus ``windows_unsupported``, plus any gate
    declared for ``ComponentRole.AGENT_WINDOWS`` directly.
    """

    def __init__(
        self,
        definitions: Iterable[FeatureGateDefinition],
        windows_unsupported: Iterable[str] = (),
    ) -> None:
        by_name: dict[str, FeatureGateDefinition] = {}
        for definition in definitions:
            if definition.name in by_name:
                raise ValueError(f"Duplicate feature gate: {definition.name}")
            by_name[definition.name] = definition
        self._definitions = tuple(sorted(by_name.values(), key=lambda d: d.name))
        self._by_name = by_name
        self._windows_unsupported = frozenset(windows_unsupported)

    @property
    def windows_unsupported(self) -> frozenset[str]:
        return self._windows_unsupported

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self):
        return iter(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> FeatureGateDefinition | None:
        """Get a gate definition by name."""
        return self._by_name.get(name)

    def names(self) -> list[str]:
        return [d.name for d in self._definitions]

    def lookup(self, role: ComponentRole) -> tuple[FeatureGateDefinition, ...]:
        """Definitions applicable to ``role``, ordered by name."""
        if role is ComponentRole.AGENT_WINDOWS:
            return tuple(
                d
                for d in self._definitions
                if d.name not in self._windows_unsupported
                and (d.applies_to(ComponentRole.AGENT) or d.applies_to(role))
            )
        return tuple(d for d in self._definitions if d.applies_to(role))


_AGENT = frozenset({ComponentRole.AGENT})
_CONTROLLER = frozenset({ComponentRole.CONTROLLER})
_BOTH = frozenset({ComponentRole.AGENT, ComponentRole.CONTROLLER})


def _gate(
    name: str, default: DefaultValue, maturity: Maturity, roles: frozenset[ComponentRole]
) -> FeatureGateDefinition:
    return FeatureGateDefinition(name=name, default=default, maturity=maturity, roles=roles)


# Feature gate table
FEATURE_GATES: tuple[FeatureGateDefinition, ...] = (
    _gate("AdminNetworkPolicy", False, Maturity.ALPHA, _CONTROLLER),
    _gate("AntreaIPAM", False, Maturity.ALPHA, _BOTH),
    _gate("AntreaPolicy", True, Maturity.BETA, _BOTH),
    _gate("AntreaProxy", True, Maturity.BETA, _AGENT),
    _gate("CleanupStaleUDPSvcConntrack", False, Maturity.ALPHA, _AGENT),
    _gate("Egress", linux_only, Maturity.BETA, _BOTH),
    _gate("EndpointSlice", True, Maturity.GA, _AGENT),
    _gate("ExternalNode", False, Maturity.ALPHA, _AGENT),
    _gate("FlowExporter", False, Maturity.ALPHA, _AGENT),
    _gate("IPsecCertAuth", False, Maturity.ALPHA, _BOTH),
    _gate("L7NetworkPolicy", False, Maturity.ALPHA, _BOTH),
    _gate("LoadBalancerModeDSR", False, Maturity.ALPHA, _AGENT),
    _gate("Multicast", linux_only, Maturity.BETA, _BOTH),
    _gate("Multicluster", False, Maturity.ALPHA, _BOTH),
    _gate("NetworkPolicyStats", True, Maturity.BETA, _BOTH),
    _gate("NodeIPAM", True, Maturity.BETA, _CONTROLLER),
    _gate("NodePortLocal", True, Maturity.BETA, _AGENT),
    _gate("SecondaryNetwork", False, Maturity.ALPHA, _AGENT),
    _gate("ServiceExternalIP", False, Maturity.ALPHA, _BOTH),
    _gate("SupportBundleCollection", False, Maturity.ALPHA, _BOTH),
    _gate("TopologyAwareHints", True, Maturity.BETA, _AGENT),
    _gate("Traceflow", True, Maturity.BETA, _BOTH),
    _gate("TrafficControl", False, Maturity.ALPHA, _AGENT),
)

# Agent gates that have no meaning on Windows nodes
WINDOWS_UNSUPPORTED: frozenset[str] = frozenset(
    {
        "AntreaIPAM",
        "CleanupStaleUDPSvcConntrack",
        "Egress",
        "IPsecCertAuth",
        "L7NetworkPolicy",
        "LoadBalancerModeDSR",
        "Multicast",
        "Multicluster",
        "SecondaryNetwork",
        "ServiceExternalIP",
    }
)

DEFAULT_REGISTRY = Registry(FEATURE_GATES, windows_unsupported=WINDOWS_UNSUPPORTED)
