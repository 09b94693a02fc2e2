"""Tests for the feature gate registry."""

import pytest

from featuregates.features.registry import (
    DEFAULT_REGISTRY,
    WINDOWS_UNSUPPORTED,
    ComponentRole,
    FeatureGateDefinition,
    Maturity,
    Platform,
    Registry,
    linux_only,
)


def _names(defs):
    return [d.name for d in defs]


def test_lookup_is_sorted_for_every_role():
    """lookup returns unique names in sorted order."""
    for role in ComponentRole:
        names = _names(DEFAULT_REGISTRY.lookup(role))
        assert names == sorted(names)
        assert len(names) == len(set(names))


def test_windows_agent_excludes_unsupported_gates():
    """The Windows agent gets the agent gates minus the deny-list."""
    agent = set(_names(DEFAULT_REGISTRY.lookup(ComponentRole.AGENT)))
    windows = set(_names(DEFAULT_REGISTRY.lookup(ComponentRole.AGENT_WINDOWS)))
    assert windows == agent - WINDOWS_UNSUPPORTED
    assert "Egress" in agent and "Egress" not in windows


def test_controller_only_gates_not_reported_for_agent():
    """Controller-only gates stay out of the agent lookup."""
    agent = _names(DEFAULT_REGISTRY.lookup(ComponentRole.AGENT))
    assert "NodeIPAM" not in agent
    assert "AdminNetworkPolicy" not in agent
    assert "NodeIPAM" in _names(DEFAULT_REGISTRY.lookup(ComponentRole.CONTROLLER))


def test_windows_only_gate_is_added_for_windows_agent():
    """A gate declared only for agent-windows is reported only there."""
    registry = Registry(
        [
            FeatureGateDefinition("Shared", True, Maturity.BETA, frozenset({ComponentRole.AGENT})),
            FeatureGateDefinition("HNSOnly", False, Maturity.ALPHA, frozenset({ComponentRole.AGENT_WINDOWS})),
            FeatureGateDefinition("LinuxThing", True, Maturity.BETA, frozenset({ComponentRole.AGENT})),
        ],
        windows_unsupported={"LinuxThing"},
    )
    assert _names(registry.lookup(ComponentRole.AGENT_WINDOWS)) == ["HNSOnly", "Shared"]
    assert _names(registry.lookup(ComponentRole.AGENT)) == ["LinuxThing", "Shared"]


def test_deny_list_wins_over_explicit_windows_role():
    """A deny-listed gate is dropped even when it names agent-windows."""
    registry = Registry(
        [
            FeatureGateDefinition(
                "Both",
                True,
                Maturity.BETA,
                frozenset({ComponentRole.AGENT, ComponentRole.AGENT_WINDOWS}),
            )
        ],
        windows_unsupported={"Both"},
    )
    assert registry.lookup(ComponentRole.AGENT_WINDOWS) == ()


def test_duplicate_names_rejected():
    """Two definitions with one name are rejected."""
    gate = FeatureGateDefinition("Dup", True, Maturity.GA, frozenset({ComponentRole.AGENT}))
    with pytest.raises(ValueError, match="Duplicate feature gate: Dup"):
        Registry([gate, gate])


def test_platform_conditional_default():
    """Linux-only defaults are off on Windows."""
    egress = DEFAULT_REGISTRY.get("Egress")
    assert egress is not None
    assert egress.default_enabled(Platform.LINUX) is True
    assert egress.default_enabled(Platform.WINDOWS) is False
    assert linux_only(Platform.WINDOWS) is False

    policy = DEFAULT_REGISTRY.get("AntreaPolicy")
    assert policy.default_enabled(Platform.WINDOWS) is True


def test_maturity_labels():
    """GA has no label; ALPHA and BETA do."""
    assert Maturity.ALPHA.label == "ALPHA"
    assert Maturity.BETA.label == "BETA"
    assert Maturity.GA.label is None


def test_registry_membership():
    """Membership, get and names on the compiled-in registry."""
    assert "Traceflow" in DEFAULT_REGISTRY
    assert "NoSuchGate" not in DEFAULT_REGISTRY
    assert DEFAULT_REGISTRY.get("NoSuchGate") is None
    assert DEFAULT_REGISTRY.names() == sorted(DEFAULT_REGISTRY.names())
    assert len(DEFAULT_REGISTRY) == 23
