"""Self-discovery of a running instance's feature-gate overrides.

The chain is pod -> ConfigMap volume -> ConfigMap -> config file entry ->
``featureGates`` section. Every step that cannot find its target raises
DiscoveryError; a config entry that is only partly readable still yields
whatever gate values can be recovered from it.
"""

import asyncio
import os
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml

from ..features.registry import (
    DEFAULT_REGISTRY,
    ComponentRole,
    Platform,
    Registry,
    current_platform,
)
from ..integrations.kubernetes import ClusterClient, read_first_line
from ..utils.config import Settings, get_settings
from ..utils.logging import get_logger
from .errors import DiscoveryError, TransportError

logger = get_logger(__name__)

FEATURE_GATES_KEY = "featureGates"
OS_LABEL = "kubernetes.io/os"

# Gate names are CamelCase; config keys such as enableIPSecTunnel are not
_PAIR_RE = re.compile(r"\b([A-Z][A-Za-z0-9]*)\s*[:=]\s*((?i:true|false))\b")
_SECTION_RE = re.compile(r"^(\s*)featureGates\s*:(.*)$")


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


def _strip_comment(line: str) -> str:
    """Drop a YAML ``#`` comment: one at line start or after whitespace."""
    for i, ch in enumerate(line):
        if ch == "#" and (i == 0 or line[i - 1] in " \t"):
            return line[:i]
    return line


def _feature_gate_text(text: str) -> str:
    """
    Comment-free text of the ``featureGates`` section.

    Falls back to the whole comment-free text when no section header is
    present, so flag-style ``A=true,B=false`` content is still seen.
    """
    lines = [_strip_comment(line).rstrip() for line in text.splitlines()]
    section: list[str] = []
    section_indent: int | None = None
    for line in lines:
        if not line.strip():
            continue
        if section_indent is None:
            match = _SECTION_RE.match(line)
            if match:
                section_indent = len(match.group(1))
                section.append(match.group(2))
            continue
        if len(line) - len(line.lstrip()) <= section_indent:
            break
        section.append(line)
    if section_indent is None:
        return "\n".join(lines)
    return "\n".join(section)


def _scan_pairs(text: str) -> dict[str, bool]:
    """Pick ``Name=true`` / ``Name: false`` pairs out of free text."""
    pairs: dict[str, bool] = {}
    for name, value in _PAIR_RE.findall(text):
        pairs[name] = value.lower() == "true"
    return pairs


def parse_feature_gates(text: str) -> dict[str, bool]:
    """
    Extract feature-gate overrides from a component config file.

    Best effort: a well-formed ``featureGates`` mapping is read as-is,
    skipping entries whose value is not a boolean. When the document
    does not parse as YAML, is a bare scalar, or carries the gates as a
    ``A=true,B=false`` string, the text is scanned for name/value pairs
    instead. Broken YAML is scanned only under the ``featureGates``
    header, with comments removed. Nothing here raises.
    """
    if not text or not text.strip():
        return {}

    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        pairs = _scan_pairs(_feature_gate_text(text))
        logger.warning(
            "Config entry is not valid YAML, scanning for gate values",
            error=str(e),
            recovered=len(pairs),
        )
        return pairs

    if doc is None:
        return {}
    if isinstance(doc, str):
        return _scan_pairs(doc)
    if not isinstance(doc, dict):
        logger.warning("Config entry is not a mapping", type=type(doc).__name__)
        return {}

    section = doc.get(FEATURE_GATES_KEY)
    if section is None:
        return {}
    if isinstance(section, str):
        return _scan_pairs(section)
    if not isinstance(section, dict):
        logger.warning("featureGates is not a mapping", type=type(section).__name__)
        return {}

    gates: dict[str, bool] = {}
    for name, value in section.items():
        enabled = _as_bool(value)
        if enabled is None:
            logger.warning("Ignoring non-boolean feature gate value", gate=str(name), value=repr(value))
            continue
        gates[str(name)] = enabled
    return gates


def find_config_map_volume(pod: Mapping[str, Any], config_map_name: str) -> dict[str, Any] | None:
    """Return the pod volume that mounts ``config_map_name``, if any."""
    volumes = (pod.get("spec") or {}).get("volumes") or []
    for volume in volumes:
        source = volume.get("configMap") or {}
        if source.get("name") == config_map_name:
            return volume
    return None


def determine_role(
    pod_name: str,
    pod: Mapping[str, Any] | None = None,
    platform: Platform | None = None,
    component: str | None = None,
) -> ComponentRole:
    """
    Work out which component this instance is.

    An explicitly configured component wins. Otherwise agents are
    recognised by name, and an agent scheduled onto (or running on) a
    Windows node is the Windows agent. Everything else is the controller.
    """
    if component:
        return ComponentRole(component)

    if "agent" not in pod_name:
        return ComponentRole.CONTROLLER

    node_selector = ((pod or {}).get("spec") or {}).get("nodeSelector") or {}
    platform = platform or current_platform()
    if node_selector.get(OS_LABEL) == "windows" or platform is Platform.WINDOWS:
        return ComponentRole.AGENT_WINDOWS
    return ComponentRole.AGENT


@dataclass
class DiscoveryResult:
    """What discovery learned about the instance."""

    role: ComponentRole
    overrides: dict[str, bool] = field(default_factory=dict)
    namespace: str = ""
    config_map: str = ""
    config_key: str = ""


class InstanceDiscovery:
    """Locates the calling instance's ConfigMap and reads its gate overrides."""

    def __init__(
        self,
        client: ClusterClient,
        settings: Settings | None = None,
        registry: Registry = DEFAULT_REGISTRY,
        platform: Platform | None = None,
    ) -> None:
        self.client = client
        self.settings = settings or get_settings()
        self.registry = registry
        self.platform = platform

    def _require_env(self, var: str) -> str:
        value = os.environ.get(var, "").strip()
        if not value:
            raise DiscoveryError(f"Environment variable {var} is not set")
        return value

    async def namespace(self) -> str:
        cfg = self.settings.discovery
        from_env = os.environ.get(cfg.namespace_env, "").strip()
        if from_env:
            return from_env
        from_file = await asyncio.to_thread(read_first_line, self.settings.kubernetes.namespace_file)
        return from_file or cfg.default_namespace

    def config_key(self, role: ComponentRole) -> str:
        if role is ComponentRole.CONTROLLER:
            return self.settings.discovery.controller_config_key
        return self.settings.discovery.agent_config_key

    async def discover(self) -> DiscoveryResult:
        """Run discovery, bounded by ``discovery.timeout_seconds``."""
        timeout = self.settings.discovery.timeout_seconds
        try:
            return await asyncio.wait_for(self._discover(), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise TransportError(f"Discovery timed out after {timeout}s") from e

    async def _discover(self) -> DiscoveryResult:
        cfg = self.settings.discovery
        pod_name = self._require_env(cfg.pod_name_env)
        config_map_name = self._require_env(cfg.config_map_name_env)
        namespace = await self.namespace()

        pod = await self.client.get_pod(namespace, pod_name)
        if find_config_map_volume(pod, config_map_name) is None:
            raise DiscoveryError(
                f"Pod {namespace}/{pod_name} has no volume for ConfigMap {config_map_name}"
            )

        role = determine_role(pod_name, pod, self.platform, cfg.component)
        key = self.config_key(role)

        config_map = await self.client.get_config_map(namespace, config_map_name)
        data = config_map.get("data") or {}
        if key not in data:
            raise DiscoveryError(f"ConfigMap {namespace}/{config_map_name} has no entry {key}")

        overrides = parse_feature_gates(data[key] or "")
        unknown = sorted(name for name in overrides if name not in self.registry)
        if unknown:
            logger.debug("Ignoring unknown feature gates", gates=unknown)

        logger.debug(
            "Discovered feature gate overrides",
            pod=pod_name,
            role=role.label,
            config_map=config_map_name,
            overrides=len(overrides),
        )
        return DiscoveryResult(
            role=role,
            overrides=overrides,
            namespace=namespace,
            config_map=config_map_name,
            config_key=key,
        )
