"""Derive per-instance substitution values from cluster and pod topology."""
from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from typing import Callable

from .errors import AddressUnavailable, InvalidVersion, UnsupportedFaultDomainSource
from .models import (
    FAULT_DOMAIN_KUBERNETES_CLUSTER,
    FAULT_DOMAIN_NODE_NAME_SOURCE,
    FAULT_DOMAIN_NONE,
    PUBLIC_IP_FAMILY_FLAG,
    SIDECAR_CONTAINER,
    ClusterTopology,
    InstanceDescriptor,
)
from .settings import Settings, settings

VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:-rc(\d+))?$")

DYNAMIC_BINARY_ROOT = "/var/dynamic-conf/bin"
SYSTEM_BINARY_DIR = "/usr/bin"


@dataclass(frozen=True, order=True)
class FdbVersion:
    major: int
    minor: int
    patch: int
    release_candidate: int = 0

    @classmethod
    def parse(cls, raw: str) -> FdbVersion:
        m = VERSION_RE.match(raw or "")
        if not m:
            raise InvalidVersion(f"Could not parse FDB version from {raw!r}")
        major, minor, patch, rc = m.groups()
        return cls(int(major), int(minor), int(patch), int(rc or 0))

    def is_at_least(self, other: FdbVersion) -> bool:
        return (self.major, self.minor, self.patch) >= (other.major, other.minor, other.patch)

    @property
    def supports_binaries_from_main_container(self) -> bool:
        return self.is_at_least(FdbVersion(6, 1, 0))

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        return f"{base}-rc{self.release_candidate}" if self.release_candidate else base


def _preferred_ip_family(pod: InstanceDescriptor) -> int | None:
    sidecar = pod.container(SIDECAR_CONTAINER)
    if sidecar is None:
        return None
    args = list(sidecar.args)
    for i, arg in enumerate(args):
        if arg == PUBLIC_IP_FAMILY_FLAG and i + 1 < len(args):
            raw = args[i + 1]
        elif arg.startswith(PUBLIC_IP_FAMILY_FLAG + "="):
            raw = arg.split("=", 1)[1]
        else:
            continue
        if raw in {"4", "6"}:
            return int(raw)
    return None


def _ip_version(address: str) -> int | None:
    try:
        return ipaddress.ip_address(address).version
    except ValueError:
        return None


def public_ips_for_pod(pod: InstanceDescriptor | None, config: Settings = settings) -> list[str]:
    """Return the addresses the pod's processes advertise, best candidate first."""
    if pod is None:
        return []

    source = pod.annotations.get(config.annotation("public-ip-source"), "pod")
    if source == "service":
        ip = pod.annotations.get(config.annotation("public-ip"), "")
        return [ip] if ip else []

    family = _preferred_ip_family(pod)
    if family is None:
        return list(pod.addresses)
    return [a for a in pod.addresses if _ip_version(a) == family]


def render_public_ip(address: str) -> str:
    """IPv6 addresses are bracketed so they can be followed by a port."""
    try:
        ip = ipaddress.ip_address(address)
    except ValueError as exc:
        raise AddressUnavailable(f"Failed to parse IP from pod: {address!r}") from exc
    if ip.version == 6:
        return f"[{address}]"
    return address


def process_group_id_from_meta(cluster: ClusterTopology, pod: InstanceDescriptor) -> str:
    for label in cluster.process_group_id_labels:
        value = pod.labels.get(label)
        if value:
            return value
    return ""


def _identity(cluster: ClusterTopology, pod: InstanceDescriptor) -> tuple[str, str]:
    """Return (machine_id, zone_id) for the cluster's fault domain policy."""
    fault_domain = cluster.fault_domain
    if fault_domain.key == FAULT_DOMAIN_NONE:
        return pod.name, pod.name
    if fault_domain.key == FAULT_DOMAIN_KUBERNETES_CLUSTER:
        return pod.node_name, fault_domain.value

    source = fault_domain.value_from or FAULT_DOMAIN_NODE_NAME_SOURCE
    if source != FAULT_DOMAIN_NODE_NAME_SOURCE:
        raise UnsupportedFaultDomainSource(f"unsupported fault domain source {source}")
    return pod.node_name, pod.node_name


def binary_dir(cluster: ClusterTopology) -> str | None:
    version = FdbVersion.parse(cluster.version)
    if not version.supports_binaries_from_main_container:
        return None
    if cluster.is_being_upgraded:
        return f"{DYNAMIC_BINARY_ROOT}/{cluster.version}"
    return SYSTEM_BINARY_DIR


def derive_substitutions(
    cluster: ClusterTopology,
    pod: InstanceDescriptor,
    instance_id_from: Callable[[ClusterTopology, InstanceDescriptor], str] = process_group_id_from_meta,
    config: Settings = settings,
) -> dict[str, str]:
    """Compute the variables the launcher substitutes into its configuration.

    Either the whole map is returned or an error is raised; partial maps are
    never handed out.
    """
    ips = public_ips_for_pod(pod, config)
    if not ips:
        raise AddressUnavailable(f"No address assigned to pod {pod.name}")

    substitutions: dict[str, str] = {"FDB_PUBLIC_IP": render_public_ip(ips[0])}

    machine_id, zone_id = _identity(cluster, pod)
    substitutions["FDB_MACHINE_ID"] = machine_id
    substitutions["FDB_ZONE_ID"] = zone_id

    substitutions["FDB_INSTANCE_ID"] = instance_id_from(cluster, pod)

    bin_dir = binary_dir(cluster)
    if bin_dir is not None:
        substitutions["BINARY_DIR"] = bin_dir

    return substitutions
