from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from types import MappingProxyType

MAIN_CONTAINER = "foundationdb"
SIDECAR_CONTAINER = "foundationdb-kubernetes-sidecar"

IMAGE_TYPE_ENV = "FDB_IMAGE_TYPE"
SIDECAR_TLS_FLAG = "--tls"
PUBLIC_IP_FAMILY_FLAG = "--public-ip-family"

FAULT_DOMAIN_NONE = "foundationdb.org/none"
FAULT_DOMAIN_KUBERNETES_CLUSTER = "foundationdb.org/kubernetes-cluster"
FAULT_DOMAIN_NODE_NAME_SOURCE = "spec.nodeName"
DEFAULT_ZONE_KEY = "kubernetes.io/hostname"

PROCESS_GROUP_ID_LABEL = "foundationdb.org/fdb-process-group-id"


@dataclass(frozen=True)
class FaultDomain:
    key: str = DEFAULT_ZONE_KEY
    value: str = ""
    value_from: str = ""


@dataclass(frozen=True)
class ClusterTopology:
    """Read-only snapshot of the cluster a pod belongs to."""

    name: str
    namespace: str = "default"
    fault_domain: FaultDomain = field(default_factory=FaultDomain)
    version: str = ""
    # Version the cluster processes currently report; empty before the first run.
    running_version: str = ""
    process_group_id_labels: tuple[str, ...] = (PROCESS_GROUP_ID_LABEL,)

    @property
    def is_being_upgraded(self) -> bool:
        return bool(self.running_version) and self.running_version != self.version


@dataclass(frozen=True)
class EnvVar:
    name: str
    value: str = ""


@dataclass(frozen=True)
class ContainerSpec:
    name: str
    args: tuple[str, ...] = ()
    env: tuple[EnvVar, ...] = ()

    def env_value(self, name: str) -> str | None:
        for var in self.env:
            if var.name == name:
                return var.value
        return None


@dataclass(frozen=True)
class ContainerStatus:
    name: str
    ready: bool = False


@dataclass(frozen=True)
class InstanceDescriptor:
    """Read-only snapshot of one pod."""

    name: str
    node_name: str = ""
    # Assigned pod IPs, empty while the pod is pending.
    addresses: tuple[str, ...] = ()
    # Mutable mappings are copied into read-only views; excluded from the hash.
    labels: Mapping[str, str] = field(default_factory=dict, hash=False)
    annotations: Mapping[str, str] = field(default_factory=dict, hash=False)
    containers: tuple[ContainerSpec, ...] = ()
    container_statuses: tuple[ContainerStatus, ...] = ()

    def __post_init__(self) -> None:
        for name in ("labels", "annotations"):
            value = getattr(self, name)
            if isinstance(value, MutableMapping):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def container(self, name: str) -> ContainerSpec | None:
        for c in self.containers:
            if c.name == name:
                return c
        return None

    def container_status(self, name: str) -> ContainerStatus | None:
        for st in self.container_statuses:
            if st.name == name:
                return st
        return None
