from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from .models import ClusterTopology, InstanceDescriptor

MONITOR_CONF = "fdbmonitor.conf"
CLUSTER_FILE = "fdb.cluster"


class ImageType(str, Enum):
    # Main and sidecar containers share one image; files are managed through annotations.
    UNIFIED = "unified"
    # Separate sidecar image exposing the HTTP API.
    SPLIT = "split"


class PodClient(ABC):
    """Uniform access to the configuration files of one pod.

    A client binds one cluster snapshot and one pod snapshot and never
    mutates either. Operations block and raise ``PodClientError``
    subclasses; callers retry on their next reconciliation pass.
    """

    def __init__(self, cluster: ClusterTopology, pod: InstanceDescriptor):
        self.cluster = cluster
        self.pod = pod

    def get_cluster(self) -> ClusterTopology:
        return self.cluster

    def get_pod(self) -> InstanceDescriptor:
        return self.pod

    @abstractmethod
    def is_present(self, filename: str) -> bool:
        """Check whether a file is present on the pod."""

    @abstractmethod
    def update_file(self, name: str, contents: str) -> bool:
        """Check whether a file is up to date and try to update it if not.

        Returns True once the pod reports the desired contents.
        """

    @abstractmethod
    def get_variable_substitutions(self) -> dict[str, str]:
        """Keys and values the pod substitutes into its monitor conf."""

    def close(self) -> None:
        pass

    def __enter__(self) -> PodClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _log_fields(self) -> str:
        return f"namespace={self.cluster.namespace} cluster={self.cluster.name} pod={self.pod.name}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.cluster.namespace}/{self.cluster.name}/{self.pod.name})"
