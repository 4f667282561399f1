from __future__ import annotations

from .client import PodClient
from .errors import SidecarUnreachable
from .models import ClusterTopology, InstanceDescriptor
from .settings import Settings, settings
from .topology import derive_substitutions


class MockPodClient(PodClient):
    """In-memory pod client for tests.

    Files are always present and up to date. Substitutions are computed
    locally from topology; a pod annotated with ``<prefix>/mock-unreachable``
    behaves like a pod whose sidecar cannot be reached.
    """

    def __init__(self, cluster: ClusterTopology, pod: InstanceDescriptor, config: Settings = settings):
        super().__init__(cluster, pod)
        self.config = config
        self.unreachable_annotation = config.annotation("mock-unreachable")

    def is_present(self, filename: str) -> bool:
        return True

    def update_file(self, name: str, contents: str) -> bool:
        return True

    def get_variable_substitutions(self) -> dict[str, str]:
        if self.unreachable_annotation in self.pod.annotations:
            raise SidecarUnreachable(f"mock: pod {self.pod.name} not reachable")
        return derive_substitutions(self.cluster, self.pod, config=self.config)
