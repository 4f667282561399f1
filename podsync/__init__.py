"""Pod configuration sync client.

Verifies and pushes configuration files onto a single FoundationDB pod
through one of three interchangeable strategies:
 - the sidecar HTTP API (split images), using content digests
 - launcher annotations (unified images), using structured comparison
 - an in-memory mock for tests

Use ``new_pod_client`` to pick the right strategy for a pod.
"""
from __future__ import annotations

from .annotation_client import AnnotationPodClient
from .client import CLUSTER_FILE, MONITOR_CONF, ImageType, PodClient
from .errors import PodClientError
from .factory import new_mock_pod_client, new_pod_client
from .mock_client import MockPodClient
from .models import ClusterTopology, ContainerSpec, ContainerStatus, EnvVar, FaultDomain, InstanceDescriptor
from .sidecar_client import SidecarPodClient, SidecarSession
from .topology import derive_substitutions

__all__ = [
    "AnnotationPodClient",
    "CLUSTER_FILE",
    "ClusterTopology",
    "ContainerSpec",
    "ContainerStatus",
    "EnvVar",
    "FaultDomain",
    "ImageType",
    "InstanceDescriptor",
    "MONITOR_CONF",
    "MockPodClient",
    "PodClient",
    "PodClientError",
    "SidecarPodClient",
    "SidecarSession",
    "derive_substitutions",
    "new_mock_pod_client",
    "new_pod_client",
]
