import os
import sys

import pytest

# Ensure project root is importable (so `import podsync` works without installing the package)
_project_root = os.path.dirname(os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from podsync.models import (  # noqa: E402
    IMAGE_TYPE_ENV,
    MAIN_CONTAINER,
    SIDECAR_CONTAINER,
    ClusterTopology,
    ContainerSpec,
    ContainerStatus,
    EnvVar,
    FaultDomain,
    InstanceDescriptor,
)
from podsync.settings import Settings, TLSConfig  # noqa: E402


@pytest.fixture
def test_settings():
    """Settings without retry waits and without TLS material from the environment."""
    return Settings(retry_wait_s=0.0, tls=TLSConfig())


@pytest.fixture
def make_cluster():
    def _make(
        key: str = "kubernetes.io/hostname",
        value: str = "",
        value_from: str = "",
        version: str = "6.2.20",
        running_version: str = "6.2.20",
    ) -> ClusterTopology:
        return ClusterTopology(
            name="sample-cluster",
            namespace="fdb",
            fault_domain=FaultDomain(key=key, value=value, value_from=value_from),
            version=version,
            running_version=running_version,
        )

    return _make


@pytest.fixture
def make_pod():
    def _make(
        name: str = "sample-cluster-storage-1",
        addresses: tuple[str, ...] = ("10.1.0.5",),
        node_name: str = "node-a",
        image_type: str | None = None,
        sidecar_args: tuple[str, ...] = ("--input-dir", "/var/input-files"),
        sidecar_ready: bool | None = True,
        annotations: dict[str, str] | None = None,
        labels: dict[str, str] | None = None,
    ) -> InstanceDescriptor:
        main_env = (EnvVar(IMAGE_TYPE_ENV, image_type),) if image_type else ()
        statuses = () if sidecar_ready is None else (ContainerStatus(SIDECAR_CONTAINER, ready=sidecar_ready),)
        return InstanceDescriptor(
            name=name,
            node_name=node_name,
            addresses=tuple(addresses),
            labels=dict(labels or {"foundationdb.org/fdb-process-group-id": "storage-1"}),
            annotations=dict(annotations or {}),
            containers=(
                ContainerSpec(MAIN_CONTAINER, env=main_env),
                ContainerSpec(SIDECAR_CONTAINER, args=tuple(sidecar_args)),
            ),
            container_statuses=statuses,
        )

    return _make


@pytest.fixture
def cluster(make_cluster):
    return make_cluster()


@pytest.fixture
def pod(make_pod):
    return make_pod()
