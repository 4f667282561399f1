from __future__ import annotations

import logging
import ssl

import httpx

from .annotation_client import AnnotationPodClient
from .client import ImageType, PodClient
from .errors import AddressPending, MissingTLSMaterial, SidecarNotReady
from .mock_client import MockPodClient
from .models import (
    IMAGE_TYPE_ENV,
    MAIN_CONTAINER,
    SIDECAR_CONTAINER,
    SIDECAR_TLS_FLAG,
    ClusterTopology,
    InstanceDescriptor,
)
from .settings import Settings, TLSConfig, settings
from .sidecar_client import SidecarPodClient
from .topology import public_ips_for_pod

logger = logging.getLogger(__name__)


def get_image_type(pod: InstanceDescriptor) -> ImageType:
    """Whether the pod runs the unified image or the split main/sidecar images."""
    main = pod.container(MAIN_CONTAINER)
    if main is not None:
        raw = main.env_value(IMAGE_TYPE_ENV)
        if raw is not None:
            try:
                return ImageType(raw)
            except ValueError:
                logger.warning("Unknown %s %r on pod %s, assuming split image", IMAGE_TYPE_ENV, raw, pod.name)
    return ImageType.SPLIT


def pod_has_sidecar_tls(pod: InstanceDescriptor) -> bool:
    sidecar = pod.container(SIDECAR_CONTAINER)
    return sidecar is not None and SIDECAR_TLS_FLAG in sidecar.args


def build_tls_context(tls: TLSConfig) -> ssl.SSLContext:
    """Client context presenting our certificate and trusting the configured CA bundle."""
    missing = tls.missing()
    if missing:
        raise MissingTLSMaterial(f"missing one or more TLS env vars: {', '.join(missing)}")

    try:
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cafile=tls.ca_file)
        context.load_cert_chain(certfile=tls.certificate_file, keyfile=tls.key_file)
    except (OSError, ssl.SSLError) as exc:
        raise MissingTLSMaterial(f"could not load sidecar TLS material: {exc}") from exc

    if tls.insecure_skip_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def new_pod_client(
    cluster: ClusterTopology,
    pod: InstanceDescriptor,
    config: Settings = settings,
    http_client: httpx.Client | None = None,
) -> PodClient:
    """Build the client matching how ``pod`` exposes its configuration."""
    if get_image_type(pod) == ImageType.UNIFIED:
        return AnnotationPodClient(cluster, pod, config=config)

    where = f"{cluster.namespace}/{cluster.name}/{pod.name}"
    if not public_ips_for_pod(pod, config):
        raise AddressPending(f"waiting for pod {where} to be assigned an IP")

    sidecar_status = pod.container_status(SIDECAR_CONTAINER)
    if sidecar_status is not None and not sidecar_status.ready:
        raise SidecarNotReady(f"waiting for pod {where} to be ready")

    use_tls = pod_has_sidecar_tls(pod)
    ssl_context = build_tls_context(config.tls) if use_tls else None

    return SidecarPodClient.for_pod(
        cluster,
        pod,
        use_tls=use_tls,
        ssl_context=ssl_context,
        config=config,
        http_client=http_client,
    )


def new_mock_pod_client(cluster: ClusterTopology, pod: InstanceDescriptor, config: Settings = settings) -> PodClient:
    return MockPodClient(cluster, pod, config=config)
