from __future__ import annotations

import ipaddress
import json
import logging
import ssl
import time
from typing import Callable

import httpx

from .client import MONITOR_CONF, PodClient
from .errors import AddressUnavailable, MalformedSubstitutions, SidecarRequestError, SidecarUnreachable
from .hashing import content_digest, digests_match
from .models import ClusterTopology, InstanceDescriptor
from .settings import Settings, settings
from .topology import public_ips_for_pod

logger = logging.getLogger(__name__)

SIDECAR_PORT = 8080


class SidecarSession:
    """HTTP(S) session with the sidecar of a single pod.

    GET requests are expected to be fast and use the read timeout; POST
    requests may copy files on the sidecar and use the write timeout.
    Transport failures are retried ``max_retries`` times, error responses
    are not retried.

    An injected ``http_client`` must already carry the TLS configuration;
    passing it together with an ``ssl_context`` is rejected because the
    context could not be applied.
    """

    def __init__(
        self,
        address: str,
        use_tls: bool = False,
        ssl_context: ssl.SSLContext | None = None,
        config: Settings = settings,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not address:
            raise AddressUnavailable("Sidecar session needs a pod address")
        if http_client is not None and use_tls and ssl_context is not None:
            raise ValueError("ssl_context cannot be applied to an injected http_client; configure TLS on the client")
        self.address = address
        self.port = SIDECAR_PORT
        self.use_tls = use_tls
        self.ssl_context = ssl_context
        self.read_timeout_s = config.read_timeout_s
        self.write_timeout_s = config.write_timeout_s
        self.max_retries = max(0, int(config.max_retries))
        self.retry_wait_s = max(0.0, config.retry_wait_s)
        self._sleep = sleep
        self._owns_client = http_client is None
        if http_client is None:
            verify: ssl.SSLContext | bool = ssl_context if (use_tls and ssl_context is not None) else True
            http_client = httpx.Client(verify=verify, follow_redirects=False)
        self._http = http_client

    @property
    def scheme(self) -> str:
        return "https" if self.use_tls else "http"

    def url(self, path: str) -> str:
        host = self.address
        try:
            if ipaddress.ip_address(host).version == 6:
                host = f"[{host}]"
        except ValueError:
            pass
        return f"{self.scheme}://{host}:{self.port}/{path.lstrip('/')}"

    def request(self, method: str, path: str) -> str:
        """Submit a request to the sidecar and return the response body."""
        method = method.upper()
        if method == "GET":
            timeout = self.read_timeout_s
            kwargs: dict = {}
        elif method == "POST":
            timeout = self.write_timeout_s
            kwargs = {"content": b"", "headers": {"Content-Type": "application/json"}}
        else:
            raise ValueError(f"unknown HTTP method {method}")

        url = self.url(path)
        attempts = self.max_retries + 1
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = self._http.request(method, url, timeout=timeout, **kwargs)
                break
            except httpx.TransportError as exc:
                if attempt >= attempts:
                    raise SidecarUnreachable(
                        f"{method} {url} failed after {attempts} attempts: {type(exc).__name__}: {exc}"
                    ) from exc
                logger.debug("retrying %s %s after %s (attempt %d/%d)", method, url, type(exc).__name__, attempt, attempts)
                if self.retry_wait_s:
                    self._sleep(self.retry_wait_s)

        if resp.status_code >= 400:
            raise SidecarRequestError(method, url, resp.status_code, resp.text)
        return resp.text

    def close(self) -> None:
        if self._owns_client:
            self._http.close()


class SidecarPodClient(PodClient):
    """Pod client for split images, talking to the sidecar's HTTP API."""

    def __init__(self, cluster: ClusterTopology, pod: InstanceDescriptor, session: SidecarSession):
        super().__init__(cluster, pod)
        self.session = session

    @classmethod
    def for_pod(
        cls,
        cluster: ClusterTopology,
        pod: InstanceDescriptor,
        use_tls: bool = False,
        ssl_context: ssl.SSLContext | None = None,
        config: Settings = settings,
        http_client: httpx.Client | None = None,
    ) -> SidecarPodClient:
        ips = public_ips_for_pod(pod, config)
        session = SidecarSession(
            ips[0] if ips else "",
            use_tls=use_tls,
            ssl_context=ssl_context,
            config=config,
            http_client=http_client,
        )
        return cls(cluster, pod, session)

    @property
    def use_tls(self) -> bool:
        return self.session.use_tls

    def close(self) -> None:
        self.session.close()

    def is_present(self, filename: str) -> bool:
        try:
            self.session.request("GET", f"check_hash/{filename}")
        except (SidecarRequestError, SidecarUnreachable) as exc:
            if isinstance(exc, SidecarRequestError) and exc.status_code == 404:
                return False
            # A sidecar we cannot reach is indistinguishable from a missing file here.
            logger.info("Waiting for file %s file=%s error=%s", self._log_fields(), filename, exc)
            raise
        return True

    def remote_digest(self, filename: str) -> str | None:
        """Digest the sidecar reports for ``filename``, None if it has no such file."""
        try:
            return self.session.request("GET", f"check_hash/{filename}")
        except SidecarRequestError as exc:
            if exc.status_code == 404:
                return None
            raise

    def check_hash(self, filename: str, contents: str) -> bool:
        return digests_match(content_digest(contents), self.remote_digest(filename))

    def generate_monitor_conf(self) -> None:
        self.session.request("POST", "copy_monitor_conf")

    def copy_files(self) -> None:
        """Copy the files from the config map to the shared dynamic conf volume."""
        self.session.request("POST", "copy_files")

    def update_file(self, name: str, contents: str) -> bool:
        if name == MONITOR_CONF:
            return self._update_dynamic_file(name, contents, self.generate_monitor_conf)
        return self._update_dynamic_file(name, contents, self.copy_files)

    def _update_dynamic_file(self, filename: str, contents: str, remediate: Callable[[], None]) -> bool:
        if self.check_hash(filename, contents):
            return True

        remediate()
        # Re-checked immediately; a slow sidecar is picked up on the next pass.
        match = self.check_hash(filename, contents)
        if not match:
            logger.info("Waiting for config update %s file=%s", self._log_fields(), filename)
        return match

    def get_variable_substitutions(self) -> dict[str, str]:
        body = self.session.request("GET", "substitutions")
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            logger.error("Error deserializing pod substitutions %s responseBody=%r", self._log_fields(), body)
            raise MalformedSubstitutions(f"Invalid substitutions JSON from sidecar: {exc}") from exc
        if not isinstance(data, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
            logger.error("Error deserializing pod substitutions %s responseBody=%r", self._log_fields(), body)
            raise MalformedSubstitutions("Sidecar substitutions must be a JSON object of strings")
        return data
