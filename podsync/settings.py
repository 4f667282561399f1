from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class TLSConfig:
    """Locations of the client TLS material used to talk to sidecars."""

    certificate_file: str | None = None
    key_file: str | None = None
    ca_file: str | None = None
    # Diagnostic only: accept any sidecar certificate.
    insecure_skip_verify: bool = False

    def missing(self) -> list[str]:
        names = {
            "FDB_TLS_CERTIFICATE_FILE": self.certificate_file,
            "FDB_TLS_KEY_FILE": self.key_file,
            "FDB_TLS_CA_FILE": self.ca_file,
        }
        return [name for name, value in names.items() if not value]


def load_tls_config(environ: Mapping[str, str] | None = None) -> TLSConfig:
    """Read the TLS variables from ``environ`` (the process env by default)."""
    env = os.environ if environ is None else environ
    return TLSConfig(
        certificate_file=env.get("FDB_TLS_CERTIFICATE_FILE") or None,
        key_file=env.get("FDB_TLS_KEY_FILE") or None,
        ca_file=env.get("FDB_TLS_CA_FILE") or None,
        insecure_skip_verify=env.get("DISABLE_SIDECAR_TLS_CHECK", "").strip() == "1",
    )


@dataclass(frozen=True)
class Settings:
    # Sidecar transport
    read_timeout_s: float = _env_float("PODSYNC_READ_TIMEOUT_S", 5.0)
    write_timeout_s: float = _env_float("PODSYNC_WRITE_TIMEOUT_S", 10.0)
    max_retries: int = _env_int("PODSYNC_MAX_RETRIES", 2)
    retry_wait_s: float = _env_float("PODSYNC_RETRY_WAIT_S", 1.0)
    tls: TLSConfig = field(default_factory=load_tls_config)

    # Metadata contract
    annotation_prefix: str = os.getenv("PODSYNC_ANNOTATION_PREFIX", "foundationdb.org")

    # Logging
    log_level: str = os.getenv("PODSYNC_LOG_LEVEL", "INFO")
    log_file: str | None = os.getenv("PODSYNC_LOG_FILE")
    log_requests: bool = _env_bool("PODSYNC_LOG_REQUESTS", False)

    def annotation(self, name: str) -> str:
        return f"{self.annotation_prefix}/{name}"


settings = Settings()
