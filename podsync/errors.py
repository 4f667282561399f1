"""Errors raised by pod clients.

Every error carries ``recoverable``: True when waiting for the next
reconciliation pass can fix it (pending remote state, transport trouble),
False when the input or configuration has to change first.
"""
from __future__ import annotations


class PodClientError(Exception):
    recoverable = False


# Pending


class PendingError(PodClientError):
    recoverable = True


class AddressPending(PendingError):
    pass


class SidecarNotReady(PendingError):
    pass


class MissingAnnotation(PendingError):
    def __init__(self, annotation: str, message: str | None = None):
        self.annotation = annotation
        super().__init__(message or f"Pod does not have required annotation {annotation}")


class MissingAppliedConfig(MissingAnnotation):
    pass


# Malformed input


class MalformedInputError(PodClientError):
    pass


class AddressUnavailable(MalformedInputError):
    pass


class InvalidVersion(MalformedInputError):
    pass


class MalformedDesiredConfig(MalformedInputError):
    pass


class MalformedAppliedConfig(MalformedInputError):
    pass


class MalformedSubstitutions(MalformedInputError):
    pass


# Transport


class TransportError(PodClientError):
    recoverable = True


class SidecarUnreachable(TransportError):
    pass


class SidecarRequestError(TransportError):
    """The sidecar answered with an error status. Never retried internally."""

    def __init__(self, method: str, url: str, status_code: int, body: str = ""):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"{method} {url} returned HTTP {status_code}: {body[:200]}")


# Unsupported / unknown


class UnsupportedError(PodClientError):
    pass


class UnsupportedFaultDomainSource(UnsupportedError):
    pass


class UnknownFile(UnsupportedError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown file {name}")


# Configuration


class ConfigurationError(PodClientError):
    pass


class MissingTLSMaterial(ConfigurationError):
    pass
