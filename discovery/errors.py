"""Error taxonomy shared by the registry client and the discovery resolvers."""
from __future__ import annotations


class DiscoveryError(Exception):
    """Base class for registry and discovery failures."""


class RegistrationError(DiscoveryError):
    """The registry was unreachable or rejected the registration payload."""


class ResolutionError(DiscoveryError):
    """A logical service name could not be turned into a base address."""

    def __init__(self, service_name: str, reason: str):
        super().__init__(f"{service_name}: {reason}")
        self.service_name = service_name
        self.reason = reason


class UnknownServiceError(ResolutionError):
    """No mapping, or no healthy instance, exists for the service name."""

    def __init__(self, service_name: str, reason: str = "unknown service"):
        super().__init__(service_name, reason)


class DependencyUnavailableError(ResolutionError):
    """The registry could not be queried (timeout, transport error, bad reply)."""
