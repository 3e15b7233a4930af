"""Error taxonomy for hubwatch.

Registry and runtime errors are recoverable: the orchestrator catches them at
the per-service boundary and turns them into reported outcomes. Unknown
service names and missing external tools abort the whole invocation.
"""

from __future__ import annotations

from collections.abc import Iterable


class HubwatchError(Exception):
    """Base exception for hubwatch errors."""


class RegistryError(HubwatchError):
    """Base class for registry lookup failures."""


class RegistryNetworkError(RegistryError):
    """Registry unreachable, timed out, or answered with a transient status."""


class RegistryParseError(RegistryError):
    """Registry response did not have the expected shape or digest."""


class RuntimeCommandError(HubwatchError):
    """A container runtime command failed."""


class PullError(RuntimeCommandError):
    """Pulling an image failed."""


class RestartError(RuntimeCommandError):
    """Restarting a compose service failed."""


class UnknownServiceError(HubwatchError):
    """The requested service name is not in the tracked set."""

    def __init__(self, service_name: str, available: Iterable[str] = ()) -> None:
        self.service_name = service_name
        self.available = list(available)
        super().__init__(f"Service '{service_name}' not found")


class MissingDependencyError(HubwatchError):
    """A required external tool is absent."""

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing dependencies: {' '.join(self.missing)}")
