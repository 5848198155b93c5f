"""Handle -> service lookup used for cross-component calls."""

from __future__ import annotations

from typing import Dict, List

from .exceptions import ConfigurationError
from .interfaces import WhitelistReader


class ServiceDirectory:
    """
    Maps service handles to live instances.

    The proof gate stores only a handle and resolves it here on every call,
    so repointing the gate or swapping in a mock whitelist needs no rewiring.
    """

    def __init__(self) -> None:
        self._services: Dict[str, WhitelistReader] = {}

    def register(self, handle: str, service: WhitelistReader) -> None:
        if not isinstance(handle, str) or not handle:
            raise ValueError("handle must be a non-empty str")
        if not callable(getattr(service, "is_whitelisted", None)):
            raise TypeError("service must provide is_whitelisted(issuer)")
        self._services[handle] = service

    def unregister(self, handle: str) -> None:
        self._services.pop(handle, None)

    def resolve(self, handle: str) -> WhitelistReader:
        try:
            return self._services[handle]
        except KeyError:
            raise ConfigurationError(f"No service registered for handle {handle!r}") from None

    def handles(self) -> List[str]:
        return sorted(self._services)

    def __contains__(self, handle: object) -> bool:
        return handle in self._services
