"""Connection driver interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class ConnectionDriver(ABC):
    """Abstract base class for connection drivers.

    A driver knows how to lease a connection from a manager and how to
    hand it back. Scopes never talk to the database themselves.
    """

    @abstractmethod
    async def acquire(self, manager: Any, meta: Mapping[str, Any] | None) -> Any:
        """Lease a new connection from ``manager``.

        Raises on failure. Drivers may wrap their own errors in
        ``AcquisitionError``.
        """

    @abstractmethod
    async def release(self, connection: Any, meta: Mapping[str, Any] | None) -> None:
        """Return ``connection`` to wherever it came from. Raises on failure."""
