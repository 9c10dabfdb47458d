"""Connection sources: a borrowed handle, or a manager plus a driver to lease from it."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from connscope.errors import PreconditionError

logger = logging.getLogger(__name__)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(frozen=True)
class ConnectionSource:
    """Where a scope gets its connection from.

    Exactly one of ``connection`` (borrowed) or ``manager`` (leased through
    ``driver``) must be given. ``meta`` is passed through untouched.
    """

    connection: Any = None
    manager: Any = None
    driver: Any = None
    meta: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.connection is None and self.manager is None:
            raise PreconditionError("Either a connection or a manager must be provided")
        if self.connection is not None and self.manager is not None:
            raise PreconditionError("Provide a connection or a manager, not both")
        if self.manager is not None:
            if self.driver is None:
                raise PreconditionError("A driver is required to acquire from a manager")
            missing = [
                name for name in ("acquire", "release")
                if not callable(getattr(self.driver, name, None))
            ]
            if missing:
                raise PreconditionError(
                    f"Driver {type(self.driver).__name__} is missing callable: {', '.join(missing)}"
                )
        if self.meta is not None and not isinstance(self.meta, Mapping):
            raise PreconditionError(f"meta must be a mapping, got {type(self.meta).__name__}")

    @property
    def borrowed(self) -> bool:
        """True when the caller owns the connection and its release."""
        return self.connection is not None

    async def acquire(self) -> Any:
        """Return the borrowed connection, or lease a new one from the driver."""
        if self.borrowed:
            return self.connection
        logger.debug("Acquiring ad hoc connection from %r", self.manager)
        connection = await _maybe_await(self.driver.acquire(self.manager, self.meta))
        logger.debug("Acquired ad hoc connection %r", connection)
        return connection

    async def release(self, connection: Any) -> None:
        """Hand a leased connection back to the driver."""
        logger.debug("Releasing ad hoc connection %r", connection)
        await _maybe_await(self.driver.release(connection, self.meta))
