"""Outcome values and the one-shot completion signal handed to work functions."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from connscope.errors import WorkError

logger = logging.getLogger(__name__)


class WorkStyle(str, Enum):
    """How a work function reports its outcome.

    CALLBACK: ``work(handle, signal)`` calls ``signal(error)`` or
    ``signal(None, value)`` exactly once. An awaitable return value is
    watched only for rejection.

    COROUTINE: ``work(handle)`` returns the value, or an awaitable that
    resolves to it. Raising or rejecting is a failure.
    """

    CALLBACK = "callback"
    COROUTINE = "coroutine"


@dataclass(frozen=True)
class Outcome:
    """A settled result: either a value or an error, never both."""

    value: Any = None
    error: BaseException | None = None

    @classmethod
    def success(cls, value: Any = None) -> Outcome:
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> Outcome:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, or raise the error."""
        if self.error is not None:
            raise self.error
        return self.value


class CompletionSignal:
    """One-shot latch in front of a future.

    The first settlement wins. Later ones are counted; the first of them
    is logged as a warning, the rest are dropped silently.
    """

    def __init__(self, future: asyncio.Future):
        self._future = future
        self.extra_calls = 0

    def __call__(self, error: Any = None, result: Any = None) -> None:
        """Settle from callback arguments.

        Exceptions are failures. Any other falsy ``error`` (None, False, 0,
        "") means success with ``result``. Other truthy values become a
        ``WorkError``.
        """
        if isinstance(error, BaseException):
            self.settle(Outcome.failure(error))
        elif not error:
            self.settle(Outcome.success(result))
        else:
            self.settle(Outcome.failure(WorkError(error)))

    @property
    def settled(self) -> bool:
        return self._future.done()

    def settle(self, outcome: Outcome) -> bool:
        """Record ``outcome`` if nothing has been recorded yet.

        Returns True if this call settled the latch.
        """
        if not self._future.done():
            self._future.set_result(outcome)
            return True

        self.extra_calls += 1
        if self.extra_calls == 1:
            logger.warning(
                "The work function signalled completion again after already "
                "signalling once. Check the work function's code to find out why "
                "this is happening. Ignoring this subsequent %s.",
                "success" if outcome.ok else f"error ({outcome.error!r})",
            )
        return False
