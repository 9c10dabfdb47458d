"""Run a unit of work against exactly one connection.

If the caller passes in a connection, the work runs with it and the caller
keeps ownership. Otherwise a connection is leased from the manager through
the driver for the duration of the work and released afterwards, whatever
the work's outcome. Failures from the work and from the release are merged
into a single result:

    work ok,     release ok     -> the work's value
    work failed, release ok     -> the work's error
    work failed, release failed -> CompositeError(primary=work, secondary=release)
    work ok,     release failed -> ReleaseError (the value is not delivered)

Acquisition failures are delivered unchanged and nothing is released.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from collections.abc import Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from connscope.errors import CompositeError, PreconditionError, ReleaseError, ScopeError
from connscope.outcome import CompletionSignal, Outcome, WorkStyle
from connscope.source import ConnectionSource

logger = logging.getLogger(__name__)

# Strong references to watched work awaitables until they finish.
_background_tasks: set[asyncio.Future] = set()


async def release_and_compose(source: ConnectionSource, connection: Any, outcome: Outcome) -> Outcome:
    """Release a leased connection and fold any release failure into ``outcome``."""
    try:
        await source.release(connection)
    except Exception as release_error:
        if outcome.ok:
            logger.debug("Release failed after successful work: %r", release_error)
            return Outcome.failure(ReleaseError(release_error, discarded_result=outcome.value))
        logger.debug("Release failed after failed work: %r", release_error)
        return Outcome.failure(CompositeError(outcome.error, release_error))
    return outcome


async def _release_on_abort(source: ConnectionSource, connection: Any) -> None:
    """Release a leased connection while a BaseException is propagating."""
    try:
        await source.release(connection)
    except Exception:
        logger.warning(
            "Releasing ad hoc connection %r after an aborted exit failed", connection, exc_info=True
        )


class ConnectionScope:
    """A single guarded execution of ``work`` against one connection.

    Instances are single use: build one per call, then ``await run()``
    (value or raise) or ``await settle()`` (an ``Outcome``).
    """

    def __init__(
        self,
        work: Callable[..., Any],
        *,
        connection: Any = None,
        manager: Any = None,
        driver: Any = None,
        meta: Mapping[str, Any] | None = None,
        style: WorkStyle | str = WorkStyle.CALLBACK,
    ):
        if not callable(work):
            raise PreconditionError(f"work must be callable, got {type(work).__name__}")
        try:
            self.style = WorkStyle(style)
        except ValueError:
            raise PreconditionError(f"Unknown work style: {style!r}") from None
        self.work = work
        self.source = ConnectionSource(connection=connection, manager=manager, driver=driver, meta=meta)
        self.signal: CompletionSignal | None = None
        self._started = False

    async def settle(self) -> Outcome:
        """Acquire-or-reuse, run the work once, release if leased."""
        if self._started:
            raise ScopeError("ConnectionScope instances are single use")
        self._started = True

        try:
            connection = await self.source.acquire()
        except Exception as exc:
            logger.debug("Could not acquire a connection: %r", exc)
            return Outcome.failure(exc)

        try:
            outcome = await self._call_work(connection)
        except BaseException:
            if not self.source.borrowed:
                await _release_on_abort(self.source, connection)
            raise

        if self.source.borrowed:
            return outcome
        return await release_and_compose(self.source, connection, outcome)

    async def run(self) -> Any:
        """Return the work's value, or raise the scope's error."""
        return (await self.settle()).unwrap()

    async def _call_work(self, connection: Any) -> Outcome:
        settled = asyncio.get_running_loop().create_future()
        signal = self.signal = CompletionSignal(settled)

        try:
            if self.style is WorkStyle.CALLBACK:
                returned = self.work(connection, signal)
            else:
                returned = self.work(connection)
        except Exception as exc:
            signal.settle(Outcome.failure(exc))
        else:
            if inspect.isawaitable(returned):
                self._watch(returned, signal)
            elif self.style is WorkStyle.COROUTINE:
                signal.settle(Outcome.success(returned))

        return await settled

    def _watch(self, awaitable: Any, signal: CompletionSignal) -> None:
        task = asyncio.ensure_future(awaitable)
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)
        task.add_done_callback(functools.partial(self._on_work_done, signal))

    def _on_work_done(self, signal: CompletionSignal, task: asyncio.Future) -> None:
        if task.cancelled():
            signal.settle(Outcome.failure(asyncio.CancelledError()))
            return
        exc = task.exception()
        if exc is not None:
            signal.settle(Outcome.failure(exc))
        elif self.style is WorkStyle.COROUTINE:
            signal.settle(Outcome.success(task.result()))
        # CALLBACK style: the value travels through the signal.


async def do_with_connection(
    work: Callable[..., Any],
    *,
    connection: Any = None,
    manager: Any = None,
    driver: Any = None,
    meta: Mapping[str, Any] | None = None,
    style: WorkStyle | str = WorkStyle.CALLBACK,
) -> Any:
    """Run ``work`` with a borrowed or ad hoc connection and return its value."""
    scope = ConnectionScope(
        work, connection=connection, manager=manager, driver=driver, meta=meta, style=style
    )
    return await scope.run()


@asynccontextmanager
async def scoped_connection(
    *,
    connection: Any = None,
    manager: Any = None,
    driver: Any = None,
    meta: Mapping[str, Any] | None = None,
) -> AsyncIterator[Any]:
    """Yield a borrowed or ad hoc connection for the body of an ``async with``.

    An ad hoc connection is released on exit. Errors compose the same way
    as in ``ConnectionScope``.
    """
    source = ConnectionSource(connection=connection, manager=manager, driver=driver, meta=meta)
    handle = await source.acquire()

    if source.borrowed:
        yield handle
        return

    try:
        yield handle
    except Exception as exc:
        final = await release_and_compose(source, handle, Outcome.failure(exc))
        if final.error is exc:
            raise
        raise final.error from exc
    except BaseException:
        await _release_on_abort(source, handle)
        raise

    (await release_and_compose(source, handle, Outcome.success())).unwrap()
