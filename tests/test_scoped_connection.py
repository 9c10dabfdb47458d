"""Tests for connscope.scope.scoped_connection — the async context manager form."""

from __future__ import annotations

import asyncio

import pytest

from connscope.errors import CompositeError, PreconditionError, ReleaseError
from connscope.scope import scoped_connection


@pytest.mark.asyncio
async def test_borrowed_connection_is_yielded_and_not_released(driver):
    async with scoped_connection(connection="borrowed", driver=driver) as conn:
        assert conn == "borrowed"
    assert driver.acquired == []
    assert driver.released == []


@pytest.mark.asyncio
async def test_borrowed_connection_body_error_propagates(driver):
    with pytest.raises(KeyError):
        async with scoped_connection(connection="borrowed", driver=driver):
            raise KeyError("missing")
    assert driver.acquired == []
    assert driver.released == []


@pytest.mark.asyncio
async def test_ad_hoc_connection_is_released_on_clean_exit(driver):
    async with scoped_connection(manager="db", driver=driver, meta={"a": 1}) as conn:
        assert conn == "conn-1"
    assert driver.released == [("conn-1", {"a": 1})]


@pytest.mark.asyncio
async def test_ad_hoc_body_error_is_reraised_after_release(driver):
    boom = RuntimeError("boom")
    with pytest.raises(RuntimeError) as exc_info:
        async with scoped_connection(manager="db", driver=driver):
            raise boom
    assert exc_info.value is boom
    assert len(driver.released) == 1


@pytest.mark.asyncio
async def test_ad_hoc_body_error_and_release_error_compose(make_driver):
    driver = make_driver(release_error=ConnectionError("disconnect"))
    boom = RuntimeError("boom")
    with pytest.raises(CompositeError) as exc_info:
        async with scoped_connection(manager="db", driver=driver):
            raise boom
    assert exc_info.value.primary is boom
    assert isinstance(exc_info.value.secondary, ConnectionError)


@pytest.mark.asyncio
async def test_ad_hoc_clean_body_and_release_error(make_driver):
    driver = make_driver(release_error=ConnectionError("disconnect"))
    with pytest.raises(ReleaseError, match="disconnect"):
        async with scoped_connection(manager="db", driver=driver):
            pass


@pytest.mark.asyncio
async def test_acquisition_failure_skips_body_and_release(make_driver):
    driver = make_driver(acquire_error=OSError("no-conn"))
    entered = False
    with pytest.raises(OSError, match="no-conn"):
        async with scoped_connection(manager="db", driver=driver):
            entered = True
    assert not entered
    assert driver.released == []


@pytest.mark.asyncio
async def test_manager_without_driver_is_a_precondition_error():
    with pytest.raises(PreconditionError, match="driver is required"):
        async with scoped_connection(manager="db"):
            pass


# --- Cancellation ---


@pytest.mark.asyncio
async def test_cancelled_body_releases_ad_hoc_connection(driver):
    entered = asyncio.Event()

    async def hold_connection():
        async with scoped_connection(manager="db", driver=driver):
            entered.set()
            await asyncio.sleep(10)

    task = asyncio.create_task(hold_connection())
    await entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert driver.acquired == [("db", None)]
    assert driver.released == [("conn-1", None)]


@pytest.mark.asyncio
async def test_cancelled_body_with_failing_release_still_cancels(make_driver, caplog):
    driver = make_driver(release_error=ConnectionError("disconnect"))
    entered = asyncio.Event()

    async def hold_connection():
        async with scoped_connection(manager="db", driver=driver):
            entered.set()
            await asyncio.sleep(10)

    task = asyncio.create_task(hold_connection())
    await entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(driver.released) == 1
    assert any("aborted exit failed" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_cancelled_body_with_borrowed_connection_is_not_released(driver):
    entered = asyncio.Event()

    async def hold_connection():
        async with scoped_connection(connection="borrowed", driver=driver):
            entered.set()
            await asyncio.sleep(10)

    task = asyncio.create_task(hold_connection())
    await entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert driver.released == []
