"""Shared fixtures for connscope tests."""

from __future__ import annotations

import pytest


class FakeDriver:
    """Driver double that records every acquire and release."""

    def __init__(self, *, acquire_error=None, release_error=None):
        self.acquire_error = acquire_error
        self.release_error = release_error
        self.acquired = []
        self.released = []
        self._next_id = 0

    async def acquire(self, manager, meta):
        self.acquired.append((manager, meta))
        if self.acquire_error is not None:
            raise self.acquire_error
        self._next_id += 1
        return f"conn-{self._next_id}"

    async def release(self, connection, meta):
        self.released.append((connection, meta))
        if self.release_error is not None:
            raise self.release_error


@pytest.fixture()
def driver():
    return FakeDriver()


@pytest.fixture()
def make_driver():
    return FakeDriver
