"""SQLite driver: leases connections with WAL mode and returns them closed."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from connscope.config import ScopeConfig
from connscope.driver import ConnectionDriver
from connscope.errors import AcquisitionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SqliteManager:
    """Names a SQLite database to lease connections from."""

    database_path: str
    read_only: bool = False


class SqliteDriver(ConnectionDriver):
    """Open one ``sqlite3`` connection per lease.

    Read/write leases switch the file to WAL and enable foreign keys.
    Read-only leases use URI mode and the query_only pragma, and leave the
    journal mode as they find it. Connections are opened and closed on worker
    threads, so they are created with ``check_same_thread=False``.
    """

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config: ScopeConfig) -> SqliteDriver:
        return cls(timeout_seconds=config.sqlite_timeout_seconds)

    async def acquire(self, manager: SqliteManager, meta: Mapping[str, Any] | None) -> sqlite3.Connection:
        try:
            return await asyncio.to_thread(self._connect, manager)
        except sqlite3.Error as exc:
            raise AcquisitionError(
                f"Could not open SQLite database {manager.database_path!r}: {exc}"
            ) from exc

    async def release(self, connection: sqlite3.Connection, meta: Mapping[str, Any] | None) -> None:
        await asyncio.to_thread(self._close, connection)

    def _connect(self, manager: SqliteManager) -> sqlite3.Connection:
        if manager.read_only:
            conn = sqlite3.connect(
                f"file:{manager.database_path}?mode=ro",
                uri=True,
                timeout=self.timeout_seconds,
                check_same_thread=False,
            )
        else:
            conn = sqlite3.connect(
                manager.database_path,
                timeout=self.timeout_seconds,
                check_same_thread=False,
            )
        try:
            if manager.read_only:
                # A read-only connection cannot change the journal mode.
                conn.execute("PRAGMA query_only=ON")
            else:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA foreign_keys=ON")
        except BaseException:
            conn.close()
            raise
        conn.row_factory = sqlite3.Row
        logger.debug("Opened SQLite connection to %s (read_only=%s)", manager.database_path, manager.read_only)
        return conn

    def _close(self, conn: sqlite3.Connection) -> None:
        # Uncommitted work is discarded.
        try:
            if conn.in_transaction:
                conn.rollback()
        finally:
            conn.close()
