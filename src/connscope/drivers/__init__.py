"""Concrete connection drivers."""

from connscope.drivers.sqlite import SqliteDriver, SqliteManager

__all__ = ["SqliteDriver", "SqliteManager"]
