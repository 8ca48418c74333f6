"""
SQLite connector over the aiosqlite driver.

The driver speaks qmark paramstyle natively, so SQL passes through as-is.
"""

import os

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from ..config import StoreKind
from .base import Connector


class SQLiteConnector(Connector):
    """SQLite via sqlite+aiosqlite."""

    kind = StoreKind.SQLITE

    PK_DDL = "id INTEGER PRIMARY KEY AUTOINCREMENT"
    KEY_TEXT_TYPE = "TEXT"

    def __init__(self, *, filename):
        if not filename:
            raise ValueError("SQLiteConnector requires 'filename'")
        self.filename = filename if filename == ":memory:" else os.path.expanduser(filename)

        kwargs = {"connect_args": {"check_same_thread": False}}
        if self.filename == ":memory:":
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        super().__init__(create_async_engine(f"sqlite+aiosqlite:///{self.filename}", **kwargs))

    def to_native(self, sql: str) -> str:
        return sql

    def __repr__(self):
        return f"<SQLiteConnector {self.filename}>"
