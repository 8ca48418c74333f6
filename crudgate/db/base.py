"""
Abstract storage connector.

Every connector implements the same surface:

    execute(sql, params)  → list[dict] | WriteResult
    table_names()         → list[str]
    column_names(table)   → list[str]
    ping()                → bool
    close()

SQL handed to execute() always uses ``?`` positional placeholders. Each
backend translates to its driver's native paramstyle, so callers never
branch on backend kind.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Union

from sqlalchemy import inspect, text
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from ..config import StoreKind

log = logging.getLogger("crudgate")


class WriteResult(NamedTuple):
    affected_count: int
    insert_id: Optional[int]


Rows = List[Dict[str, Any]]
ExecuteResult = Union[Rows, WriteResult]


class Connector(ABC):
    """
    Uniform query execution over one physical store.

    Subclasses provide the engine and the dialect bits that differ:
    paramstyle translation and the DDL fragments the key store needs.
    """

    kind: StoreKind

    # DDL fragments for the key-store table
    PK_DDL = "id INTEGER PRIMARY KEY"
    KEY_TEXT_TYPE = "TEXT"

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    # ── Dialect ───────────────────────────────────────────────

    @abstractmethod
    def to_native(self, sql: str) -> str:
        """Rewrite ``?`` placeholders into the driver's paramstyle."""
        ...

    # ── Interface ─────────────────────────────────────────────

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> ExecuteResult:
        """
        Execute one statement in its own transaction.

        Statements that return rows give a list of dicts; everything else
        gives a WriteResult with the affected row count and the
        backend-assigned insert id (None when the statement assigns none).
        """
        statement = self.to_native(sql)
        async with self.engine.begin() as conn:
            result = await conn.exec_driver_sql(statement, tuple(params))
            if result.returns_rows:
                return [dict(row) for row in result.mappings().all()]
            return WriteResult(result.rowcount, result.lastrowid or None)

    async def table_names(self) -> List[str]:
        async with self.engine.connect() as conn:
            return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())

    async def column_names(self, table: str) -> List[str]:
        def _columns(sync_conn):
            try:
                return [c["name"] for c in inspect(sync_conn).get_columns(table)]
            except NoSuchTableError:
                return []

        async with self.engine.connect() as conn:
            return await conn.run_sync(_columns)

    async def ping(self) -> bool:
        """Test connectivity. Must not raise."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            log.warning("DB: ping failed for %r: %s", self, e)
            return False

    async def close(self) -> None:
        await self.engine.dispose()

    def __repr__(self):
        return f"<{self.__class__.__name__}>"
