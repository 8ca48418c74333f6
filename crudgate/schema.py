"""
Live-schema validation of interpolated identifiers.

Table names, the ``key`` column and write-body columns are spliced into SQL
text. When enabled, each one must name a real table/column in the store.
"""

import logging
from typing import Iterable

from .db import Connector
from .errors import UnknownIdentifier

log = logging.getLogger("crudgate")


class SchemaGuard:
    def __init__(self, connector: Connector, enabled: bool = True):
        self.connector = connector
        self.enabled = enabled

    async def check_table(self, table: str) -> None:
        if not self.enabled:
            return
        if table not in await self.connector.table_names():
            log.warning("SCHEMA: unknown table %r", table)
            raise UnknownIdentifier(f"Unknown table '{table}'")

    async def check_columns(self, table: str, columns: Iterable[str]) -> None:
        """Check the table, then every column against it."""
        if not self.enabled:
            return
        await self.check_table(table)
        known = set(await self.connector.column_names(table))
        unknown = [c for c in columns if c not in known]
        if unknown:
            log.warning("SCHEMA: unknown columns %s on %r", unknown, table)
            raise UnknownIdentifier(f"Unknown column(s) on '{table}'", details={"columns": unknown})
