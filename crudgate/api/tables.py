"""
Generic CRUD routes for any table in the main store.

Every route runs: Auth Gate → Scope Gate → deny-list → schema check →
query builder → connector. Connector and gates are injected when the router
is built; nothing here reads process-wide state.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.exc import SQLAlchemyError

from ..auth.deps import KeyGates
from ..auth.scopes import has_scope
from ..config import GatewayConfig
from ..db import Connector
from ..errors import AuthzInsufficientScope, QueryFailure
from ..identifiers import resolve_identifier
from ..query_builder import Query, QueryBuilder, parse_count
from ..schema import SchemaGuard
from ..schemas.apikey import ApiKeyRecord

log = logging.getLogger("crudgate")


def build_table_router(connector: Connector, gates: KeyGates, config: GatewayConfig) -> APIRouter:
    router = APIRouter()
    builder = QueryBuilder([*config.protected_tables, gates.keystore.table], config.protected_status_code)
    guard = SchemaGuard(connector, enabled=config.validate_identifiers)

    can_read = gates.require_scope("read")
    can_write = gates.require_scope("write")
    can_delete = gates.require_scope("delete")

    async def run(query: Query, failure: str):
        try:
            return await connector.execute(query.sql, query.params)
        except SQLAlchemyError as e:
            reason = str(getattr(e, "orig", None) or e)
            log.error("QUERY: %s: %s", failure, reason, extra={"sql": query.sql})
            raise QueryFailure(failure, details=reason)

    @router.get("/{table}")
    async def list_rows(
        table: str,
        where: Optional[str] = None,
        order: Optional[str] = None,
        limit: Optional[str] = None,
        offset: Optional[str] = None,
        caller: ApiKeyRecord = Depends(can_read),
    ):
        """Fetch a table, optionally filtered, ordered and paginated."""
        builder.check_table(table)
        raw_scope = config.raw_filter_scope
        if (where or order) and raw_scope and not has_scope(caller.scope_set, raw_scope):
            log.warning("AUTH: raw where/order refused on %r without %r scope", table, raw_scope)
            raise AuthzInsufficientScope(details={"required": [raw_scope]})
        await guard.check_table(table)

        query = builder.select_collection(
            table, where=where, order=order,
            limit=parse_count("limit", limit), offset=parse_count("offset", offset),
        )
        return await run(query, "Database query failed")

    @router.get("/{table}/{ident}", dependencies=[Depends(can_read)])
    async def get_row(table: str, ident: str, key: Optional[str] = None):
        """Fetch rows matching one identifier (guid, ?key= column, or id)."""
        builder.check_table(table)
        match = resolve_identifier(ident, key)
        await guard.check_columns(table, [match.column])
        return await run(builder.select_one(table, match), "Database query failed")

    @router.post("/{table}", dependencies=[Depends(can_write)])
    async def insert_row(table: str, data: Dict[str, Any] = Body(...)):
        builder.check_table(table)
        await guard.check_columns(table, data.keys())
        result = await run(builder.insert(table, data), "Insert operation failed")
        return {"message": "Item inserted successfully", "id": result.insert_id}

    @router.put("/{table}/{ident}", dependencies=[Depends(can_write)])
    async def update_row(table: str, ident: str, data: Dict[str, Any] = Body(...), key: Optional[str] = None):
        builder.check_table(table)
        match = resolve_identifier(ident, key)
        await guard.check_columns(table, [*data.keys(), match.column])
        result = await run(builder.update(table, data, match), "Update operation failed")
        return {"message": "Item updated successfully", "changes": result.affected_count}

    @router.delete("/{table}/{ident}", dependencies=[Depends(can_delete)])
    async def delete_row(table: str, ident: str, key: Optional[str] = None):
        builder.check_table(table)
        match = resolve_identifier(ident, key)
        await guard.check_columns(table, [match.column])
        result = await run(builder.delete(table, match), "Delete operation failed")
        return {"message": "Item deleted successfully", "changes": result.affected_count}

    return router
