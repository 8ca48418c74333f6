"""
Parameterized SQL per HTTP verb.

Values (write bodies, identifiers, limit/offset) are always bound. Table and
column names and caller-supplied where/order text are interpolated; the
route layer is responsible for validating or gating them before they get here.
"""

from typing import Any, Iterable, List, Mapping, NamedTuple, Optional

from .errors import AuthzProtectedResource, InvalidRequest
from .identifiers import IdentifierFilter


class Query(NamedTuple):
    sql: str
    params: List[Any]


def parse_count(name: str, raw: Optional[str]) -> Optional[int]:
    """Parse a limit/offset query value; None or empty means absent."""
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise InvalidRequest(f"'{name}' must be an integer", details={name: raw})
    if value < 0:
        raise InvalidRequest(f"'{name}' must not be negative", details={name: raw})
    return value


_QUOTE_CHARS = "\"'`[]"


def table_key(table: str) -> str:
    """
    Comparable form of a table name: unquoted, unqualified, lower-cased.

    SQLite, and MySQL with lower_case_table_names, resolve ``API_KEYS``,
    a quoted ``"api_keys"`` and ``main.api_keys`` to the same table.
    """
    name = "".join(ch for ch in table if ch not in _QUOTE_CHARS and not ch.isspace())
    return name.rsplit(".", 1)[-1].lower()


class QueryBuilder:
    """Builds Query objects, refusing deny-listed tables before any SQL exists."""

    def __init__(self, protected_tables: Iterable[str] = ("api_keys",), protected_status_code: int = 403):
        self.protected_tables = frozenset(table_key(t) for t in protected_tables)
        self.protected_status_code = protected_status_code

    def is_protected(self, table: str) -> bool:
        return table_key(table) in self.protected_tables

    def check_table(self, table: str) -> None:
        if self.is_protected(table):
            raise AuthzProtectedResource(status_code=self.protected_status_code)

    def select_collection(self, table: str, where: Optional[str] = None, order: Optional[str] = None,
                          limit: Optional[int] = None, offset: Optional[int] = None) -> Query:
        self.check_table(table)
        sql = f"SELECT * FROM {table}"
        params: List[Any] = []

        if where:
            sql += " WHERE " + where
        if order:
            sql += " ORDER BY " + order

        if offset is not None and limit is None:
            # neither SQLite nor MySQL accept OFFSET without LIMIT
            raise InvalidRequest("'offset' requires 'limit'")
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        if offset is not None:
            sql += " OFFSET ?"
            params.append(offset)
        return Query(sql, params)

    def select_one(self, table: str, ident: IdentifierFilter) -> Query:
        self.check_table(table)
        return Query(f"SELECT * FROM {table} WHERE {ident.column} = ?", [ident.value])

    def insert(self, table: str, data: Mapping[str, Any]) -> Query:
        self.check_table(table)
        if not data:
            raise InvalidRequest("Request body must be a non-empty JSON object")
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" for _ in data)
        return Query(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", list(data.values()))

    def update(self, table: str, data: Mapping[str, Any], ident: IdentifierFilter) -> Query:
        self.check_table(table)
        if not data:
            raise InvalidRequest("Request body must be a non-empty JSON object")
        set_clause = ", ".join(f"{column} = ?" for column in data.keys())
        return Query(
            f"UPDATE {table} SET {set_clause} WHERE {ident.column} = ?",
            [*data.values(), ident.value],
        )

    def delete(self, table: str, ident: IdentifierFilter) -> Query:
        self.check_table(table)
        return Query(f"DELETE FROM {table} WHERE {ident.column} = ?", [ident.value])
