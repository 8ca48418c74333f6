"""
MySQL connector over the aiomysql driver.

aiomysql uses ``format`` paramstyle and always %-interpolates the statement
when parameters are passed, so ``?`` placeholders become ``%s`` and any
literal ``%`` (LIKE patterns in caller-supplied where text) is doubled.
"""

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import create_async_engine

from ..config import StoreKind
from .base import Connector

_QUOTES = ("'", '"', "`")


def to_format_paramstyle(sql: str) -> str:
    """
    Translate qmark placeholders to format paramstyle, skipping quoted literals.

    Inside '...' and "..." a backslash escapes the next character, as MySQL
    does by default.
    """
    out = []
    quote = None
    escaped = False
    for ch in sql:
        if ch == "%":
            out.append("%%")
            escaped = False
            continue
        if escaped:
            escaped = False
            out.append(ch)
        elif quote:
            if ch == "\\" and quote != "`":
                escaped = True
            elif ch == quote:
                # a doubled quote re-enters the literal on the next char
                quote = None
            out.append(ch)
        elif ch in _QUOTES:
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append("%s")
        else:
            out.append(ch)
    return "".join(out)


class MySQLConnector(Connector):
    """MySQL / MariaDB via mysql+aiomysql."""

    kind = StoreKind.MYSQL

    PK_DDL = "id INTEGER AUTO_INCREMENT PRIMARY KEY"
    KEY_TEXT_TYPE = "VARCHAR(255)"

    def __init__(self, *, host="localhost", port=3306, user=None, password=None,
                 database=None, pool_size=10, max_overflow=20):
        if not database:
            raise ValueError("MySQLConnector requires 'database'")
        self.host = host
        self.database = database
        url = URL.create(
            "mysql+aiomysql",
            username=user,
            password=password,
            host=host,
            port=int(port) if port else None,
            database=database,
        )
        super().__init__(create_async_engine(
            url,
            pool_pre_ping=True,
            pool_size=pool_size,
            max_overflow=max_overflow,
        ))

    def to_native(self, sql: str) -> str:
        return to_format_paramstyle(sql)

    def __repr__(self):
        return f"<MySQLConnector {self.host}/{self.database}>"
