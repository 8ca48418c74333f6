"""
API-key persistence.

The key store lives either in a private SQLite file owned by the gateway or
in the caller's own store (shared connection when it is the main database).
Either way the table is created on demand and lookups are never cached, so a
deactivated key stops matching on the very next request.
"""

import asyncio
import logging
import secrets
from typing import Iterable, Optional, Union

from .config import API_KEYS_TABLE, GatewayConfig
from .db import Connector, SQLiteConnector, connect
from .errors import KeyRevivalDenied
from .schemas.apikey import ApiKeyRecord

log = logging.getLogger("crudgate")


def key_prefix(api_key: str) -> str:
    """Loggable form of a key."""
    return f"{api_key[:6]}…" if api_key else ""


class KeyStore:
    def __init__(self, connector: Connector, *, owns_connector: bool = False,
                 revivable: bool = False, eager_schema: bool = False, table: str = API_KEYS_TABLE):
        self.connector = connector
        self.owns_connector = owns_connector
        self.revivable = revivable
        self.eager_schema = eager_schema
        self.table = table
        self._initialized = False
        self._init_lock = asyncio.Lock()

    def ddl(self) -> str:
        c = self.connector
        return (
            f"CREATE TABLE IF NOT EXISTS {self.table} ("
            f"{c.PK_DDL}, "
            f"api_key {c.KEY_TEXT_TYPE} UNIQUE NOT NULL, "
            f"scopes {c.KEY_TEXT_TYPE} NOT NULL, "
            f"active BOOLEAN DEFAULT TRUE)"
        )

    async def ensure_schema(self) -> None:
        """Create the key table if missing. Safe to call repeatedly."""
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            await self.connector.execute(self.ddl())
            log.info("KEYS: ensured table %s on %r", self.table, self.connector)
            self._initialized = True

    async def find_active_key(self, api_key: str) -> Optional[ApiKeyRecord]:
        await self.ensure_schema()
        rows = await self.connector.execute(
            f"SELECT id, api_key, scopes, active FROM {self.table} WHERE api_key = ? AND active = 1 LIMIT 1",
            [api_key],
        )
        if not rows:
            return None
        return ApiKeyRecord(**rows[0])

    async def create_key(self, scopes: Union[str, Iterable[str]]) -> ApiKeyRecord:
        """Mint and persist a new active key."""
        await self.ensure_schema()
        if not isinstance(scopes, str):
            scopes = ",".join(scopes)
        api_key = secrets.token_hex(32)
        result = await self.connector.execute(
            f"INSERT INTO {self.table} (api_key, scopes, active) VALUES (?, ?, ?)",
            [api_key, scopes, True],
        )
        log.info("KEYS: issued key=%s scopes=%s", key_prefix(api_key), scopes)
        return ApiKeyRecord(id=result.insert_id, api_key=api_key, scopes=scopes, active=True)

    async def set_active(self, api_key: str, active: bool) -> bool:
        """
        Flip a key's active flag. Returns True if a row changed.

        Re-activation is refused unless the store was built revivable.
        """
        if active and not self.revivable:
            raise KeyRevivalDenied("API keys are configured as non-revivable")
        await self.ensure_schema()
        result = await self.connector.execute(
            f"UPDATE {self.table} SET active = ? WHERE api_key = ?",
            [active, api_key],
        )
        log.info("KEYS: key=%s active=%s changed=%s", key_prefix(api_key), active, result.affected_count)
        return result.affected_count > 0

    async def close(self) -> None:
        if self.owns_connector:
            await self.connector.close()


def build_keystore(config: GatewayConfig, main: Connector) -> KeyStore:
    """
    Build the key store selected by config.api_keys.

    The private store creates its schema lazily on first lookup; a store in
    the caller's database is expected to be created eagerly at startup
    (see ``eager_schema``).
    """
    keys_cfg = config.api_keys
    if keys_cfg.use_app_db:
        log.info("KEYS: using private key store at %s", keys_cfg.app_db_path)
        return KeyStore(SQLiteConnector(filename=keys_cfg.app_db_path),
                        owns_connector=True, revivable=config.keys_revivable)

    db_config = keys_cfg.db_config or config.database
    if db_config == config.database:
        return KeyStore(main, owns_connector=False, revivable=config.keys_revivable, eager_schema=True)
    return KeyStore(connect(db_config), owns_connector=True,
                    revivable=config.keys_revivable, eager_schema=True)
