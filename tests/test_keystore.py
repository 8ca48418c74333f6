"""
Tests for API key persistence
"""
import asyncio
import sqlite3

import pytest

from crudgate.config import ApiKeysConfig, DatabaseConfig, GatewayConfig
from crudgate.db import SQLiteConnector
from crudgate.errors import KeyRevivalDenied
from crudgate.keystore import KeyStore, build_keystore


def run(coro):
    return asyncio.run(coro)


def test_private_store_creates_schema_lazily(tmp_path):
    path = str(tmp_path / "keys.db")

    async def scenario():
        store = KeyStore(SQLiteConnector(filename=path), owns_connector=True)
        try:
            missing = await store.find_active_key("nope")
            record = await store.create_key("read,write")
            found = await store.find_active_key(record.api_key)
            return missing, record, found
        finally:
            await store.close()

    missing, record, found = run(scenario())
    assert missing is None
    assert len(record.api_key) == 64
    assert record.scope_set == {"read", "write"}
    assert found.api_key == record.api_key
    assert found.active is True
    assert found.id == record.id

    with sqlite3.connect(path) as conn:
        cols = [row[1] for row in conn.execute("PRAGMA table_info(api_keys)")]
    assert cols == ["id", "api_key", "scopes", "active"]


def test_create_key_accepts_scope_list(tmp_path):
    async def scenario():
        store = KeyStore(SQLiteConnector(filename=str(tmp_path / "keys.db")), owns_connector=True)
        try:
            return await store.create_key(["read", "delete"])
        finally:
            await store.close()

    assert run(scenario()).scopes == "read,delete"


def test_deactivated_key_stops_matching(tmp_path):
    async def scenario():
        store = KeyStore(SQLiteConnector(filename=str(tmp_path / "keys.db")), owns_connector=True)
        try:
            record = await store.create_key("read")
            changed = await store.set_active(record.api_key, False)
            after = await store.find_active_key(record.api_key)
            with pytest.raises(KeyRevivalDenied):
                await store.set_active(record.api_key, True)
            return changed, after
        finally:
            await store.close()

    changed, after = run(scenario())
    assert changed is True
    assert after is None


def test_revivable_store_reactivates(tmp_path):
    async def scenario():
        store = KeyStore(SQLiteConnector(filename=str(tmp_path / "keys.db")), owns_connector=True, revivable=True)
        try:
            record = await store.create_key("read")
            await store.set_active(record.api_key, False)
            await store.set_active(record.api_key, True)
            unknown = await store.set_active("not-a-key", False)
            return await store.find_active_key(record.api_key), unknown
        finally:
            await store.close()

    found, unknown = run(scenario())
    assert found is not None
    assert unknown is False


def _config(tmp_path, api_keys: ApiKeysConfig) -> GatewayConfig:
    return GatewayConfig(
        database=DatabaseConfig(type="sqlite", options={"filename": str(tmp_path / "main.sqlite")}),
        api_keys=api_keys,
    )


def test_build_keystore_private(tmp_path):
    config = _config(tmp_path, ApiKeysConfig(use_app_db=True, app_db_path=str(tmp_path / "private.db")))
    main = SQLiteConnector(filename=str(tmp_path / "main.sqlite"))
    store = build_keystore(config, main)
    assert store.connector is not main
    assert store.owns_connector
    assert not store.eager_schema
    run(store.close())
    run(main.close())


def test_build_keystore_shares_main_connection(tmp_path):
    config = _config(tmp_path, ApiKeysConfig(use_app_db=False))
    main = SQLiteConnector(filename=str(tmp_path / "main.sqlite"))
    store = build_keystore(config, main)
    assert store.connector is main
    assert not store.owns_connector
    assert store.eager_schema
    run(main.close())


def test_build_keystore_separate_caller_store(tmp_path):
    other = DatabaseConfig(type="sqlite", options={"filename": str(tmp_path / "other.sqlite")})
    config = _config(tmp_path, ApiKeysConfig(use_app_db=False, db_config=other))
    main = SQLiteConnector(filename=str(tmp_path / "main.sqlite"))
    store = build_keystore(config, main)
    assert store.connector is not main
    assert store.owns_connector
    assert store.eager_schema
    run(store.close())
    run(main.close())
