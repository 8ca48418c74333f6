# tests/conftest.py
import sqlite3

import pytest
from fastapi.testclient import TestClient

from crudgate.config import ApiKeysConfig, DatabaseConfig, GatewayConfig
from crudgate.main import create_app

API_PREFIX = "/api/v1"

GUID_V4 = "f47ac10b-58cc-4372-a567-0e02b2c3d479"

KEYS_DDL = """
CREATE TABLE IF NOT EXISTS api_keys (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  api_key TEXT UNIQUE NOT NULL,
  scopes TEXT NOT NULL,
  active BOOLEAN DEFAULT TRUE
)
"""

SEED_KEYS = [
    ("k1", "read,write"),
    ("k2", "delete"),
    ("k_query", "read query"),
    ("k_empty", ""),
    ("k_admin", "admin|read"),
]


def auth(key: str) -> dict:
    return {"x-api-key": key}


def set_key_active(keys_path: str, key: str, active: bool) -> None:
    """Flip a key's active flag behind the gateway's back"""
    with sqlite3.connect(keys_path) as conn:
        conn.execute("UPDATE api_keys SET active = ? WHERE api_key = ?", (1 if active else 0, key))


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "main.sqlite")
    with sqlite3.connect(path) as conn:
        conn.execute(
            "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, guid TEXT, email TEXT, name TEXT)"
        )
        for i in range(1, 8):
            guid = GUID_V4 if i == 3 else None
            conn.execute(
                "INSERT INTO users (guid, email, name) VALUES (?, ?, ?)",
                (guid, f"user{i}@example.com", f"User {i}"),
            )
    return path


@pytest.fixture
def keys_path(tmp_path):
    path = str(tmp_path / "app_api_keys.db")
    with sqlite3.connect(path) as conn:
        conn.execute(KEYS_DDL)
        conn.executemany("INSERT INTO api_keys (api_key, scopes) VALUES (?, ?)", SEED_KEYS)
    return path


@pytest.fixture
def make_config(db_path, keys_path):
    def _make(**overrides) -> GatewayConfig:
        values = {
            "version": "v1",
            "database": DatabaseConfig(type="sqlite", options={"filename": db_path}),
            "api_keys": ApiKeysConfig(use_app_db=True, app_db_path=keys_path),
        }
        values.update(overrides)
        return GatewayConfig(**values)

    return _make


@pytest.fixture
def make_client(make_config):
    """Build a TestClient for a gateway with config overrides; lifespan runs on enter"""
    clients = []

    def _make(connector=None, **overrides) -> TestClient:
        app = create_app(make_config(**overrides), connector=connector)
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        test_client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()
