"""
HTTP tests for API key issuance
"""
from crudgate.config import KeyIssuance
from tests.conftest import API_PREFIX, auth

GENERATE = f"{API_PREFIX}/generate-api-key"


def test_generate_via_get_defaults_to_read(client):
    response = client.get(GENERATE)
    assert response.status_code == 201
    data = response.json()
    assert data["scope"] == "read"
    assert len(data["apiKey"]) == 64

    # the new key works immediately for reads but not writes
    assert client.get(f"{API_PREFIX}/users", headers=auth(data["apiKey"])).status_code == 200
    assert client.post(f"{API_PREFIX}/users", json={"name": "x"},
                       headers=auth(data["apiKey"])).status_code == 403


def test_generate_via_get_with_scope(client):
    response = client.get(GENERATE, params={"scope": "delete"})
    assert response.status_code == 201
    assert response.json()["scope"] == "delete"


def test_generate_via_post(client):
    response = client.post(GENERATE, json={"scope": "read,write"})
    assert response.status_code == 201
    key = response.json()["apiKey"]

    created = client.post(f"{API_PREFIX}/users", json={"name": "New"}, headers=auth(key))
    assert created.status_code == 200
    assert created.json()["id"] == 8


def test_generate_via_post_without_body(client):
    response = client.post(GENERATE)
    assert response.status_code == 201
    assert response.json()["scope"] == "read"


def test_generated_keys_are_unique(client):
    keys = {client.get(GENERATE).json()["apiKey"] for _ in range(5)}
    assert len(keys) == 5


def test_scoped_issuance_requires_admin(make_client):
    client = make_client(key_issuance=KeyIssuance.SCOPED)
    assert client.get(GENERATE).status_code == 401
    assert client.post(GENERATE, json={"scope": "read"}, headers=auth("k1")).status_code == 403

    response = client.post(GENERATE, json={"scope": "read"}, headers=auth("k_admin"))
    assert response.status_code == 201


def test_scoped_issuance_custom_scope(make_client):
    client = make_client(key_issuance=KeyIssuance.SCOPED, key_issuance_scope="write")
    assert client.get(GENERATE, headers=auth("k1")).status_code == 201
