"""
Tests for the read-only HTTP API.
"""

import sqlite3

import pytest
from fastapi.testclient import TestClient

from rfcache.server import create_app
from rfcache.utils.validate import EmitterType, RfIdentification


@pytest.fixture
def client(store, wlan_ident, sample_info):
    with store.transaction() as txn:
        txn.insert(wlan_ident, sample_info)
    return TestClient(create_app(store.config.db_path))


def test_status(client):
    assert client.get("/api/status").json() == {"status": "ok"}


def test_schema(client):
    assert client.get("/api/schema").json() == {"version": 2, "emitters": 1}


def test_get_emitter(client, wlan_ident, sample_info):
    resp = client.get(f"/api/emitter/{wlan_ident.rf_type.value}/{wlan_ident.rf_id}")
    assert resp.status_code == 200
    assert resp.json() == sample_info.model_dump()


def test_get_unknown_emitter(client):
    resp = client.get("/api/emitter/MOBILE/310-260-1-2")
    assert resp.status_code == 404


def test_get_emitter_bad_type(client):
    assert client.get("/api/emitter/LORA/1234").status_code == 422


def test_query_emitters(client, wlan_ident):
    body = {
        "rf_type": "WLAN2",
        "bbox": {"south": 37.0, "north": 38.0, "west": -123.0, "east": -122.0},
    }
    resp = client.post("/api/emitters", json=body)
    assert resp.status_code == 200
    assert [RfIdentification(**item) for item in resp.json()] == [wlan_ident]


def test_query_emitters_elsewhere(client):
    body = {
        "rf_type": EmitterType.WLAN2.value,
        "bbox": {"south": 0.0, "north": 1.0, "west": 0.0, "east": 1.0},
    }
    assert client.post("/api/emitters", json=body).json() == []


def test_storage_failure_is_503(tmp_path):
    client = TestClient(create_app(str(tmp_path / "nope" / "rf.db")))
    assert client.get("/api/schema").status_code == 503


def test_legacy_database_is_503_and_left_alone(make_legacy_db):
    path = make_legacy_db([("aa:bb:cc:dd:ee:01", "WLAN2", 20, 51.5, -0.12, 5.0, "Cafe")])
    client = TestClient(create_app(path))
    assert client.get("/api/schema").status_code == 503
    conn = sqlite3.connect(path)
    try:
        assert conn.execute("PRAGMA user_version").fetchone()[0] == 1
    finally:
        conn.close()
