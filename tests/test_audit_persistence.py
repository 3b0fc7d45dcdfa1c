# tests/test_audit_persistence.py
"""
Tests for the audit trail and the /api/v1/snark/{id}/audit endpoint.
Uses a disposable SQLite DB for isolation.
"""
import os
import datetime

import pytest
from fastapi.testclient import TestClient

from prover.app import app
from prover import app as app_module
from prover import db as dbmod

TEST_DB_URL = "sqlite:///./test_prover_audit.db"
TEST_DB_FILE = "./test_prover_audit.db"
client = TestClient(app)

VALID = {
    "proof": "cDE=",
    "verification_key": "dmsx",
    "proof_system": "plonk",
    "submitter": "auditor",
}


@pytest.fixture(autouse=True)
def fresh_db():
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)
    dbmod.reconfigure(TEST_DB_URL)
    dbmod.init_db()
    app_module.kernel.reset()
    yield
    dbmod.engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


def test_save_and_read_entry():
    row_id = dbmod.save_audit_entry({
        "command": "delete-snark",
        "snark_id": 12,
        "status_code": 200,
        "messages": ["SNARK 12 deleted"],
        "timestamp": "2025-04-01T10:00:00Z",
    })
    assert row_id is not None
    entries = dbmod.get_audit_for_snark(12)
    assert len(entries) == 1
    assert entries[0]["command"] == "delete-snark"
    assert entries[0]["messages"] == ["SNARK 12 deleted"]
    assert entries[0]["timestamp"] == "2025-04-01T10:00:00Z"


def test_aware_timestamp_stored_as_utc():
    ts = datetime.datetime(2025, 4, 1, 12, 0, tzinfo=datetime.timezone(datetime.timedelta(hours=2)))
    dbmod.save_audit_entry({"command": "get-snark", "snark_id": 3, "status_code": 404, "timestamp": ts})
    assert dbmod.get_audit_for_snark(3)[0]["timestamp"] == "2025-04-01T10:00:00Z"


def test_disabled_audit_writes_nothing(monkeypatch):
    monkeypatch.setattr(dbmod, "AUDIT_ENABLED", False)
    assert dbmod.save_audit_entry({"command": "list-snarks", "snark_id": None, "status_code": 200}) is None


def test_broken_db_does_not_raise():
    dbmod.reconfigure("sqlite:///./missing_dir_for_audit/never.db")
    assert dbmod.save_audit_entry({"command": "get-snark", "snark_id": 1, "status_code": 200}) is None
    assert dbmod.get_audit_for_snark(1) == []


def test_audit_endpoint_tracks_lifecycle():
    r = client.post("/api/v1/snark", json=VALID)
    sid = r.json()["id"]
    client.put(f"/api/v1/snark/{sid}/status", json={"status": "error", "error_message": "timeout"})
    client.delete(f"/api/v1/snark/{sid}")
    client.get(f"/api/v1/snark/{sid}")

    r = client.get(f"/api/v1/snark/{sid}/audit")
    assert r.status_code == 200
    entries = r.json()["entries"]
    assert [(e["command"], e["status_code"]) for e in entries] == [
        ("submit-snark", 201),
        ("update-status", 200),
        ("delete-snark", 200),
        ("get-snark", 404),
    ]
    assert entries[1]["messages"] == [f"SNARK {sid} status updated to error"]


def test_audit_endpoint_unknown_id_is_empty():
    r = client.get("/api/v1/snark/404/audit")
    assert r.status_code == 200
    assert r.json() == {"snark_id": 404, "entries": []}
