# tests/test_store.py
import datetime

import pytest
from pydantic import ValidationError

from prover import store as storemod
from prover.store import (
    STORE_VERSION,
    ProofStatus,
    Record,
    Store,
    UnsupportedStoreVersion,
    has_record,
    init_store,
    record_count,
    replace_records,
    snapshot_from_dict,
    snapshot_to_dict,
)

NOW = datetime.datetime(2025, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)


def make_record(rid: int, **overrides) -> Record:
    fields = dict(
        id=rid,
        proof="cDE=",
        public_inputs=["1", "2"],
        verification_key="dmsx",
        proof_system="groth16",
        submitter="alice",
        submitted=NOW,
        notes="",
    )
    fields.update(overrides)
    return Record(**fields)


def test_init_store_is_empty_with_first_id_one():
    s = init_store()
    assert s.version == STORE_VERSION
    assert s.records == {}
    assert s.next_id == 1
    assert record_count(s) == 0


def test_membership_and_count():
    s = Store(records={1: make_record(1), 4: make_record(4)}, next_id=5)
    assert has_record(s, 1)
    assert has_record(s, 4)
    assert not has_record(s, 2)
    assert record_count(s) == 2


def test_new_record_defaults_to_pending_without_error():
    rec = make_record(1)
    assert rec.status is ProofStatus.PENDING
    assert rec.error_message is None


def test_record_is_frozen():
    rec = make_record(1)
    with pytest.raises(ValidationError):
        rec.status = ProofStatus.VERIFIED


def test_unknown_status_rejected():
    with pytest.raises(ValidationError):
        make_record(1, status="maybe")


def test_failure_statuses():
    assert ProofStatus.FAILED.is_failure
    assert ProofStatus.ERROR.is_failure
    assert not ProofStatus.PENDING.is_failure
    assert not ProofStatus.VERIFIED.is_failure


def test_snapshot_export_and_load():
    s = Store(
        records={2: make_record(2, status=ProofStatus.FAILED, error_message="bad pairing"), 1: make_record(1)},
        next_id=7,
    )
    raw = snapshot_to_dict(s)
    assert raw["version"] == STORE_VERSION
    assert [r["id"] for r in raw["records"]] == [1, 2]

    loaded = snapshot_from_dict(raw)
    assert loaded.model_dump() == s.model_dump()
    assert loaded.next_id == 7


def test_snapshot_unknown_version_rejected():
    raw = snapshot_to_dict(init_store())
    raw["version"] = "v99"
    with pytest.raises(UnsupportedStoreVersion):
        snapshot_from_dict(raw)


def test_snapshot_migrates_older_layout(monkeypatch):
    def v0_to_v1(data):
        # pretend v0 called the counter "counter"
        out = dict(data)
        out["next_id"] = out.pop("counter")
        out["version"] = "v1"
        return out

    monkeypatch.setattr(storemod, "MIGRATIONS", {"v0": v0_to_v1})
    raw = {"version": "v0", "counter": 3, "records": [make_record(2).model_dump(mode="json")]}
    loaded = snapshot_from_dict(raw)
    assert loaded.version == STORE_VERSION
    assert loaded.next_id == 3
    assert has_record(loaded, 2)


def test_snapshot_next_id_must_exceed_ids():
    raw = snapshot_to_dict(Store(records={3: make_record(3)}, next_id=4))
    raw["next_id"] = 3
    with pytest.raises(ValueError):
        snapshot_from_dict(raw)


def test_snapshot_duplicate_ids_rejected():
    raw = snapshot_to_dict(Store(records={3: make_record(3)}, next_id=4))
    raw["records"].append(dict(raw["records"][0]))
    with pytest.raises(ValueError):
        snapshot_from_dict(raw)


def test_records_view_is_read_only():
    s = Store(records={1: make_record(1)}, next_id=2)
    with pytest.raises(TypeError):
        s.records[2] = make_record(2)
    with pytest.raises(AttributeError):
        s.records.clear()
    assert has_record(s, 1)


def test_public_inputs_are_immutable():
    rec = make_record(1)
    assert rec.public_inputs == ("1", "2")
    with pytest.raises(AttributeError):
        rec.public_inputs.append("3")


def test_store_does_not_share_caller_mapping():
    src = {1: make_record(1)}
    s = Store(records=src, next_id=2)
    src.clear()
    assert has_record(s, 1)


def test_store_rejects_next_id_not_above_ids():
    with pytest.raises(ValidationError):
        Store(records={1: make_record(1)}, next_id=1)
    with pytest.raises(ValidationError):
        Store(records={1: make_record(1), 5: make_record(5)}, next_id=3)


def test_store_rejects_key_id_mismatch():
    with pytest.raises(ValidationError):
        Store(records={2: make_record(1)}, next_id=3)


def test_replace_records_keeps_counter_and_checks_ids():
    s = Store(records={1: make_record(1)}, next_id=4)
    s2 = replace_records(s, {})
    assert s2.next_id == 4
    assert record_count(s2) == 0
    assert record_count(s) == 1
    with pytest.raises(ValidationError):
        replace_records(s, {4: make_record(4)})
