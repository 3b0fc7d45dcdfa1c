# prover/store.py
"""
Store model for tracked SNARK submissions.

A Store is an immutable snapshot: the record mapping plus the id counter.
The mapping is a read-only view and record inputs are tuples, so nothing
reachable from a committed snapshot can be edited in place. Transitions
build a new Store through replace_records(), which re-checks the id
invariants on every construction. Snapshots can be exported to plain dicts and loaded
back; the version tag guards against reading a layout we don't understand.
"""
import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

STORE_VERSION = "v1"

# version tag -> function upgrading a raw snapshot dict to the next tag.
# Empty until a second layout exists.
MIGRATIONS: Dict[str, Any] = {}


class UnsupportedStoreVersion(Exception):
    """Raised when a snapshot carries a version tag with no migration path."""
    pass


class ProofStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"
    ERROR = "error"

    @property
    def is_failure(self) -> bool:
        return self in (ProofStatus.FAILED, ProofStatus.ERROR)


class Record(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0)
    proof: str
    public_inputs: Tuple[str, ...] = ()
    verification_key: str
    proof_system: str  # opaque symbol, e.g. "groth16"
    submitter: str
    submitted: datetime.datetime
    status: ProofStatus = ProofStatus.PENDING
    error_message: Optional[str] = None
    notes: str = ""


class Store(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str = STORE_VERSION
    records: Mapping[int, Record] = Field(default_factory=dict, validate_default=True)
    next_id: int = Field(default=1, ge=1)

    @field_validator("records", mode="after")
    @classmethod
    def _freeze_records(cls, v):
        return MappingProxyType(dict(v))

    @field_serializer("records")
    def _dump_records(self, v):
        return dict(v)

    @model_validator(mode="after")
    def _check_ids(self):
        for key, rec in self.records.items():
            if key != rec.id:
                raise ValueError(f"Record stored under key {key} has id {rec.id}")
        if self.records and self.next_id <= max(self.records):
            raise ValueError(
                f"next_id {self.next_id} must exceed every record id (max {max(self.records)})"
            )
        return self


def init_store() -> Store:
    """Empty snapshot: no records, first id is 1."""
    return Store(version=STORE_VERSION, records={}, next_id=1)


def replace_records(store: Store, records: Dict[int, Record], next_id: Optional[int] = None) -> Store:
    """New snapshot with the given records; next_id carries over unless given."""
    return Store(
        version=store.version,
        records=records,
        next_id=store.next_id if next_id is None else next_id,
    )


def has_record(store: Store, record_id: int) -> bool:
    return record_id in store.records


def record_count(store: Store) -> int:
    return len(store.records)


def snapshot_to_dict(store: Store) -> Dict[str, Any]:
    return {
        "version": store.version,
        "next_id": store.next_id,
        "records": [r.model_dump(mode="json") for _, r in sorted(store.records.items())],
    }


def snapshot_from_dict(raw: Dict[str, Any]) -> Store:
    """
    Rebuild a Store from snapshot_to_dict() output, upgrading older layouts
    through MIGRATIONS. Unknown tags raise UnsupportedStoreVersion.
    """
    data = dict(raw)
    version = data.get("version")
    while version != STORE_VERSION:
        upgrade = MIGRATIONS.get(version)
        if upgrade is None:
            raise UnsupportedStoreVersion(
                f"Unsupported store version '{version}'. Current: '{STORE_VERSION}'"
            )
        data = upgrade(data)
        version = data.get("version")

    records: Dict[int, Record] = {}
    for item in data.get("records", []):
        rec = Record.model_validate(item)
        if rec.id in records:
            raise ValueError(f"Duplicate record id {rec.id} in snapshot")
        records[rec.id] = rec

    # Store itself rejects a next_id that does not exceed every id
    next_id = int(data.get("next_id", 1))
    return Store(version=STORE_VERSION, records=records, next_id=next_id)
