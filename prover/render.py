# prover/render.py
"""
Response-body construction.

Projections turn Records into plain dicts with the wire field names; bodies
are serialized with json.dumps so free-text fields (submitter, notes,
error_message) are escaped and the output is always valid JSON, whatever
quotes or control characters they contain.
"""
import datetime
import json
from typing import Any, Dict, Iterable, Optional

from prover.store import Record


def iso_timestamp(ts: datetime.datetime) -> str:
    if ts.tzinfo is not None and ts.utcoffset() == datetime.timedelta(0):
        return ts.replace(tzinfo=None).isoformat() + "Z"
    return ts.isoformat()


def record_detail(rec: Record) -> Dict[str, Any]:
    return {
        "id": rec.id,
        "proof": rec.proof,
        "public_inputs": list(rec.public_inputs),
        "verification_key": rec.verification_key,
        "proof_system": rec.proof_system,
        "submitter": rec.submitter,
        "submitted": iso_timestamp(rec.submitted),
        "status": rec.status.value,
        "error_message": rec.error_message,
        "notes": rec.notes,
    }


def record_summary(rec: Record) -> Dict[str, Any]:
    return {
        "id": rec.id,
        "proof_system": rec.proof_system,
        "submitter": rec.submitter,
        "submitted": iso_timestamp(rec.submitted),
        "status": rec.status.value,
        "notes": rec.notes,
    }


def to_body(payload: Any) -> str:
    # ensure_ascii keeps bodies 7-bit; non-ASCII comes out as \uXXXX escapes
    return json.dumps(payload, ensure_ascii=True)


def detail_body(rec: Record) -> str:
    return to_body(record_detail(rec))


def list_body(records: Iterable[Record]) -> str:
    summaries = [record_summary(r) for r in records]
    return to_body({"snarks": summaries, "total": len(summaries)})


def success_body(message: str, record_id: Optional[int] = None) -> str:
    payload: Dict[str, Any] = {"success": True}
    if record_id is not None:
        payload["id"] = record_id
    payload["message"] = message
    return to_body(payload)


def error_body(message: str) -> str:
    return to_body({"error": message})
