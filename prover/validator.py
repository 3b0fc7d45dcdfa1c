# prover/validator.py
"""
Submission validator for the HTTP layer.

validate_submission(payload) -> { valid, errors, warnings }

Runs before a SubmitSnark command is built; the dispatch engine itself does
no content checks. Checks, in order:
1) JSON shape (jsonschema)
2) required text fields are non-empty
3) proof and verification key are strict base64
4) proof_system is one we know about (warning, or error in strict mode)
"""
import base64
import binascii
import os
from typing import Any, Dict, List, Optional, Set

from jsonschema import Draft7Validator

KNOWN_PROOF_SYSTEMS_ENV = os.getenv(
    "KNOWN_PROOF_SYSTEMS", "groth16,plonk,stark,halo2,marlin,bulletproofs,fflonk"
)
STRICT_PROOF_SYSTEM = os.getenv("STRICT_PROOF_SYSTEM", "false").lower() in ("1", "true", "yes")

SUBMISSION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["proof", "verification_key", "proof_system", "submitter"],
    "properties": {
        "proof": {"type": "string"},
        "public_inputs": {"type": "array", "items": {"type": "string"}},
        "verification_key": {"type": "string"},
        "proof_system": {"type": "string"},
        "submitter": {"type": "string"},
        "notes": {"type": ["string", "null"]},
    },
}

_SCHEMA_VALIDATOR = Draft7Validator(SUBMISSION_SCHEMA)

# (field, message when empty)
REQUIRED_TEXT = [
    ("proof", "Proof data is required"),
    ("verification_key", "Verification key is required"),
    ("submitter", "Submitter is required"),
]

# (field, message when not base64)
BASE64_FIELDS = [
    ("proof", "Invalid Base64 in proof data"),
    ("verification_key", "Invalid Base64 in verification key"),
]


def _load_known_systems(raw: str) -> Set[str]:
    return {s.strip().lower() for s in raw.split(",") if s.strip()}


KNOWN_PROOF_SYSTEMS = _load_known_systems(KNOWN_PROOF_SYSTEMS_ENV)


def is_base64(value: str) -> bool:
    try:
        base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def _schema_errors(payload: Any) -> List[str]:
    errors = []
    for err in sorted(_SCHEMA_VALIDATOR.iter_errors(payload), key=lambda e: [str(p) for p in e.path]):
        where = ".".join(str(p) for p in err.path) or "payload"
        errors.append(f"{where}: {err.message}")
    return errors


def validate_submission(payload: Dict[str, Any], strict_proof_system: Optional[bool] = None) -> Dict[str, Any]:
    """
    Validate a decoded submission body. The first error is the one reported
    to the client; all of them are returned for logging.
    """
    if strict_proof_system is None:
        strict_proof_system = STRICT_PROOF_SYSTEM

    errors: List[str] = []
    warnings: List[str] = []

    # 1) shape; nothing below is meaningful if this fails
    errors.extend(_schema_errors(payload))
    if errors:
        return {"valid": False, "errors": errors, "warnings": warnings}

    # 2) non-empty fields
    for field, message in REQUIRED_TEXT:
        if not payload.get(field):
            errors.append(message)

    # 3) base64 payloads (only checked when present, emptiness is reported above)
    for field, message in BASE64_FIELDS:
        value = payload.get(field)
        if value and not is_base64(value):
            errors.append(message)

    # 4) proof system
    system = payload.get("proof_system", "")
    if system.lower() not in KNOWN_PROOF_SYSTEMS:
        msg = f"Unknown proof system '{system}'. Known: {sorted(KNOWN_PROOF_SYSTEMS)}"
        if strict_proof_system:
            errors.append(msg)
        else:
            warnings.append(msg)

    return {"valid": len(errors) == 0, "errors": errors, "warnings": warnings}
