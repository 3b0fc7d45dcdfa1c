# prover/app.py
import time
import datetime
from typing import Optional, Dict, Any

# Load .env BEFORE any prover imports (they read env vars at import time)
from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import FastAPI, Request, Body, Path
from fastapi.responses import JSONResponse, Response, PlainTextResponse
from pydantic import BaseModel

from prover import monitoring
from prover import db as dbmod
from prover import render
from prover.commands import (
    SubmitSnark, GetSnark, ListSnarks, DeleteSnark, UpdateStatus,
)
from prover.kernel import ProverKernel, first_response
from prover.query import QueryOutcome, parse_selector
from prover.store import ProofStatus, Record
from prover.validator import validate_submission

app = FastAPI(title="Prover - SNARK Submission API")

# Initialize audit tables on startup
dbmod.init_db()

# single kernel holding the current snapshot
kernel = ProverKernel()


# ---------------------------------------------------------------------------
# Metrics middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    method = request.method
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    except Exception:
        monitoring.logger.exception("Unhandled exception in request", extra={"path": request.url.path})
        raise
    finally:
        # templated path keeps label cardinality bounded (/api/v1/snark/{snark_id})
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        monitoring.observe_request(start, endpoint, method, status)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------
class StatusUpdateRequest(BaseModel):
    status: ProofStatus
    error_message: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _to_response(effects) -> Response:
    resp = first_response(effects)
    if resp is None:
        return _internal_error("Invalid response from kernel")
    return Response(status_code=resp.code, content=resp.body, media_type="application/json")


def _internal_error(message: str = "Internal server error") -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _query_data(data: Any) -> Any:
    if isinstance(data, Record):
        return render.record_detail(data)
    if isinstance(data, list):
        return [[rid, render.record_detail(rec)] for rid, rec in data]
    return data


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.post("/api/v1/snark")
def submit_snark(payload: Dict[str, Any] = Body(...)):
    """
    POST /api/v1/snark
    Body: { "proof": "<b64>", "public_inputs": [...], "verification_key": "<b64>",
            "proof_system": "groth16", "submitter": "...", "notes": "..." }
    """
    try:
        check = validate_submission(payload)
        if check["warnings"]:
            monitoring.logger.warning("Submission warnings", extra={"warnings": check["warnings"]})
        if not check["valid"]:
            return _to_response(kernel.reject("submit-snark", check["errors"][0]))

        cmd = SubmitSnark(
            proof=payload["proof"],
            public_inputs=payload.get("public_inputs") or [],
            verification_key=payload["verification_key"],
            proof_system=payload["proof_system"],
            submitter=payload["submitter"],
            notes=payload.get("notes") or "",
            now=_utcnow(),
        )
        return _to_response(kernel.poke(cmd))
    except Exception:
        monitoring.logger.exception("Unexpected error in submit handler")
        return _internal_error("Failed to submit SNARK")


@app.get("/api/v1/snarks")
def list_snarks():
    try:
        return _to_response(kernel.poke(ListSnarks()))
    except Exception:
        monitoring.logger.exception("Unexpected error in list handler")
        return _internal_error("Failed to list SNARKs")


@app.get("/api/v1/snark/{snark_id}")
def get_snark(snark_id: int = Path(..., ge=0, description="SNARK id")):
    try:
        return _to_response(kernel.poke(GetSnark(id=snark_id)))
    except Exception:
        monitoring.logger.exception("Unexpected error in get handler")
        return _internal_error()


@app.delete("/api/v1/snark/{snark_id}")
def delete_snark(snark_id: int = Path(..., ge=0, description="SNARK id")):
    try:
        return _to_response(kernel.poke(DeleteSnark(id=snark_id)))
    except Exception:
        monitoring.logger.exception("Unexpected error in delete handler")
        return _internal_error()


@app.put("/api/v1/snark/{snark_id}/status")
def update_status(req: StatusUpdateRequest, snark_id: int = Path(..., ge=0, description="SNARK id")):
    """
    PUT /api/v1/snark/{id}/status
    Body: { "status": "verified" | "failed" | "error" | "pending", "error_message": "..." }
    """
    try:
        cmd = UpdateStatus(id=snark_id, status=req.status, error_message=req.error_message)
        return _to_response(kernel.poke(cmd))
    except Exception:
        monitoring.logger.exception("Unexpected error in status handler")
        return _internal_error()


@app.get("/api/v1/snark/{snark_id}/audit")
def get_snark_audit(snark_id: int = Path(..., ge=0, description="SNARK id")):
    entries = dbmod.get_audit_for_snark(snark_id)
    return JSONResponse(status_code=200, content={"snark_id": snark_id, "entries": entries})


@app.get("/api/v1/peek/{selector:path}")
def peek(selector: str):
    """
    GET /api/v1/peek/count | next-id | snarks | snark/{id}
    Read-only inspection of the current snapshot.
    """
    try:
        result = kernel.peek(parse_selector(selector))
        if result.outcome is QueryOutcome.UNSUPPORTED:
            return JSONResponse(status_code=404, content={"error": "No such query"})
        if result.outcome is QueryOutcome.ABSENT:
            return JSONResponse(status_code=200, content={"data": None})
        return JSONResponse(status_code=200, content={"data": _query_data(result.data)})
    except Exception:
        monitoring.logger.exception("Unexpected error in peek handler")
        return _internal_error()


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    if not monitoring.PROMETHEUS_ENABLED:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)

