# prover/dispatch.py
"""
Dispatch engine: dispatch(store, command) -> (effects, new_store).

Pure and total over the closed command set. Nothing here reads a clock,
touches I/O or raises for a domain miss; an unknown id is reported as a
404 response effect and the snapshot comes back unchanged. Response effects
always come first, followed by log effects.
"""
from typing import Callable, Dict, List, Tuple, Type

from prover import render
from prover.commands import (
    Command,
    DeleteSnark,
    Effect,
    GetSnark,
    ListSnarks,
    LogEffect,
    ResponseEffect,
    SubmitSnark,
    UpdateStatus,
)
from prover.store import Record, Store, ProofStatus, has_record, replace_records

HTTP_OK = 200
HTTP_CREATED = 201
HTTP_NOT_FOUND = 404

NOT_FOUND_MESSAGE = "SNARK not found"

Transition = Tuple[List[Effect], Store]


def _not_found(store: Store) -> Transition:
    return [ResponseEffect(code=HTTP_NOT_FOUND, body=render.error_body(NOT_FOUND_MESSAGE))], store


def _submit(store: Store, cmd: SubmitSnark) -> Transition:
    new_id = store.next_id
    rec = Record(
        id=new_id,
        proof=cmd.proof,
        public_inputs=tuple(cmd.public_inputs),
        verification_key=cmd.verification_key,
        proof_system=cmd.proof_system,
        submitter=cmd.submitter,
        submitted=cmd.now,
        status=ProofStatus.PENDING,
        error_message=None,
        notes=cmd.notes,
    )
    records = dict(store.records)
    records[new_id] = rec
    new_store = replace_records(store, records, next_id=new_id + 1)
    effects: List[Effect] = [
        ResponseEffect(code=HTTP_CREATED, body=render.success_body("SNARK submitted successfully", new_id)),
        LogEffect(message=f"SNARK {new_id} submitted by {cmd.submitter}"),
    ]
    return effects, new_store


def _get(store: Store, cmd: GetSnark) -> Transition:
    rec = store.records.get(cmd.id)
    if rec is None:
        return [
            ResponseEffect(code=HTTP_NOT_FOUND, body=render.error_body(NOT_FOUND_MESSAGE)),
            LogEffect(message=f"SNARK {cmd.id} not found"),
        ], store
    return [ResponseEffect(code=HTTP_OK, body=render.detail_body(rec))], store


def _list(store: Store, cmd: ListSnarks) -> Transition:
    ordered = [rec for _, rec in sorted(store.records.items())]
    return [ResponseEffect(code=HTTP_OK, body=render.list_body(ordered))], store


def _delete(store: Store, cmd: DeleteSnark) -> Transition:
    if not has_record(store, cmd.id):
        return _not_found(store)
    records = {k: v for k, v in store.records.items() if k != cmd.id}
    # next_id is left alone so the removed id is never handed out again
    new_store = replace_records(store, records)
    return [
        ResponseEffect(code=HTTP_OK, body=render.success_body("SNARK deleted", cmd.id)),
        LogEffect(message=f"SNARK {cmd.id} deleted"),
    ], new_store


def _update_status(store: Store, cmd: UpdateStatus) -> Transition:
    rec = store.records.get(cmd.id)
    if rec is None:
        return _not_found(store)
    # error_message only lives alongside a failed/error status
    message = cmd.error_message if cmd.status.is_failure else None
    updated = rec.model_copy(update={"status": cmd.status, "error_message": message})
    records = dict(store.records)
    records[cmd.id] = updated
    new_store = replace_records(store, records)
    return [
        ResponseEffect(
            code=HTTP_OK,
            body=render.success_body(f"Status updated to {cmd.status.value}", cmd.id),
        ),
        LogEffect(message=f"SNARK {cmd.id} status updated to {cmd.status.value}"),
    ], new_store


_HANDLERS: Dict[Type, Callable[[Store, object], Transition]] = {
    SubmitSnark: _submit,
    GetSnark: _get,
    ListSnarks: _list,
    DeleteSnark: _delete,
    UpdateStatus: _update_status,
}


def dispatch(store: Store, command: Command) -> Transition:
    """
    Apply one command to a snapshot.

    Returns (effects, new_store). Read-only commands return the very same
    snapshot object they were given.
    """
    handler = _HANDLERS.get(type(command))
    if handler is None:
        # transport contract: only the five command types above are ever built
        raise TypeError(f"Unknown command type: {type(command).__name__}")
    return handler(store, command)
