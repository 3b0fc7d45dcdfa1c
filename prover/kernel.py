# prover/kernel.py
"""
ProverKernel owns the current Store snapshot.

- poke(command): run dispatch() against the current snapshot and commit the
  result. Commits are serialized by a lock so exactly one transition is in
  flight at a time.
- peek(selector): read-only query against whatever snapshot is current.
  No lock: snapshots are immutable and the reference swap is atomic.

Effects returned by dispatch are realized here: log/error messages go to the
monitoring logger, outcomes go to metrics and the audit trail.
"""
import threading
from typing import List, Optional, Sequence

from prover import db as dbmod
from prover import monitoring
from prover import render
from prover.commands import (
    Effect,
    ErrorEffect,
    LogEffect,
    ResponseEffect,
    SubmitSnark,
)
from prover.dispatch import dispatch
from prover.query import QueryResult, query
from prover.store import Store, init_store, record_count

HTTP_BAD_REQUEST = 400


def first_response(effects: Sequence[Effect]) -> Optional[ResponseEffect]:
    for eff in effects:
        if isinstance(eff, ResponseEffect):
            return eff
    return None


class ProverKernel:
    def __init__(self, store: Optional[Store] = None, audit: bool = True):
        self._snapshot = store if store is not None else init_store()
        self._lock = threading.Lock()
        self.audit = audit

    @property
    def snapshot(self) -> Store:
        return self._snapshot

    def reset(self, store: Optional[Store] = None):
        """Replace the current snapshot (fresh store by default)."""
        with self._lock:
            self._snapshot = store if store is not None else init_store()
        monitoring.set_record_count(record_count(self._snapshot))

    def poke(self, command) -> List[Effect]:
        with self._lock:
            before = self._snapshot
            effects, after = dispatch(before, command)
            self._snapshot = after

        if isinstance(command, SubmitSnark):
            snark_id = before.next_id if after is not before else None
        else:
            snark_id = getattr(command, "id", None)
        self._realize(command.kind, snark_id, effects)
        if after is not before:
            monitoring.set_record_count(record_count(after))
        return effects

    def reject(self, command_kind: str, message: str, code: int = HTTP_BAD_REQUEST) -> List[Effect]:
        """Effects for a request refused before any command was built."""
        effects: List[Effect] = [
            ResponseEffect(code=code, body=render.error_body(message)),
            ErrorEffect(message=f"{command_kind} rejected: {message}"),
        ]
        self._realize(command_kind, None, effects)
        return effects

    def peek(self, selector: Sequence[str]) -> QueryResult:
        result = query(self._snapshot, selector)
        label = selector[0] if result.supported and selector else "unsupported"
        monitoring.inc_query(label, result.outcome.value)
        return result

    def _realize(self, command_kind: str, snark_id: Optional[int], effects: Sequence[Effect]):
        messages = []
        for eff in effects:
            if isinstance(eff, LogEffect):
                monitoring.logger.info(eff.message, extra={"command": command_kind, "snark_id": snark_id})
                messages.append(eff.message)
            elif isinstance(eff, ErrorEffect):
                monitoring.logger.error(eff.message, extra={"command": command_kind, "snark_id": snark_id})
                messages.append(eff.message)

        resp = first_response(effects)
        code = resp.code if resp is not None else 0
        monitoring.inc_command(command_kind, code)

        if self.audit:
            dbmod.save_audit_entry({
                "command": command_kind,
                "snark_id": snark_id,
                "status_code": code,
                "messages": messages,
                "timestamp": None,
            })
