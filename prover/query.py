# prover/query.py
"""
Read-only query path over a Store snapshot.

query(store, selector) never mutates the snapshot. The result is one of
three outcomes:
- UNSUPPORTED: the selector names no known query
- ABSENT: the query exists but there is nothing to return
- PRESENT: the query produced data (which may itself be an empty list)

Supported selectors:
    ("count",)            -> int
    ("next-id",)          -> int
    ("snarks",)           -> list of (id, Record) pairs, ascending id
    ("snark", "<id>")     -> Record, or ABSENT when the id is not stored
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence, Tuple

from prover.store import Store, record_count


class QueryOutcome(str, Enum):
    UNSUPPORTED = "unsupported"
    ABSENT = "absent"
    PRESENT = "present"


@dataclass(frozen=True)
class QueryResult:
    outcome: QueryOutcome
    data: Any = None

    @classmethod
    def unsupported(cls) -> "QueryResult":
        return cls(QueryOutcome.UNSUPPORTED)

    @classmethod
    def absent(cls) -> "QueryResult":
        return cls(QueryOutcome.ABSENT)

    @classmethod
    def present(cls, data: Any) -> "QueryResult":
        return cls(QueryOutcome.PRESENT, data)

    @property
    def supported(self) -> bool:
        return self.outcome is not QueryOutcome.UNSUPPORTED


def parse_selector(path: str) -> Tuple[str, ...]:
    """'snark/3' -> ('snark', '3'); empty segments are dropped."""
    return tuple(seg for seg in path.strip().split("/") if seg)


def _parse_id(raw: str):
    # ascii digits only; isdigit() alone admits superscripts int() rejects
    if not (raw.isascii() and raw.isdigit()):
        return None
    return int(raw)


def query(store: Store, selector: Sequence[str]) -> QueryResult:
    sel = tuple(selector)
    if sel == ("count",):
        return QueryResult.present(record_count(store))
    if sel == ("next-id",):
        return QueryResult.present(store.next_id)
    if sel == ("snarks",):
        return QueryResult.present(sorted(store.records.items()))
    if len(sel) == 2 and sel[0] == "snark":
        record_id = _parse_id(sel[1])
        if record_id is None:
            return QueryResult.unsupported()
        rec = store.records.get(record_id)
        if rec is None:
            return QueryResult.absent()
        return QueryResult.present(rec)
    return QueryResult.unsupported()
