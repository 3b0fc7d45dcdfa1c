# prover/db.py
"""
Best-effort audit trail of dispatched commands.

The record store itself lives only in memory; this table just remembers
which commands ran, what code they answered with and what they logged.
A failed write is logged and dropped, never surfaced to the client.
"""
import os
import json
import datetime
from typing import Optional, Dict, Any, List

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.exc import SQLAlchemyError

from prover import monitoring

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./prover_audit.db")
AUDIT_ENABLED = os.getenv("AUDIT_ENABLED", "true").lower() in ("1", "true", "yes")


def _make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def reconfigure(url: str):
    """Reconfigure the DB engine and session factory at runtime (for tests)."""
    global engine, SessionLocal
    engine.dispose()
    engine = _make_engine(url)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    try:
        import prover.models as models  # noqa: F401
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        # don't crash the app at import time; audit writes will fail and be logged
        monitoring.logger.exception("Audit DB init failed")


def _parse_timestamp(ts_raw: Any) -> datetime.datetime:
    if isinstance(ts_raw, datetime.datetime):
        ts = ts_raw
    elif isinstance(ts_raw, str):
        try:
            ts = datetime.datetime.fromisoformat(ts_raw.rstrip("Z"))
        except ValueError:
            ts = datetime.datetime.now(datetime.timezone.utc)
    else:
        ts = datetime.datetime.now(datetime.timezone.utc)
    # stored naive, always UTC
    if ts.tzinfo is not None:
        ts = ts.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return ts


def save_audit_entry(entry: Dict[str, Any]) -> Optional[int]:
    """
    Save an audit entry dict.
    entry should include:
      - command (str)         # command kind tag, e.g. "submit-snark"
      - snark_id (int|None)
      - status_code (int)
      - messages (list[str])  # log/error effect messages
      - timestamp (datetime|iso str) optional; if missing set now
    Returns the row id, or None when auditing is disabled or the write failed.
    """
    if not AUDIT_ENABLED:
        return None
    from prover.models import AuditEntry
    db: Session = SessionLocal()
    try:
        row = AuditEntry(
            command=entry.get("command"),
            snark_id=entry.get("snark_id"),
            status_code=entry.get("status_code"),
            messages_json=json.dumps(entry.get("messages") or []),
            timestamp=_parse_timestamp(entry.get("timestamp")),
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row.id
    except SQLAlchemyError:
        db.rollback()
        monitoring.logger.warning("Audit write failed", exc_info=True)
        return None
    finally:
        db.close()


def get_audit_for_snark(snark_id: int) -> List[Dict[str, Any]]:
    """Audit entries touching one SNARK id, oldest first."""
    from prover.models import AuditEntry
    db: Session = SessionLocal()
    try:
        rows = (
            db.query(AuditEntry)
            .filter(AuditEntry.snark_id == snark_id)
            .order_by(AuditEntry.id)
            .all()
        )
        return [
            {
                "id": r.id,
                "command": r.command,
                "snark_id": r.snark_id,
                "status_code": r.status_code,
                "messages": json.loads(r.messages_json or "[]"),
                "timestamp": r.timestamp.isoformat() + "Z" if r.timestamp else None,
            }
            for r in rows
        ]
    except SQLAlchemyError:
        monitoring.logger.warning("Audit read failed", exc_info=True)
        return []
    finally:
        db.close()
