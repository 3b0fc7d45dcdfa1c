# prover/models.py
from sqlalchemy import Column, Integer, String, DateTime, Text
import datetime

from prover.db import Base


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class AuditEntry(Base):
    __tablename__ = "audit_entries"

    id = Column(Integer, primary_key=True, index=True)
    command = Column(String(32), nullable=False)
    snark_id = Column(Integer, nullable=True, index=True)
    status_code = Column(Integer, nullable=False)
    messages_json = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=_utcnow)
