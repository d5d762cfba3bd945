# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, func
from database import Base

# Append-only audit trail written by the audit interceptor.
# Rows are never updated; one call produces START and END (or ERROR) rows
# sharing the same request_id.
class AuditEvent(Base):
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    request_id = Column(String(36), nullable=False, index=True)
    identity = Column(String(255), nullable=True, index=True)
    phase = Column(String(10), nullable=False, index=True)
    site = Column(String(255), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="SUCCESS")
    ip = Column(String(64), nullable=True)

    # Serialized arguments, result or error details
    payload = Column(JSON, nullable=True)
