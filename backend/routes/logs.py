# backend/routes/logs.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional, Any
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from database import get_db
from models.log import AuditEvent
from models.users import Role, User
from utils.tokenJWT import role_required

router = APIRouter(prefix="/logs", tags=["Logs"])

# --- SCHEMAS ---
class AuditEventResponse(BaseModel):
    id: int
    ts: Optional[datetime] = None
    request_id: str
    identity: Optional[str] = None
    phase: str
    site: str
    status: str
    ip: Optional[str] = None
    payload: Optional[Any] = None

    model_config = ConfigDict(from_attributes=True)

class AuditEventPage(BaseModel):
    items: List[AuditEventResponse]
    total: int
    page: int
    page_size: int

# --- ENDPOINT ---
@router.get("", response_model=AuditEventPage)
def get_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    phase: Optional[str] = Query(None, description="START, END, ERROR or AUTH"),
    identity: Optional[str] = Query(None, description="Filter by identity"),
    site: Optional[str] = Query(None, description="Filter by call site"),
    request_id: Optional[str] = Query(None, description="Correlation token"),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.ADMIN, Role.OWNER)),
):
    query = db.query(AuditEvent)

    if phase:
        query = query.filter(AuditEvent.phase == phase.upper())
    if identity:
        query = query.filter(AuditEvent.identity == identity)
    if site:
        query = query.filter(AuditEvent.site.ilike(f"%{site}%"))
    if request_id:
        query = query.filter(AuditEvent.request_id == request_id)

    # Newest first; id breaks ties between events in the same second
    query = query.order_by(AuditEvent.id.desc())

    total = query.count()
    events = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": events,
        "total": total,
        "page": page,
        "page_size": page_size,
    }
