# utils/audit.py
"""Audit interceptor.

``@auditable`` wraps a service function (or every public method of a class)
and records a START entry before the call and an END entry after it returns.
Both share a short correlation token so they can be paired in the log.
``@audit_authentication`` records every credential check before it runs.

Entries go to the ``utils.audit`` logger and, unless ``AUDIT_PERSIST`` is
off, to the append-only ``audit_events`` table. Audit writes use their own
session and never raise into the wrapped call.
"""
import enum
import functools
import json
import logging
import uuid
from datetime import date, datetime
from typing import Any, Callable, Optional

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session

import database
from config import settings
from models.log import AuditEvent
from utils.identity import get_client_ip, get_current_identity

logger = logging.getLogger(__name__)

START = "START"
END = "END"
ERROR = "ERROR"
AUTH = "AUTH"

ANONYMOUS = "anonymous"
REDACTED = "***"


def new_request_id() -> str:
    return uuid.uuid4().hex[-6:]


def site_label(func: Callable) -> str:
    owner, _, name = func.__qualname__.rpartition(".")
    declaring = f"{func.__module__}.{owner}" if owner else func.__module__
    return f"{declaring}:{name}()"


def _row_to_dict(row) -> dict:
    # Only already-loaded columns; serializing must not trigger lazy loads
    state = sa_inspect(row)
    loaded = state.dict
    return {attr.key: loaded[attr.key] for attr in state.mapper.column_attrs if attr.key in loaded}


def to_jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return to_jsonable(value.model_dump(mode="json"))
    if isinstance(value, database.Base):
        return to_jsonable(_row_to_dict(value))
    if isinstance(value, dict):
        return {
            str(k): (REDACTED if "password" in str(k).lower() else to_jsonable(v))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Session):
        return "<Session>"
    return f"<{type(value).__name__}>"


def _claimed_identity(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (Session, str, int, float, bool)):
        return None
    for attr in ("username", "email"):
        claimed = getattr(value, attr, None)
        if isinstance(claimed, str) and claimed:
            return claimed
    return None


def resolve_identity(args: tuple, kwargs: dict) -> str:
    """Current caller, else the first credential-like argument, else ``anonymous``."""
    identity = get_current_identity()
    if identity:
        return identity
    for value in list(args) + list(kwargs.values()):
        claimed = _claimed_identity(value)
        if claimed:
            return claimed
    return ANONYMOUS


def _open_session() -> Session:
    return database.SessionLocal()


def record_event(*, request_id: str, phase: str, site: str, identity: Optional[str] = None,
                 status: str = "SUCCESS", payload: Any = None) -> None:
    """Append one audit row. Failures are logged and swallowed."""
    if not settings.AUDIT_PERSIST:
        return
    try:
        db = _open_session()
        try:
            db.add(AuditEvent(
                request_id=request_id, identity=identity, phase=phase, site=site,
                status=status, ip=get_client_ip(), payload=payload,
            ))
            db.commit()
        finally:
            db.close()
    except Exception:
        logger.warning("Could not store audit event %s-%s for %s", request_id, phase, site, exc_info=True)


def _emit(message: str, *, request_id: str, phase: str, site: str, identity: str,
          payload: Any, status: str = "SUCCESS") -> None:
    try:
        logger.info(
            message, request_id, site, json.dumps(payload, default=str),
            extra={"request_id": request_id, "phase": phase, "site": site, "identity": identity},
        )
    except Exception:
        logger.warning("Could not log audit entry %s-%s for %s", request_id, phase, site, exc_info=True)
    record_event(request_id=request_id, phase=phase, site=site, identity=identity,
                 status=status, payload=payload)


def _safe_jsonable(value: Any) -> Any:
    try:
        return to_jsonable(value)
    except Exception:
        logger.warning("Could not serialize audit payload", exc_info=True)
        return "<unserializable>"


def _audit_call(func: Callable) -> Callable:
    site = site_label(func)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        request_id = new_request_id()
        identity = resolve_identity(args, kwargs)
        _emit(
            "%s-START: %s. Args: %s",
            request_id=request_id, phase=START, site=site, identity=identity,
            payload=_safe_jsonable({"args": list(args), "kwargs": kwargs}),
        )

        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            record_event(
                request_id=request_id, phase=ERROR, site=site, identity=identity,
                status="FAIL", payload={"error": type(exc).__name__, "message": str(exc)},
            )
            raise

        _emit(
            "%s-END: %s Response: %s",
            request_id=request_id, phase=END, site=site, identity=identity,
            payload=_safe_jsonable(result),
        )
        return result

    wrapper.__audited__ = True
    return wrapper


def auditable(target):
    """Mark a function, or every public method of a class, for START/END auditing."""
    if isinstance(target, type):
        for name, member in list(vars(target).items()):
            if name.startswith("_") or not callable(member) or getattr(member, "__audited__", False):
                continue
            setattr(target, name, _audit_call(member))
        return target
    return _audit_call(target)


def audit_authentication(func: Callable) -> Callable:
    """Log each authentication attempt with the claimed identity before it is verified."""
    site = site_label(func)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            request_id = new_request_id()
            claimed = _claimed_identity(args[0]) if args else None
            _emit(
                "%s: %s. Args: %s",
                request_id=request_id, phase=AUTH, site=site, identity=claimed or ANONYMOUS,
                payload=_safe_jsonable({"args": list(args), "kwargs": kwargs}),
            )
        except Exception:
            logger.warning("Could not log authentication attempt", exc_info=True)
        return func(*args, **kwargs)

    return wrapper
