# utils/identity.py
"""Request-scoped identity of the authenticated caller.

The HTTP middleware in ``main.py`` decodes the bearer token once per request
and stores the claimed username (and client address) here. Code that only
needs to *name* the caller, such as audit logging, reads it from the context.
Code that acts on the caller's data must reload the authoritative ``User``
row instead.
"""
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from jose import JWTError, jwt

from config import settings

_current_identity: ContextVar[Optional[str]] = ContextVar("current_identity", default=None)
_client_ip: ContextVar[Optional[str]] = ContextVar("client_ip", default=None)


def get_current_identity() -> Optional[str]:
    return _current_identity.get()


def get_client_ip() -> Optional[str]:
    return _client_ip.get()


@contextmanager
def identity_scope(identity: Optional[str], ip: Optional[str] = None) -> Iterator[None]:
    identity_token = _current_identity.set(identity)
    ip_token = _client_ip.set(ip)
    try:
        yield
    finally:
        _client_ip.reset(ip_token)
        _current_identity.reset(identity_token)


def identity_from_token(authorization: Optional[str]) -> Optional[str]:
    """Return the ``sub`` claim of a ``Bearer`` header, or None if absent/invalid."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")
