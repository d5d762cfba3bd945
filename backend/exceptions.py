# backend/exceptions.py
from typing import Dict, Optional


class StoreError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(StoreError):
    """Invalid input. Carries an optional field -> message map."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


class ConflictError(StoreError):
    status_code = 409


class EmptyCartError(ConflictError):
    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class NotFoundError(StoreError):
    status_code = 404
