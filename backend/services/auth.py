# backend/services/auth.py
from sqlalchemy.orm import Session

from models.users import User
from schemas.user import UserLogin
from utils.audit import audit_authentication
from utils.hashing import verify_password


@audit_authentication
def authenticate(credentials: UserLogin, db: Session):
    """Return the matching active user, or None when the credentials are wrong."""
    user = db.query(User).filter(User.username == credentials.username).first()
    if user is None or not user.active:
        return None
    if not verify_password(credentials.password, user.password_hash):
        return None
    return user
