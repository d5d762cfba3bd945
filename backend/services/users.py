# backend/services/users.py
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from exceptions import BadRequestError, ConflictError, NotFoundError
from models.cart import CartItem
from models.users import Role, User
from models.product import Product
from schemas.user import ProfileUpdate, UserCreate, UserUpdate
from services.catalog import get_product
from utils.audit import auditable
from utils.hashing import get_password_hash

logger = logging.getLogger(__name__)


def find_by_username(db: Session, username: str) -> User:
    user = db.query(User).filter(User.username == username).first()
    if user is None:
        raise NotFoundError(f"User {username} not found")
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


def _reload(db: Session, user: User) -> User:
    # Always act on the stored row, never on a copy attached to the request
    return find_by_username(db, user.username)


@auditable
def register(db: Session, payload: UserCreate) -> User:
    if not payload.password2:
        raise BadRequestError("Password confirmation cannot be empty", {"password2": "Password confirmation cannot be empty"})
    if payload.password != payload.password2:
        raise BadRequestError("Passwords do not match", {"password": "Passwords do not match"})

    if db.query(User).filter(User.username == payload.username).first() is not None:
        raise ConflictError(f"User {payload.username} already exists")

    user = User(
        username=payload.username,
        password_hash=get_password_hash(payload.password),
        email=payload.email,
        role=Role.USER.value,
        active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent registration of the same username lost the race
        db.rollback()
        raise ConflictError(f"User {payload.username} already exists")
    db.refresh(user)
    logger.debug("User %s registered", user.username)
    return user


def get_cart(db: Session, user: User) -> List[Product]:
    return _reload(db, user).cart_products


@auditable
def add_to_cart(db: Session, user: User, product_id: int) -> List[Product]:
    stored = _reload(db, user)
    product = get_product(db, product_id)
    stored.cart.append(CartItem(product=product))
    db.commit()
    db.refresh(stored)
    return stored.cart_products


@auditable
def remove_from_cart(db: Session, user: User, product_id: int) -> List[Product]:
    """Remove one unit of the product; a product not in the cart is ignored."""
    stored = _reload(db, user)
    for item in stored.cart:
        if item.product_id == product_id:
            stored.cart.remove(item)
            break
    db.commit()
    db.refresh(stored)
    return stored.cart_products


@auditable
def update_profile(db: Session, user: User, payload: ProfileUpdate) -> User:
    stored = _reload(db, user)
    if payload.password and payload.password.strip():
        stored.password_hash = get_password_hash(payload.password)
    if payload.email:
        stored.email = payload.email
    db.commit()
    db.refresh(stored)
    logger.debug("%s changed personal info: email=%s", stored.username, stored.email)
    return stored


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.id.asc()).all()


@auditable
def update_user(db: Session, user_id: int, payload: UserUpdate) -> User:
    user = get_user(db, user_id)
    if payload.username is not None and payload.username != user.username:
        user.username = payload.username
    if payload.role is not None:
        user.role = payload.role.value
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"User {payload.username} already exists")
    db.refresh(user)
    logger.debug("User edited: id=%s, name=%s, role=%s", user.id, user.username, user.role)
    return user


@auditable
def delete_user(db: Session, user_id: int, acting_user: User) -> None:
    user = get_user(db, user_id)
    if user.id == acting_user.id:
        raise BadRequestError("You cannot delete your own account")
    db.delete(user)
    db.commit()
    logger.debug("User %s deleted by %s", user.username, acting_user.username)
