# backend/services/checkout.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from config import settings
from exceptions import ConflictError, EmptyCartError, NotFoundError
from models.order import Order, OrderItem
from models.cart import CartItem
from models.users import User
from schemas.order import ShippingDetails
from utils.audit import auditable

logger = logging.getLogger(__name__)


def _load_for_checkout(db: Session, username: str) -> User:
    user = (
        db.query(User)
        .options(selectinload(User.cart).selectinload(CartItem.product))
        .filter(User.username == username)
        .populate_existing()
        .with_for_update(of=User)
        .first()
    )
    if user is None:
        raise NotFoundError(f"User {username} not found")
    return user


@auditable
def place_order(db: Session, current_user: User, details: ShippingDetails) -> Order:
    """
    Converts the user's cart into an order and empties the cart in one transaction.

    The user row is reloaded (and locked where the database supports it) so the
    cart seen here is the stored one. Raises EmptyCartError when there is
    nothing to order and ConflictError when a concurrent checkout of the same
    user committed first.
    """
    user = _load_for_checkout(db, current_user.username)
    if not user.cart:
        raise EmptyCartError()

    order = Order(
        user=user,
        first_name=details.first_name,
        last_name=details.last_name,
        city=details.city,
        address=details.address,
        post_index=details.post_index,
        email=details.email,
        phone_number=details.phone_number,
    )

    # New rows per unit, so later cart edits cannot reach the order
    order.items = [OrderItem(product_id=item.product_id) for item in user.cart]

    if settings.CHECKOUT_RECOMPUTE_TOTAL:
        order.total_price = sum(item.product.price for item in user.cart)
    else:
        order.total_price = details.total_price

    user.cart.clear()
    user.last_order_at = datetime.now(timezone.utc)
    db.add(order)

    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConflictError("Cart was modified by another checkout, please retry")
    except SQLAlchemyError:
        db.rollback()
        logger.error("Checkout failed for user %s", user.username, exc_info=True)
        raise

    db.refresh(order)
    logger.debug(
        "User %s id=%s made an order: FirstName=%s, LastName=%s, TotalPrice=%s, City=%s, "
        "Address=%s, PostIndex=%s, Email=%s, PhoneNumber=%s",
        user.username, user.id, order.first_name, order.last_name, order.total_price,
        order.city, order.address, order.post_index, order.email, order.phone_number,
    )
    return order


def _orders_query(db: Session):
    return db.query(Order).options(selectinload(Order.items).selectinload(OrderItem.product))


def latest_order(db: Session, user: Optional[User] = None) -> Order:
    """Most recently placed order (greatest id), optionally for one user."""
    query = _orders_query(db)
    if user is not None:
        query = query.filter(Order.user_id == user.id)
    order = query.order_by(Order.id.desc()).first()
    if order is None:
        raise NotFoundError("No orders found")
    return order


def orders_for_user(db: Session, user: User) -> List[Order]:
    return _orders_query(db).filter(Order.user_id == user.id).order_by(Order.id.asc()).all()


def all_orders(db: Session) -> List[Order]:
    return _orders_query(db).order_by(Order.id.asc()).all()


def get_order(db: Session, order_id: int) -> Order:
    order = _orders_query(db).filter(Order.id == order_id).first()
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    return order
