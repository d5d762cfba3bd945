# backend/routes/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import Role, User
from schemas.order import OrderResponse, ShippingDetails
from services import checkout
from utils.tokenJWT import get_current_user, role_required

router = APIRouter(tags=["Orders"])

# Check permissions for Admin or Owner roles
def _is_staff(user: User) -> bool:
    return (user.role or "").upper() in {Role.ADMIN.value, Role.OWNER.value}

# Place an order from the current cart
@router.post("/order", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def post_order(
    payload: ShippingDetails,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return checkout.place_order(db, current_user, payload)

# Latest order placed by the current user (shown after checkout)
@router.get("/orders/latest", response_model=OrderResponse)
def finalize_order(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return checkout.latest_order(db, current_user)

# All orders of the current user
@router.get("/userOrders", response_model=List[OrderResponse])
def user_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return checkout.orders_for_user(db, current_user)

# All orders of all customers (Admin/Owner only)
@router.get("/orders", response_model=List[OrderResponse])
def all_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(Role.ADMIN, Role.OWNER))
):
    return checkout.all_orders(db)

# Details of a specific order
@router.get("/orders/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = checkout.get_order(db, order_id)
    if order.user_id != current_user.id and not _is_staff(current_user):
        raise HTTPException(status_code=404, detail="Order not found or forbidden")
    return order
