# backend/routes/cart.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.product import Product
from models.users import User
from schemas.cart import CartChange, CartOut
from schemas.product import ProductOut
from services import users as user_service
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/cart", tags=["Cart"])

def _cart_to_out(products: List[Product]) -> CartOut:
    items = [ProductOut.model_validate(p) for p in products]
    return CartOut(items=items, count=len(items), total=sum(p.price for p in items))

@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _cart_to_out(user_service.get_cart(db, current_user))

@router.post("/add", response_model=CartOut)
def add_to_cart(
    payload: CartChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _cart_to_out(user_service.add_to_cart(db, current_user, payload.product_id))

@router.post("/remove", response_model=CartOut)
def remove_from_cart(
    payload: CartChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _cart_to_out(user_service.remove_from_cart(db, current_user, payload.product_id))
