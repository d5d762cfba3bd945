# backend/routes/admin.py
from fastapi import APIRouter, Depends, status
from typing import List
from sqlalchemy.orm import Session

from database import get_db
from models.users import Role, User
from schemas.product import ProductCreate, ProductEditRequest, ProductOut
from schemas.user import UserResponse, UserUpdate
from services import catalog
from services import users as user_service
from utils.tokenJWT import role_required

router = APIRouter(prefix="/user", tags=["Admin"])

staff_only = role_required(Role.ADMIN, Role.OWNER)


# Add a product to the catalog (Admin/Owner only)
@router.post("/add", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only)
):
    return catalog.create_product(db, payload)


# Edit catalog product fields (Admin/Owner only)
@router.put("/productlist/{product_id}", response_model=ProductOut)
def edit_product(
    product_id: int,
    payload: ProductEditRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only)
):
    return catalog.update_product(db, product_id, payload)


# Retrieve all users (Admin/Owner only)
@router.get("", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only)
):
    return user_service.list_users(db)


# Rename a user or change their role (Admin/Owner only)
@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only)
):
    return user_service.update_user(db, user_id, payload)


# Delete a user account (Admin/Owner only)
@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff_only)
):
    user_service.delete_user(db, user_id, current_user)
    return {"message": f"User {user_id} has been deleted"}
