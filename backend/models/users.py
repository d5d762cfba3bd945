# backend/models/users.py
import enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from database import Base


# Authorization tags attached to each account
class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    OWNER = "OWNER"


# Represents a user account with authentication details, system role and cart
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    email = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=Role.USER.value)
    active = Column(Boolean, nullable=False, default=True)

    # Set on every successful checkout
    last_order_at = Column(DateTime(timezone=True), nullable=True)

    # Optimistic concurrency counter, bumped on every UPDATE of the row
    version_id = Column(Integer, nullable=False)

    # One row per unit; repeating a product represents quantity
    cart = relationship(
        "CartItem",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )

    orders = relationship("Order", back_populates="user", order_by="Order.id")

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def cart_products(self):
        return [item.product for item in self.cart]
