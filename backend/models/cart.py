# backend/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

# A single unit of a product placed in a user's cart.
# The cart has no quantity column; adding a product twice stores two rows.
class CartItem(Base):
    __tablename__ = "cart_items" # Table name

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False) # Owning user
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False) # Referenced product

    user = relationship("User", back_populates="cart") # Relationship back to User
    product = relationship("Product") # Relationship to Product
