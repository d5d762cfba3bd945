# backend/models/product.py
from sqlalchemy import Column, Integer, String, CheckConstraint
from database import Base

# Model Product
# Catalog item offered in the storefront. Price is kept in whole currency
# units; quantity is the number of units in stock.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    producer = Column(String(255), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    country = Column(String(255), nullable=False)
    description = Column(String)

    price = Column(Integer, CheckConstraint("price >= 0"), nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)

    type = Column(String(255))
