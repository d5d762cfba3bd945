# backend/schemas/product.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Shared base attributes for product entities
class ProductBase(ORMBase):
    title: str = Field(min_length=1, max_length=255)
    producer: str = Field(min_length=1, max_length=255)
    year: int
    country: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price: int = Field(ge=0)
    quantity: int = Field(ge=0)
    type: Optional[str] = Field(None, max_length=255)


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# Schema for partial product updates
class ProductEditRequest(ORMBase):
    """Schema for PUT requests - all fields optional."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    producer: Optional[str] = Field(None, min_length=1, max_length=255)
    year: Optional[int] = None
    country: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    type: Optional[str] = Field(None, max_length=255)


# Full product representation including ID
class ProductOut(ProductBase):
    id: int


class PriceRange(BaseModel):
    min_price: Optional[int] = None
    max_price: Optional[int] = None


class ProductList(ORMBase):
    items: List[ProductOut]
    total: int
