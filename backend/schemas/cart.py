from pydantic import BaseModel
from typing import List

from schemas.product import ProductOut

# Request schema for adding or removing one unit of a product
class CartChange(BaseModel):
    product_id: int

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[ProductOut]
    count: int
    total: int
