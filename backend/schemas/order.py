from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError
from typing import List, Optional
from datetime import datetime

from schemas.product import ProductOut


# Input schema for checkout: shipping and contact details
class ShippingDetails(BaseModel):
    first_name: str
    last_name: str
    city: str
    address: str
    post_index: str
    email: EmailStr
    phone_number: str
    total_price: int = Field(ge=0)

    @field_validator("first_name", "last_name", "city", "address", "post_index", "phone_number")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("blank", "Please fill in the field")
        return value


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    total_price: int
    created_at: Optional[datetime] = None
    first_name: str
    last_name: str
    city: str
    address: str
    post_index: str
    email: str
    phone_number: str
    products: List[ProductOut]

    model_config = ConfigDict(from_attributes=True)
