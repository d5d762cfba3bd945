from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError
from typing import Optional

from models.users import Role

# bcrypt only hashes the first 72 bytes and rejects longer input
PASSWORD_MAX_BYTES = 72


def _check_password_length(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise PydanticCustomError(
            "password_too_long",
            "Password must be at most {max_bytes} bytes",
            {"max_bytes": PASSWORD_MAX_BYTES},
        )
    return value

# Shared properties for user models
class UserBase(BaseModel):
    username: str = Field(min_length=1, max_length=255)

    @field_validator("username")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise PydanticCustomError("blank", "Please fill in the field")
        return value

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests
class UserCreate(UserBase):
    password: str = Field(min_length=1)
    password2: Optional[str] = None
    email: EmailStr

    _password_length = field_validator("password")(_check_password_length)

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    email: Optional[str] = None
    role: str
    active: bool = True

    model_config = ConfigDict(from_attributes=True)

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Schema for JWT payload contents
class TokenData(BaseModel):
    username: Optional[str] = None
    role: Optional[str] = None

# Schema for profile updates made by the user; blank fields are left unchanged
class ProfileUpdate(BaseModel):
    password: Optional[str] = None
    email: Optional[EmailStr] = None

    _password_length = field_validator("password")(_check_password_length)

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

# Schema for administrative user edits
class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[Role] = None
