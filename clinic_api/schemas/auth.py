from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from ..core.security import MAX_PASSWORD_BYTES, UserRole, password_too_long


def check_password_bytes(value: Optional[str]) -> Optional[str]:
    if value is not None and password_too_long(value):
        raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class UserRegister(BaseModel):
    # Presence is checked by the service so a missing field is a 400, not a 422
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=100)
    role: Optional[UserRole] = None

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return check_password_bytes(value)


class UserLogin(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ChangePassword(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=100)

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return check_password_bytes(value)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuthData(BaseModel):
    user: UserResponse
    token: str


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    data: AuthData


class UserEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: UserResponse
