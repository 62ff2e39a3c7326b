from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional

from ..core.security import UserRole
from .auth import UserResponse, check_password_bytes


class UserCreate(BaseModel):
    """Account created by an administrator."""
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    role: UserRole

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return check_password_bytes(value)


class UserUpdate(BaseModel):
    """Partial update; only the fields that are sent are applied."""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=100)
    role: Optional[UserRole] = None

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return check_password_bytes(value)


class UserList(BaseModel):
    users: List[UserResponse]


class UserListResponse(BaseModel):
    success: bool = True
    data: UserList


class DashboardStatistics(BaseModel):
    totalUsers: int
    adminCount: int
    doctorCount: int
    patientCount: int


class DashboardData(BaseModel):
    statistics: DashboardStatistics


class DashboardResponse(BaseModel):
    success: bool = True
    message: str
    data: DashboardData
