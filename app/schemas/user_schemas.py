from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from app.schemas.schemas import CamelModel
from app.schemas.status_schema import UserRole


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.RIDER

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.strip().lower()


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(CamelModel):
    id: UUID
    name: str
    email: str
    role: UserRole
    active: bool
    created_at: datetime


class TokenResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse
