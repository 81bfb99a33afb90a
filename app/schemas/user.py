from pydantic import BaseModel, EmailStr, field_validator
from datetime import datetime

from app.models.user import UserRole


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    role: UserRole = UserRole.EMPLOYEE

    @field_validator("password")
    @classmethod
    def password_max_bytes(cls, v: str) -> str:
        """bcrypt only looks at the first 72 bytes of a password"""
        if not v:
            raise ValueError("password is required")
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str
    role: UserRole


class UserOut(BaseModel):
    id: int
    email: str
    role: UserRole
    created_at: datetime

    model_config = {
        "from_attributes": True
    }


class EmployeeOut(BaseModel):
    id: int
    email: str

    model_config = {
        "from_attributes": True
    }
