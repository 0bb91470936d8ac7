from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"email": "jane@example.com", "password": "SecurePass123"}
            ]
        }
    )
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip() if v else v


class LoginRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"email": "jane@example.com", "password": "SecurePass123"}
            ]
        }
    )
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip() if v else v


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    email: str
    tier: str
    premium_until: Optional[datetime] = None


class UserEnvelope(BaseModel):
    user: UserOut


class AuthResponse(BaseModel):
    user: UserOut
    token: str


class LoginResponse(AuthResponse):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "user": {
                        "id": "550e8400-e29b-41d4-a716-446655440000",
                        "email": "jane@example.com",
                        "tier": "FREE",
                        "premium_until": None,
                    },
                    "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                    "loginStreak": 3,
                    "xpGained": 15,
                }
            ]
        },
    )
    login_streak: int = Field(..., alias="loginStreak")
    xp_gained: int = Field(..., alias="xpGained")
