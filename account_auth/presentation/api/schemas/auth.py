"""Pydantic schemas for the authentication API."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ....domain.models import AccountView


class RegisterRequest(BaseModel):
    """Request schema for account registration."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)
    name: str = Field("", max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ConfirmEmailRequest(BaseModel):
    token: str = Field(..., min_length=1)


class EmailRequest(BaseModel):
    """Request schema for forgot-password and resend-confirmation."""

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=72)


class MessageResponse(BaseModel):
    message: str


class AccountResponse(BaseModel):
    """Response schema for account data. Never includes the password hash."""

    id: Optional[int]
    email: str
    name: str
    role: str
    is_email_confirmed: bool
    created_at: datetime

    @classmethod
    def from_view(cls, view: AccountView) -> "AccountResponse":
        return cls(
            id=view.id,
            email=view.email,
            name=view.name,
            role=view.role,
            is_email_confirmed=view.is_email_confirmed,
            created_at=view.created_at,
        )
