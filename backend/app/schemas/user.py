"""Pydantic schemas for Users and authentication."""
from __future__ import annotations
import re
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints, ValidationInfo, field_validator

from app.models.user import ROLE_LABELS, UserRole

PASSWORD_RULES = [
    (re.compile(r"[a-z]"), "The password must contain at least one lowercase letter."),
    (re.compile(r"[A-Z]"), "The password must contain at least one uppercase letter."),
    (re.compile(r"[0-9]"), "The password must contain at least one number."),
    (re.compile(r"[^a-zA-Z0-9]"), "The password must contain at least one special character."),
]


class RegisterRequest(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    email: EmailStr = Field(..., max_length=255)
    password: str
    password_confirmation: str

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("The password must be at least 8 characters long.")
        for pattern, message in PASSWORD_RULES:
            if not pattern.search(value):
                raise ValueError(message)
        return value

    @field_validator("password_confirmation")
    @classmethod
    def check_confirmation(cls, value: str, info: ValidationInfo) -> str:
        if "password" in info.data and value != info.data["password"]:
            raise ValueError("The password confirmation does not match.")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RoleOut(BaseModel):
    value: str
    label: str


class UserOut(BaseModel):
    user_id: str
    name: str
    email: str
    role: RoleOut
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("role", mode="before")
    @classmethod
    def expand_role(cls, value):
        if isinstance(value, str) and not isinstance(value, UserRole):
            value = UserRole(value)
        if isinstance(value, UserRole):
            return {"value": value.value, "label": ROLE_LABELS[value]}
        return value


class AuthOut(BaseModel):
    user: UserOut
    token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
