"""Pydantic schemas for signup, login and public user records."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class SignupSchema(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""


class LoginSchema(BaseModel):
    username: str = ""  # username or email
    password: str = ""


class PasswordCheckSchema(BaseModel):
    password: str = ""


class PasswordCheckOutSchema(BaseModel):
    valid: bool
    message: str | None = None


class UserOutSchema(BaseModel):
    """User as exposed outside the credential store: never carries the hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    created_at: datetime | None = None


class UserAdminOutSchema(UserOutSchema):
    submission_count: int = 0
    progress_count: int = 0
