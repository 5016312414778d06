"""Pydantic schemas for authentication endpoints."""

from typing import Literal

from pydantic import Field, field_validator, model_validator

from infographic_api.schemas.base import CamelModel, normalize_email
from infographic_api.schemas.user import UserOut

Gender = Literal["male", "female", "other", "prefer-not-to-say"]


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    email: str
    phone: str | None = Field(default=None, pattern=r"^\+?[1-9]\d{0,15}$")
    gender: Gender | None = None
    password: str = Field(min_length=6)
    password_confirm: str | None = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return normalize_email(value)

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password_confirm is not None and self.password_confirm != self.password:
            raise ValueError("Passwords are not the same")
        return self


class LoginRequest(CamelModel):
    email: str | None = None
    password: str | None = None


class ForgotPasswordRequest(CamelModel):
    email: str


class ResetPasswordRequest(CamelModel):
    password: str = Field(min_length=6)
    password_confirm: str

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordRequest":
        if self.password_confirm != self.password:
            raise ValueError("Passwords are not the same")
        return self


class UpdatePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=6)
    new_password_confirm: str

    @model_validator(mode="after")
    def passwords_match(self) -> "UpdatePasswordRequest":
        if self.new_password_confirm != self.new_password:
            raise ValueError("Passwords are not the same")
        return self


class UpdateMeRequest(CamelModel):
    """Profile update. Password fields are accepted only so the route can reject them."""

    name: str | None = Field(default=None, min_length=1, max_length=50)
    email: str | None = None
    password: str | None = None
    password_confirm: str | None = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str | None) -> str | None:
        return normalize_email(value) if value is not None else None


class UserData(CamelModel):
    user: UserOut


class AuthResponse(CamelModel):
    status: str = "success"
    token: str
    data: UserData


class UserResponse(CamelModel):
    status: str = "success"
    data: UserData


class MessageResponse(CamelModel):
    status: str = "success"
    message: str | None = None
