from __future__ import annotations

from pydantic import Field

from huequitas.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    email: str | None = None
    password: str | None = None
    confirm_password: str | None = None
    name: str | None = None


class LoginRequest(CamelModel):
    email: str | None = None
    password: str | None = None


class PublicUser(CamelModel):
    id: str
    email: str
    name: str | None


class TokenResponse(CamelModel):
    message: str
    token: str
    user: PublicUser


class VerifyResponse(CamelModel):
    valid: bool = True
    user: PublicUser


class ResetRequest(CamelModel):
    email: str | None = None


class ResetRequestResponse(CamelModel):
    message: str
    success: bool = True


class VerifyResetCodeRequest(CamelModel):
    email: str | None = None
    reset_code: str | None = Field(default=None, max_length=6)


class VerifyResetCodeResponse(CamelModel):
    message: str
    success: bool = True
    temp_token: str


class PasswordResetRequest(CamelModel):
    email: str | None = None
    reset_code: str | None = Field(default=None, max_length=6)
    new_password: str | None = None
    confirm_password: str | None = None


class PasswordResetResponse(CamelModel):
    message: str
    success: bool = True
