from __future__ import annotations

import secrets
from datetime import datetime, timedelta

from jose import jwt
from passlib.context import CryptContext

from huequitas.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"

ACCESS_PURPOSE = "access"
RESET_PURPOSE = "reset"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    subject: str,
    *,
    email: str,
    name: str | None = None,
    purpose: str = ACCESS_PURPOSE,
    expires_minutes: int | None = None,
) -> str:
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes or settings.access_token_exp_minutes)
    to_encode = {"sub": subject, "email": email, "name": name, "purpose": purpose, "exp": expire}
    return jwt.encode(to_encode, settings.app_secret_key, algorithm=ALGORITHM)


def create_reset_token(subject: str, *, email: str) -> str:
    return create_access_token(
        subject,
        email=email,
        purpose=RESET_PURPOSE,
        expires_minutes=settings.reset_token_exp_minutes,
    )


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.app_secret_key, algorithms=[ALGORITHM])


def generate_reset_code() -> str:
    """Six-digit numeric code, never starting with zero."""
    return str(100000 + secrets.randbelow(900000))


def generate_reset_token() -> str:
    return secrets.token_hex(32)
