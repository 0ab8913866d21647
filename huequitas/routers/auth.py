from __future__ import annotations

import logging
from datetime import datetime, timedelta

from anyio import from_thread
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from huequitas.core import validators
from huequitas.core.config import settings
from huequitas.core.deps import get_current_user
from huequitas.core.errors import AuthenticationError, ConflictError, ValidationError
from huequitas.core.rate_limit import enforce, rate_limit
from huequitas.core.security import (
    create_access_token,
    create_reset_token,
    generate_reset_code,
    generate_reset_token,
    get_password_hash,
    verify_password,
)
from huequitas.db.session import get_db
from huequitas.models.users import UserAuth, UserProfile
from huequitas.schemas.auth import (
    LoginRequest,
    PasswordResetRequest,
    PasswordResetResponse,
    PublicUser,
    RegisterRequest,
    ResetRequest,
    ResetRequestResponse,
    TokenResponse,
    VerifyResetCodeRequest,
    VerifyResetCodeResponse,
    VerifyResponse,
)
from huequitas.services.mailer import MailError, send_reset_email

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)

RESET_REQUEST_MESSAGE = "If the email exists in our system, you will receive a code in your inbox"
INVALID_CODE_MESSAGE = "The reset code is invalid or has expired. Please request a new code."

# Guesses at a 6-digit code are counted per account across both endpoints
RESET_CODE_ATTEMPTS = 5
RESET_CODE_WINDOW_SECONDS = 15 * 60


def _public_user(user: UserAuth) -> PublicUser:
    return PublicUser(id=user.id, email=user.email, name=user.profile.name if user.profile else None)


def _session_token(user: UserAuth) -> str:
    return create_access_token(user.id, email=user.email, name=user.profile.name if user.profile else None)


def _limit_code_attempts(email: str) -> None:
    enforce("reset-code", email, limit=RESET_CODE_ATTEMPTS, window_seconds=RESET_CODE_WINDOW_SECONDS)


def _find_by_valid_code(db: Session, *, email: str, code: str) -> UserAuth | None:
    return db.scalar(
        select(UserAuth).where(
            UserAuth.email == email,
            UserAuth.reset_code == code,
            UserAuth.reset_token_expiry > datetime.utcnow(),
        )
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> TokenResponse:
    validators.require(payload.email, "Email")
    validators.require(payload.password, "Password")
    validators.require(payload.name, "Name")
    validators.require(payload.confirm_password, "Confirm password")

    email = validators.validate_email(payload.email)
    name = validators.validate_name(payload.name)
    validators.validate_password_strength(payload.password)
    validators.validate_confirm_password(payload.password, payload.confirm_password)

    if db.scalar(select(UserAuth).where(UserAuth.email == email)):
        raise ConflictError("User already exists")

    user = UserAuth(email=email, password_hash=get_password_hash(payload.password))
    user.profile = UserProfile(name=name, food_types="")

    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    return TokenResponse(message="User registered successfully", token=_session_token(user), user=_public_user(user))


@router.post(
    "/login",
    response_model=TokenResponse,
    dependencies=[rate_limit("login", limit=10, window_seconds=60)],
)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    validators.require(payload.email, "Email")
    validators.require(payload.password, "Password")
    email = validators.validate_email(payload.email)

    user = db.scalar(select(UserAuth).where(UserAuth.email == email))
    if not user or not verify_password(payload.password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthenticationError("User inactive")

    return TokenResponse(message="Login successful", token=_session_token(user), user=_public_user(user))


@router.get("/verify", response_model=VerifyResponse)
def verify(current: UserAuth = Depends(get_current_user)) -> VerifyResponse:
    return VerifyResponse(user=_public_user(current))


@router.post(
    "/password-reset-request",
    response_model=ResetRequestResponse,
    dependencies=[rate_limit("password-reset", limit=5, window_seconds=60)],
)
def password_reset_request(payload: ResetRequest, db: Session = Depends(get_db)) -> ResetRequestResponse:
    validators.require(payload.email, "Email")
    email = validators.validate_email(payload.email)

    user = db.scalar(select(UserAuth).where(UserAuth.email == email))
    # Same answer whether or not the account exists, and whether or not mail went out
    if not user:
        return ResetRequestResponse(message=RESET_REQUEST_MESSAGE)

    code = generate_reset_code()
    user.reset_code = code
    user.reset_token = generate_reset_token()
    user.reset_token_expiry = datetime.utcnow() + timedelta(minutes=settings.reset_code_ttl_minutes)
    db.add(user)
    db.commit()

    try:
        from_thread.run(send_reset_email, user.email, code)
    except MailError:
        logger.error("Reset code for user %s not delivered; discarding it", user.id)
        user.clear_reset()
        db.add(user)
        db.commit()

    return ResetRequestResponse(message=RESET_REQUEST_MESSAGE)


@router.post(
    "/verify-reset-code",
    response_model=VerifyResetCodeResponse,
    dependencies=[rate_limit("reset-code-ip", limit=20, window_seconds=60)],
)
def verify_reset_code(payload: VerifyResetCodeRequest, db: Session = Depends(get_db)) -> VerifyResetCodeResponse:
    validators.require(payload.email, "Email")
    validators.require(payload.reset_code, "Reset code")
    email = validators.validate_email(payload.email)
    _limit_code_attempts(email)

    user = _find_by_valid_code(db, email=email, code=payload.reset_code.strip())
    if not user:
        raise ValidationError(INVALID_CODE_MESSAGE)

    return VerifyResetCodeResponse(
        message="Code verified. You can now reset your password.",
        temp_token=create_reset_token(user.id, email=user.email),
    )


@router.post(
    "/password-reset",
    response_model=PasswordResetResponse,
    dependencies=[rate_limit("reset-code-ip", limit=20, window_seconds=60)],
)
def password_reset(payload: PasswordResetRequest, db: Session = Depends(get_db)) -> PasswordResetResponse:
    validators.require(payload.email, "Email")
    validators.require(payload.reset_code, "Reset code")
    validators.require(payload.new_password, "New password")
    validators.require(payload.confirm_password, "Password confirmation")
    validators.validate_confirm_password(payload.new_password, payload.confirm_password)
    validators.validate_password_strength(payload.new_password)
    email = validators.validate_email(payload.email)
    _limit_code_attempts(email)

    user = _find_by_valid_code(db, email=email, code=payload.reset_code.strip())
    if not user:
        raise ValidationError(INVALID_CODE_MESSAGE)

    user.password_hash = get_password_hash(payload.new_password)
    user.clear_reset()
    db.add(user)
    db.commit()
    logger.info("Password reset for user %s", user.id)

    return PasswordResetResponse(message="Your password has been reset. Please log in with your new password.")
