"""Field-level checks shared by the auth and core write endpoints.

Each check raises :class:`~huequitas.core.errors.ValidationError` with a
user-facing message, and returns the normalised value when it has one.
"""

from __future__ import annotations

import base64
import binascii
import re
import uuid
from typing import Any

from email_validator import EmailNotValidError, validate_email as _check_email

from huequitas.core.config import settings
from huequitas.core.errors import ValidationError

MAX_COMMENT_LENGTH = 250
MAX_IMAGE_SIZE_BYTES = 5 * 1024 * 1024
ALLOWED_IMAGE_FORMATS = ("image/jpeg", "image/jpg", "image/png", "image/gif")

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50

_NAME_RE = re.compile(r"^[a-zA-ZáéíóúÁÉÍÓÚüÜñÑ\s]+$")
_DATA_URI_RE = re.compile(r"^data:(?P<mime>[a-zA-Z0-9]+/[a-zA-Z0-9.+-]+);base64,(?P<payload>.*)$", re.DOTALL)
_SPECIAL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def require(value: Any, field_name: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field_name} is required")
    return value


def validate_email(email: str | None) -> str:
    if not email:
        raise ValidationError("Email is required")
    try:
        result = _check_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Email must be valid (example@domain.com)")
    return result.normalized


def validate_name(name: str | None) -> str:
    if not name or not name.strip():
        raise ValidationError("Name is required")
    name = name.strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValidationError(f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters")
    if not _NAME_RE.match(name):
        raise ValidationError("Name may only contain letters and spaces")
    return name


def validate_password_strength(password: str | None) -> str:
    if not password:
        raise ValidationError("Password is required")

    missing = []
    if len(password) < settings.password_min_length:
        missing.append(f"at least {settings.password_min_length} characters")
    if not re.search(r"[a-z]", password):
        missing.append("lowercase letters (a-z)")
    if not re.search(r"[A-Z]", password):
        missing.append("uppercase letters (A-Z)")
    if not re.search(r"[0-9]", password):
        missing.append("numbers (0-9)")
    if not _SPECIAL_RE.search(password):
        missing.append("special symbols (!@#$%^&*...)")

    if missing:
        raise ValidationError(f"Password must include: {', '.join(missing)}")
    return password


def validate_confirm_password(password: str | None, confirm: str | None) -> None:
    if password != confirm:
        raise ValidationError("Passwords do not match")


def validate_rating(rating: Any) -> int:
    """Ratings are whole numbers 1-5; numeric strings and integral floats are accepted."""
    if rating is None or rating == "" or isinstance(rating, bool):
        raise ValidationError("Rating is required")
    try:
        value = float(rating)
    except (TypeError, ValueError):
        raise ValidationError("Rating is required")
    if not value.is_integer() or not 1 <= value <= 5:
        raise ValidationError("Rating must be a number between 1 and 5")
    return int(value)


def validate_review_comment(comment: str | None) -> str | None:
    if comment is None:
        return None
    comment = comment.strip()
    if len(comment) > MAX_COMMENT_LENGTH:
        raise ValidationError(
            f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters (got {len(comment)})"
        )
    return comment or None


def validate_image(data_uri: str | None) -> str | None:
    """Optional base64 data URI with an allowed MIME type and a decoded size of at most 5MB."""
    if not data_uri:
        return None

    match = _DATA_URI_RE.match(data_uri) if isinstance(data_uri, str) else None
    if not match:
        raise ValidationError("Image is not in a valid format")

    if match.group("mime").lower() not in ALLOWED_IMAGE_FORMATS:
        raise ValidationError("Only JPG, PNG or GIF images are allowed")

    payload = match.group("payload")
    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image is not in a valid format")

    if len(decoded) > MAX_IMAGE_SIZE_BYTES:
        size_mb = len(decoded) / 1024 / 1024
        raise ValidationError(f"Image cannot exceed 5MB (current size: {size_mb:.2f}MB)")
    return data_uri


def validate_id(value: Any) -> str:
    """Identifiers are canonical UUID strings."""
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError):
        raise ValidationError("Invalid id")
