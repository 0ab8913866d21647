from __future__ import annotations

import logging

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import BaseModel
from sqlalchemy.orm import Session

from huequitas.core.errors import AuthenticationError
from huequitas.core.security import ACCESS_PURPOSE, decode_access_token
from huequitas.db.session import get_db
from huequitas.models.users import UserAuth

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login")


class TokenUser(BaseModel):
    """Identity carried by a session token, verified without a database round-trip."""

    user_id: str
    email: str
    name: str | None = None


def get_token_user(token: str = Depends(oauth2_scheme)) -> TokenUser:
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("sub")
    if not user_id or payload.get("purpose") != ACCESS_PURPOSE:
        raise AuthenticationError("Invalid token")
    return TokenUser(user_id=user_id, email=payload.get("email") or "", name=payload.get("name"))


def get_current_user(
    principal: TokenUser = Depends(get_token_user),
    db: Session = Depends(get_db),
) -> UserAuth:
    user = db.get(UserAuth, principal.user_id)
    if not user or not user.is_active:
        logger.warning("Token for missing or inactive user %s", principal.user_id)
        raise AuthenticationError("User not found")
    return user
