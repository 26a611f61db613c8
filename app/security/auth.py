from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.authz.errors import AuthenticationError
from app.models.security import User

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer"


def extract_bearer_token(request: Request) -> str | None:
    """
    Read `Authorization: Bearer <token>`.

    - No header: anonymous request, returns None.
    - Header present but malformed: AuthenticationError (never treated as anonymous).
    """

    raw = request.headers.get(AUTHORIZATION_HEADER)
    if not raw:
        return None

    prefix = f"{BEARER_PREFIX} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise AuthenticationError(f"Invalid {AUTHORIZATION_HEADER}. Expected '{BEARER_PREFIX} <token>'.")

    token = raw[len(prefix) :].strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        raise AuthenticationError(f"Invalid {AUTHORIZATION_HEADER}. Missing token after '{BEARER_PREFIX}'.")
    return token


def decode_user_id(token: str, secret: str, algorithm: str = "HS256") -> str:
    """Validate signature/expiry and return the `sub` claim. Do not log the token."""

    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm], options={"require": ["sub"]})
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token expired") from exc
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid token") from exc

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.strip():
        raise AuthenticationError("Invalid token subject")
    return sub


def issue_token(user_id: str, secret: str, algorithm: str = "HS256", expires_in: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, object] = {"sub": user_id, "iat": now}
    if expires_in is not None:
        payload["exp"] = now + expires_in
    return jwt.encode(payload, secret, algorithm=algorithm)


def load_user(db: Session, user_id: str) -> User:
    user = db.execute(select(User).where(User.id == user_id)).scalar_one_or_none()

    if user is None or not user.is_active:
        raise AuthenticationError("Invalid or inactive user")

    return user
