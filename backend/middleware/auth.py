"""
Bearer-token authentication helpers.

Access tokens are short-lived HS256 JWTs:
    iss  — settings.jwt_issuer
    sub  — user id (24-hex)
    role — "admin" | "customer"
    iat / exp

Route guards (require_user / require_admin) live in deps.py and build on
get_token_claims() below.
"""
import logging
from datetime import datetime, timezone, timedelta
from fastapi import Header
from typing import Optional

import jwt

from config import settings
from domain.errors import DomainError, UnauthorizedError

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _require_secret() -> str:
    if not settings.jwt_secret:
        raise DomainError(
            "Server auth misconfigured (JWT secret missing).",
            status_code=500,
        )
    return settings.jwt_secret


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def decode_access_token(token: str) -> dict:
    secret = _require_secret()
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid access token.")


def issue_access_token(*, user_id: str, role: str, ttl_minutes: int | None = None) -> str:
    now = _now_utc()
    ttl = settings.jwt_access_ttl_minutes if ttl_minutes is None else ttl_minutes
    exp = now.replace(microsecond=0) + timedelta(minutes=ttl)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": user_id,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, _require_secret(), algorithm="HS256")


async def get_token_claims(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> dict:
    """
    Decode the bearer token or raise 401.

    Returns the JWT payload ({"sub", "role", ...}).
    """
    token = _parse_bearer_token(authorization)
    if not token:
        raise UnauthorizedError(
            "Authentication required. Provide Authorization: Bearer <token>."
        )
    return decode_access_token(token)
