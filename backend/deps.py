"""
Shared FastAPI dependencies.

Centralizes role guards and query-string collection so routers import from a
single place.
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Depends, Request

from domain.enums import UserRole
from domain.errors import PermissionDeniedError
from middleware.auth import get_token_claims


class CurrentUser(TypedDict):
    id: str
    role: str


async def require_user(claims: dict = Depends(get_token_claims)) -> CurrentUser:
    """Any authenticated caller."""
    return {"id": str(claims.get("sub")), "role": str(claims.get("role") or UserRole.CUSTOMER.value)}


async def require_admin(user: CurrentUser = Depends(require_user)) -> CurrentUser:
    """Authenticated caller whose token carries role == 'admin'."""
    if user["role"] != UserRole.ADMIN.value:
        raise PermissionDeniedError("Admin role required for this endpoint.")
    return user


def list_query_params(request: Request) -> dict[str, str]:
    """
    Raw query string as a flat dict.

    Repeated keys (?status=pending&status=shipped) are joined with commas so
    array filters and multi-field sorts see every value.
    """
    params = request.query_params
    return {key: ",".join(params.getlist(key)) for key in params.keys()}
