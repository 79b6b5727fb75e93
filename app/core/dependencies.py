"""
FastAPI Authentication Dependencies
This module provides FastAPI dependency functions that can be injected into route handlers
to build the auth service and to extract the bearer token from the Authorization header.
Usage in endpoints:
    @router.get("/protected")
    def protected_route(account: AccountProjection = Depends(get_current_account)):
        # account is resolved from the JWT access token
        return {"user": account.id}
Flow:
1. Client sends request with Authorization: Bearer <token> header
2. FastAPI calls get_current_account() dependency
3. extract_bearer_token() pulls the token out of the header
4. AuthService.who_am_i() validates the JWT and loads the account
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.errors import Unauthenticated
from app.db.session import get_db
from app.schemas.auth import AccountProjection
from app.services.account_store import AccountStore
from app.services.auth_service import AuthService


def get_auth_service(
    db: Session = Depends(get_db), settings: Settings = Depends(get_settings)
) -> AuthService:
    return AuthService(AccountStore(db), settings)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Extract JWT token from Authorization header.
    Supports both "Bearer <token>" and plain token formats.
    Args:
        authorization: The Authorization header value (e.g., "Bearer eyJ...")
    Returns:
        The extracted token string
    Raises:
        Unauthenticated: If Authorization header is missing or empty
    """
    if not authorization:
        raise Unauthenticated("Authorization header missing")

    authorization = authorization.strip()
    if authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    else:
        token = authorization
    if not token:
        raise Unauthenticated("Invalid authorization header")

    return token


def get_current_account(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    service: AuthService = Depends(get_auth_service),
) -> AccountProjection:
    return service.who_am_i(extract_bearer_token(authorization))
