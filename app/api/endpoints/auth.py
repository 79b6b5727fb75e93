from typing import List

from fastapi import APIRouter, Depends, status

import app.schemas.auth as schemas
from app.core.dependencies import get_auth_service, get_current_account
from app.schemas.my_base_model import Message
from app.services.auth_service import AuthService

router = APIRouter()
group_tags: List[str] = ["Auth"]


@router.post(
    "/nonce",
    tags=group_tags,
    response_model=schemas.NonceResponse,
    response_model_exclude_none=True,
)
def request_nonce(
    body: schemas.NonceRequest, service: AuthService = Depends(get_auth_service)
) -> schemas.NonceResponse:
    """Generate and store a nonce for the account bound to a wallet address.
    - wallet_address: str: registered wallet address
    """
    return service.request_nonce(body.wallet_address)


@router.post(
    "/precheck",
    tags=group_tags,
    response_model=schemas.NonceResponse,
)
def precheck(
    body: schemas.PrecheckRequest, service: AuthService = Depends(get_auth_service)
) -> schemas.NonceResponse:
    """Generate and store a nonce for the account registered under an email.
    Returns the wallet address too so the client can render the SIWE message.
    - email: str: registered email
    """
    return service.precheck(body.email)


@router.post(
    "/login",
    tags=group_tags,
    response_model=schemas.AuthResponse,
)
def login(
    body: schemas.LoginRequest, service: AuthService = Depends(get_auth_service)
) -> schemas.AuthResponse:
    """Verify a signed SIWE message and return session tokens.
    - message: str: the exact EIP-4361 text that was signed, embedding the issued nonce
    - signature: str: hex-encoded personal_sign signature
    - email: str (optional): fallback lookup when no account owns the message address
    """
    return service.login(body.message, body.signature, body.email)


@router.get(
    "/me",
    tags=group_tags,
    response_model=schemas.AccountProjection,
)
def me(account: schemas.AccountProjection = Depends(get_current_account)) -> schemas.AccountProjection:
    """Return the account behind the bearer access token."""
    return account


@router.post(
    "/refresh",
    tags=group_tags,
    response_model=schemas.AuthResponse,
)
def refresh(
    body: schemas.RefreshRequest, service: AuthService = Depends(get_auth_service)
) -> schemas.AuthResponse:
    """Exchange a refresh token for a new token pair."""
    return service.refresh(body.refresh_token)


@router.post(
    "/register",
    tags=group_tags,
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: schemas.RegisterRequest, service: AuthService = Depends(get_auth_service)
) -> Message:
    """Create an account bound to a wallet address.
    Donors start active, admins start blocked until approved, other roles start pending.
    """
    service.register(body)
    return Message(message="Registration successful. Please login.")
