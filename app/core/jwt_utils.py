"""
JWT Token Utilities

This module handles JSON Web Token (JWT) creation and verification for wallet authentication.
After a user successfully signs in with their wallet, this module creates an access/refresh
token pair that can be used for subsequent authenticated API requests.

Flow:
1. User verifies wallet signature -> issue_session() generates both tokens
2. User makes API request with the access token in Authorization header -> verify_access_token()
3. User exchanges the refresh token for a new pair -> verify_refresh_token()

Each token contains:
- sub: The account id
- role: The account role
- wallet_address: The wallet bound to the account
- type: "access" or "refresh"
- iat: Issued at timestamp
- exp: Expiration timestamp

Verification fails closed: any decode, signature, expiry or claim error raises
Unauthenticated; there is no fallback identity.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt

from app.core.config import Settings
from app.core.errors import Unauthenticated

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"
REQUIRED_CLAIMS = ("sub", "role", "wallet_address", "type", "exp")


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


def encode_token(payload: Dict[str, Any], secret: str, ttl_seconds: int, algorithm: str = "HS256") -> str:
    """
    Sign a payload into a JWT that expires ``ttl_seconds`` from now.

    Raises:
        ValueError: If no secret is configured
    """
    if not secret:
        raise ValueError("Token secret is not configured")

    now = datetime.now(timezone.utc)
    claims = dict(payload)
    claims.update({
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
    })
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """
    Verify and decode a JWT.

    Raises:
        Unauthenticated: If the token is missing, expired, tampered or undecodable
    """
    if not token:
        raise Unauthenticated("Missing token")
    if not secret:
        raise Unauthenticated("Token secret is not configured")

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require": ["exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expired")
    except jwt.InvalidTokenError as exc:
        raise Unauthenticated(f"Invalid token: {exc}")


def _claims_for(account, token_type: str) -> Dict[str, Any]:
    return {
        "sub": str(account.id),
        "role": getattr(account.role, "value", account.role),
        "wallet_address": account.wallet_address,
        "type": token_type,
    }


def _refresh_secret(settings: Settings) -> str | None:
    return settings.REFRESH_ENCODE_KEY or settings.ENCODE_KEY


def issue_session(account, settings: Settings) -> SessionTokens:
    """
    Mint an access/refresh pair bound to the account id, role and wallet address.

    Args:
        account: The account that completed sign-in
        settings: Configuration holding the signing secrets and lifetimes

    Returns:
        SessionTokens with both encoded tokens
    """
    access_token = encode_token(
        _claims_for(account, ACCESS),
        settings.ENCODE_KEY,
        settings.ACCESS_TOKEN_EXPIRE_SECONDS,
        settings.ENCODE_ALGORITHM,
    )
    refresh_token = encode_token(
        _claims_for(account, REFRESH),
        _refresh_secret(settings),
        settings.REFRESH_TOKEN_EXPIRE_SECONDS,
        settings.ENCODE_ALGORITHM,
    )
    return SessionTokens(access_token=access_token, refresh_token=refresh_token)


def _verify(token: str, secret: str | None, token_type: str, settings: Settings) -> Dict[str, Any]:
    payload = decode_token(token, secret, settings.ENCODE_ALGORITHM)

    missing = [claim for claim in REQUIRED_CLAIMS if not payload.get(claim)]
    if missing:
        raise Unauthenticated(f"Invalid token payload, missing {', '.join(missing)}")
    if payload["type"] != token_type:
        raise Unauthenticated(f"Expected {token_type} token, got {payload['type']}")

    return payload


def verify_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    return _verify(token, settings.ENCODE_KEY, ACCESS, settings)


def verify_refresh_token(token: str, settings: Settings) -> Dict[str, Any]:
    return _verify(token, _refresh_secret(settings), REFRESH, settings)
