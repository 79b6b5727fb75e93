"""
Authentication Errors

Every failure of the wallet sign-in protocol is an ``AuthError``. They are
``HTTPException`` subclasses so FastAPI renders them directly as
``{"detail": ...}`` responses with the matching status code.

Each error carries two messages:
- ``detail``: the public message returned to the client
- ``reason``: the internal message used for logging

All verification-stage errors share the same public detail ("Invalid
signature") so a caller cannot tell which sub-check failed.
"""

import functools
import logging
from typing import Callable, Dict, Optional, TypeVar

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)


class AuthError(HTTPException):
    status_code: int = status.HTTP_400_BAD_REQUEST
    public_detail: str = "Bad request"
    headers_: Optional[Dict[str, str]] = None

    def __init__(self, reason: Optional[str] = None) -> None:
        super().__init__(
            status_code=type(self).status_code,
            detail=type(self).public_detail,
            headers=type(self).headers_,
        )
        self.reason = reason or type(self).public_detail

    def __str__(self) -> str:
        return f"{type(self).__name__}: {self.reason}"


class BadRequest(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_detail = "Bad request"


class NotFound(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    public_detail = "User not found"


class Conflict(AuthError):
    status_code = status.HTTP_409_CONFLICT
    public_detail = "Account already exists"


class NoChallenge(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_detail = "Nonce not generated for user"


class ChallengeExpired(NoChallenge):
    public_detail = "Nonce expired, request a new one"


class VerificationError(AuthError):
    """Base class for rejections raised while checking a signed message."""

    status_code = status.HTTP_401_UNAUTHORIZED
    public_detail = "Invalid signature"


class MalformedMessage(VerificationError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_detail = "Malformed sign-in message"


class DomainMismatch(VerificationError):
    pass


class ExpiredMessage(VerificationError):
    pass


class InvalidNonce(VerificationError):
    pass


class InvalidSignature(VerificationError):
    pass


class AddressMismatch(VerificationError):
    pass


class AccountLocked(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    public_detail = "Account is locked"


class Unauthenticated(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    public_detail = "Could not validate credentials"
    headers_ = {"WWW-Authenticate": "Bearer"}


class Internal(AuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_detail = "Internal server error"


def internal_boundary(operation: str) -> Callable[[F], F]:
    """
    Decorator normalizing unexpected failures of an auth operation.

    ``AuthError`` passes through untouched. Anything else (database or crypto
    backend failures) is logged with its traceback and surfaced as ``Internal``
    so store details never reach the caller.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except AuthError as exc:
                logger.info("%s rejected: %s", operation, exc)
                raise
            except Exception as exc:
                logger.error("Unexpected error during %s", operation, exc_info=True)
                raise Internal(f"{operation} failed: {exc}") from exc

        return wrapper  # type: ignore[return-value]

    return decorator
