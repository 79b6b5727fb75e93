"""
Wallet sign-in protocol.

Sequences the account store, the SIWE verifier and the session issuer into
the externally callable operations: nonce issuance (by wallet or by email),
login, whoami, refresh and registration.

Login state machine: AwaitingNonce -> AwaitingSignature -> Verified | Rejected.
Every step before nonce consumption is a read or an in-memory check, so a
rejection up to that point leaves the account untouched and the client may
retry against the same nonce. Once the nonce is consumed the challenge can
never be replayed, even if the eligibility gate then rejects the login.
"""

import logging
import time
from typing import Optional

from app.core.config import Settings
from app.core.errors import (
    AccountLocked,
    AddressMismatch,
    BadRequest,
    ChallengeExpired,
    Conflict,
    InvalidNonce,
    MalformedMessage,
    NoChallenge,
    NotFound,
    internal_boundary,
)
from app.core.jwt_utils import SessionTokens, issue_session, verify_access_token, verify_refresh_token
from app.core.security import hash_password
from app.core.siwe_auth import generate_nonce, parse_message, verify_message
from app.models.users import Account, Role, Status
from app.schemas.auth import AccountProjection, AuthResponse, NonceResponse, RegisterRequest
from app.services.account_store import AccountStore

logger = logging.getLogger(__name__)

# Registration status policy, roles not listed start pending
INITIAL_STATUS = {
    Role.DONOR: Status.ACTIVE,
    Role.ADMIN: Status.BLOCKED,
}


class AuthService:
    def __init__(self, store: AccountStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    # ------------------------------------------------------------------
    # Nonce issuance
    # ------------------------------------------------------------------

    def _issue_nonce(self, account: Account) -> str:
        nonce = generate_nonce()
        expires_at = None
        if self.settings.NONCE_EXPIRY_SECONDS > 0:
            expires_at = int(time.time()) + self.settings.NONCE_EXPIRY_SECONDS
        # overwrites any outstanding challenge
        self.store.set_nonce(account.id, nonce, expires_at)
        logger.info("Issued nonce for account %s", account.id)
        return nonce

    @internal_boundary("request_nonce")
    def request_nonce(self, wallet_address: Optional[str]) -> NonceResponse:
        """Issue a fresh nonce to the account bound to ``wallet_address``."""
        wallet_address = (wallet_address or "").strip()
        if not wallet_address:
            raise BadRequest("Wallet address is required")

        account = self.store.find_by_wallet(wallet_address)
        if account is None:
            raise NotFound("No account for the requested wallet")

        return NonceResponse(nonce=self._issue_nonce(account))

    @internal_boundary("precheck")
    def precheck(self, email: Optional[str]) -> NonceResponse:
        """
        Issue a fresh nonce to the account registered under ``email``.

        The wallet address is returned too, the client needs it to render the
        message it signs.
        """
        email = (email or "").strip()
        if not email:
            raise BadRequest("Email is required")

        account = self.store.find_by_email(email)
        if account is None:
            raise NotFound("No account for the requested email")

        nonce = self._issue_nonce(account)
        return NonceResponse(nonce=nonce, wallet_address=account.wallet_address)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def resolve_account(self, message: str, email: Optional[str] = None) -> Account:
        """
        Map a sign-in attempt to exactly one account.

        The wallet comes from the address line of the parsed message. Email is
        only consulted when no account owns that wallet.
        """
        parse_error = None
        account = None
        try:
            account = self.store.find_by_wallet(str(parse_message(message).address))
        except MalformedMessage as exc:
            parse_error = exc

        if account is None and email:
            account = self.store.find_by_email(email)
        if account is None:
            if parse_error is not None and not email:
                raise parse_error
            raise NotFound("No account matches the message address or email")
        return account

    @internal_boundary("login")
    def login(self, message: Optional[str], signature: Optional[str], email: Optional[str] = None) -> AuthResponse:
        if not message or not signature:
            raise BadRequest("Message and signature are required")

        account = self.resolve_account(message, email)

        challenge = account.challenge
        if challenge is None:
            raise NoChallenge(f"Account {account.id} has no outstanding nonce")
        if challenge.is_expired(int(time.time())):
            raise ChallengeExpired(f"Nonce for account {account.id} expired at {challenge.expires_at}")

        # nonce is left in place on failure so the client can retry
        verified = verify_message(
            message,
            signature,
            expected_nonce=challenge.nonce,
            expected_domain=self.settings.SIWE_DOMAIN or None,
        )

        if verified.address.lower() != account.wallet_address.lower():
            raise AddressMismatch(
                f"Signer {verified.address} is not bound to account {account.id}"
            )

        # point of no return
        if not self.store.consume_nonce(account.id, challenge.nonce):
            raise InvalidNonce(f"Nonce for account {account.id} was consumed concurrently")
        logger.info("Consumed nonce for account %s", account.id)

        if account.is_locked:
            raise AccountLocked(f"Account {account.id} is {account.status.value}")

        tokens = issue_session(account, self.settings)
        logger.info("Wallet login succeeded for account %s", account.id)
        return self._auth_response(account, tokens)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @internal_boundary("whoami")
    def who_am_i(self, access_token: Optional[str]) -> AccountProjection:
        payload = verify_access_token(access_token, self.settings)
        account = self.store.find_by_id(payload["sub"])
        if account is None:
            raise NotFound(f"Account {payload['sub']} no longer exists")
        return AccountProjection.from_account(account)

    @internal_boundary("refresh")
    def refresh(self, refresh_token: Optional[str]) -> AuthResponse:
        payload = verify_refresh_token(refresh_token, self.settings)
        account = self.store.find_by_id(payload["sub"])
        if account is None:
            raise NotFound(f"Account {payload['sub']} no longer exists")
        if account.is_locked:
            raise AccountLocked(f"Account {account.id} is {account.status.value}")
        return self._auth_response(account, issue_session(account, self.settings))

    @staticmethod
    def _auth_response(account: Account, tokens: SessionTokens) -> AuthResponse:
        return AuthResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            account=AccountProjection.from_account(account),
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @internal_boundary("register")
    def register(self, request: RegisterRequest) -> Account:
        if self.store.find_by_email(request.email):
            raise Conflict("Email already registered")
        if self.store.find_by_wallet(request.wallet_address):
            raise Conflict("Wallet already registered")

        account = self.store.create({
            "name": request.name.strip(),
            "email": request.email.strip(),
            "password_hash": hash_password(request.password),
            "wallet_address": request.wallet_address.strip(),
            "role": request.role,
            "status": INITIAL_STATUS.get(request.role, Status.PENDING),
        })
        logger.info("Registered account %s with role %s", account.id, account.role.value)
        return account
