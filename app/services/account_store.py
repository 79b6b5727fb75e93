"""
Account Store

SQLAlchemy-backed persistence for ``Account`` records, including the nonce
lifecycle of the sign-in challenge.

Nonce rules:
- ``set_nonce`` overwrites unconditionally, so issuing a new nonce silently
  invalidates any previous outstanding challenge.
- ``consume_nonce`` clears the nonce only if it still holds the value the
  caller verified against. The conditional UPDATE makes read-compare-clear
  atomic per account: of two concurrent logins carrying the same nonce, only
  one sees a changed row.
"""

import logging
from typing import Any, Dict, Optional

from eth_utils import to_checksum_address
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import BadRequest, Conflict
from app.models.users import Account

logger = logging.getLogger(__name__)


class AccountStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_wallet(self, address: str) -> Optional[Account]:
        if not address:
            return None
        return (
            self.db.query(Account)
            .filter(func.lower(Account.wallet_address) == address.strip().lower())
            .first()
        )

    def find_by_email(self, email: str) -> Optional[Account]:
        if not email:
            return None
        return (
            self.db.query(Account)
            .filter(func.lower(Account.email) == email.strip().lower())
            .first()
        )

    def find_by_id(self, account_id: str) -> Optional[Account]:
        if not account_id:
            return None
        return self.db.get(Account, account_id)

    def set_nonce(self, account_id: str, nonce: Optional[str], expires_at: Optional[int] = None) -> None:
        self.db.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(nonce=nonce, nonce_expires_at=expires_at if nonce else None)
        )
        self.db.commit()

    def consume_nonce(self, account_id: str, nonce: str) -> bool:
        """
        Clear the account's nonce if it still equals ``nonce``.

        Returns:
            True if this call consumed the nonce, False if it had already been
            consumed or replaced by a concurrent request.
        """
        result = self.db.execute(
            update(Account)
            .where(Account.id == account_id, Account.nonce == nonce)
            .values(nonce=None, nonce_expires_at=None)
        )
        self.db.commit()
        consumed = result.rowcount == 1
        if not consumed:
            logger.warning("Nonce for account %s was already consumed or replaced", account_id)
        return consumed

    def create(self, fields: Dict[str, Any]) -> Account:
        """
        Insert a new account.

        The wallet is stored EIP-55 checksummed and the email lowercased, so the
        unique constraints hold for every casing of the same key.

        Raises:
            BadRequest: If the wallet address is not a valid hex address
            Conflict: If the wallet or email is already taken
        """
        fields = dict(fields)
        try:
            fields["wallet_address"] = to_checksum_address(fields["wallet_address"].strip())
        except (ValueError, TypeError) as exc:
            raise BadRequest("Invalid wallet address") from exc
        if fields.get("email"):
            fields["email"] = fields["email"].strip().lower()

        account = Account(**fields)
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise Conflict("Wallet or email already registered") from exc
        self.db.refresh(account)
        return account
