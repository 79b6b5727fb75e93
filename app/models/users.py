import enum
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import BigInteger, Column, DateTime, Enum, String, Text
from sqlalchemy.sql import func

from app.db.base import Base


class Role(str, enum.Enum):
    GUEST = "guest"
    DONOR = "donor"
    ADMIN = "admin"
    BENEFICIARY = "beneficiary"
    VENDOR = "vendor"
    ORACLE = "oracle"
    GOVERNMENT = "government"


class Status(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    BLOCKED = "blocked"
    SUSPENDED = "suspended"


LOCKED_STATUSES = (Status.BLOCKED, Status.SUSPENDED)


@dataclass(frozen=True)
class PendingChallenge:
    """An issued, not yet consumed sign-in nonce."""

    nonce: str
    expires_at: Optional[int] = None  # epoch seconds, None = never

    def is_expired(self, now: int) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class Account(Base):
    """Model for accounts table
    Example:
    {
        "id": "550e8400-e29b-41d4-a716-446655440000",
        "name": "Alice",
        "email": "alice@example.com",
        "wallet_address": "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4",
        "nonce": "9f1c2d3e4a5b6c7d8e9f0a1b2c3d4e5f",
        "nonce_expires_at": 1767225600,
        "role": "donor",
        "status": "active",
        "created_at": "2026-01-01T12:00:00"
    }
    """

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(Text, nullable=False)
    email = Column(String(320), nullable=True, unique=True)
    password_hash = Column(Text, nullable=True)
    wallet_address = Column(String(42), nullable=False, unique=True)
    nonce = Column(String(128), nullable=True)
    nonce_expires_at = Column(BigInteger, nullable=True)
    role = Column(Enum(Role, values_callable=lambda e: [m.value for m in e]), nullable=False, default=Role.GUEST)
    status = Column(Enum(Status, values_callable=lambda e: [m.value for m in e]), nullable=False, default=Status.PENDING)
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    @property
    def challenge(self) -> Optional[PendingChallenge]:
        if not self.nonce:
            return None
        return PendingChallenge(nonce=self.nonce, expires_at=self.nonce_expires_at)

    @property
    def is_locked(self) -> bool:
        return self.status in LOCKED_STATUSES
