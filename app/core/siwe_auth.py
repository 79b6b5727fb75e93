"""
Sign-In with Ethereum Utilities

This module handles the Ethereum-specific cryptographic operations for wallet authentication.
It implements message verification for EIP-4361 (Sign-In with Ethereum) messages signed with
EIP-191 personal_sign.

Authentication Flow:
1. Backend generates a random nonce -> generate_nonce()
2. Frontend renders a SIWE message embedding the nonce and signs it with the wallet
3. Frontend sends: message, signature
4. Backend verifies: verify_message()
   - Parses the message into a structured record
   - Checks domain, validity window and nonce
   - Recovers the signer address from the signature
   - Checks the signer is the address declared in the message

The verification uses:
- siwe library for the strict EIP-4361 parse
- eth_account for secp256k1 signer recovery
"""

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from siwe import ISO8601Datetime, SiweMessage

from app.core.errors import (
    AddressMismatch,
    DomainMismatch,
    ExpiredMessage,
    InvalidNonce,
    InvalidSignature,
    MalformedMessage,
)

logger = logging.getLogger(__name__)

NONCE_NUM_BYTES = 16  # 16 bytes = 128 bits = 32 hex characters
DEFAULT_STATEMENT = "Sign in with your wallet."


@dataclass(frozen=True)
class VerifiedMessage:
    message: SiweMessage
    address: str  # recovered signer, EIP-55 checksummed


def generate_nonce(num_bytes: int = NONCE_NUM_BYTES) -> str:
    """
    Generate a cryptographically secure random nonce for wallet authentication.

    Hex output is alphanumeric, as EIP-4361 requires for the nonce field.

    Args:
        num_bytes: Number of random bytes to generate (default: 16 = 32 hex chars)

    Returns:
        Hex-encoded random string (e.g., "a1b2c3d4...")
    """
    if num_bytes < NONCE_NUM_BYTES:
        num_bytes = NONCE_NUM_BYTES
    return secrets.token_hex(num_bytes)


def _timestamp(value: Optional[datetime]) -> Optional[ISO8601Datetime]:
    if value is None:
        return None
    return ISO8601Datetime.from_datetime(value)


def render_message(
    *,
    domain: str,
    address: str,
    uri: str,
    nonce: str,
    chain_id: int = 1,
    statement: Optional[str] = DEFAULT_STATEMENT,
    issued_at: Optional[datetime] = None,
    expiration_time: Optional[datetime] = None,
    not_before: Optional[datetime] = None,
    request_id: Optional[str] = None,
    resources: Optional[List[str]] = None,
) -> str:
    """
    Render the canonical EIP-4361 text a wallet signs.

    The client normally renders this itself; the server-side renderer keeps
    the format in one place for tooling and tests.
    """
    return SiweMessage(
        domain=domain,
        address=address,
        statement=statement,
        uri=uri,
        version="1",
        chain_id=chain_id,
        nonce=nonce,
        issued_at=_timestamp(issued_at or datetime.now(timezone.utc)),
        expiration_time=_timestamp(expiration_time),
        not_before=_timestamp(not_before),
        request_id=request_id,
        resources=resources,
    ).prepare_message()


def parse_message(message: str) -> SiweMessage:
    """
    Strictly parse an EIP-4361 message into a structured record.

    The message declares exactly one address, in its address line; no other
    part of the text is treated as an identity.

    Raises:
        MalformedMessage: If the text is not a well-formed SIWE message
    """
    if not message or not isinstance(message, str):
        raise MalformedMessage("Message is empty")
    try:
        return SiweMessage.from_message(message=message)
    except Exception as exc:
        raise MalformedMessage(f"Unparseable SIWE message: {exc}") from exc


def recover_address(message: str, signature) -> str:
    """
    Recover the EIP-55 address that produced an EIP-191 personal_sign signature.

    Raises:
        InvalidSignature: If the signature is malformed or recovery fails
    """
    if not signature:
        raise InvalidSignature("Signature is empty")
    try:
        return Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as exc:
        raise InvalidSignature(f"Signature recovery failed: {exc}") from exc


def _check_validity_window(parsed: SiweMessage, now: datetime) -> None:
    if parsed.expiration_time is not None and now >= parsed.expiration_time._datetime:
        raise ExpiredMessage(f"Message expired at {parsed.expiration_time}")
    if parsed.not_before is not None and now < parsed.not_before._datetime:
        raise ExpiredMessage(f"Message not valid before {parsed.not_before}")


def verify_message(
    message: str,
    signature,
    expected_nonce: str,
    expected_domain: Optional[str] = None,
    now: Optional[datetime] = None,
) -> VerifiedMessage:
    """
    Verify a signed SIWE message against the nonce issued to the account.

    Checks run in order and stop at the first failure:
    1. Structural parse                      -> MalformedMessage
    2. Domain and validity window            -> DomainMismatch / ExpiredMessage
    3. Embedded nonce equals expected nonce  -> InvalidNonce
    4. Signer recovery                       -> InvalidSignature
    5. Signer equals declared address        -> AddressMismatch

    Args:
        message: The exact text that was signed
        signature: Hex string (or bytes) of the 65-byte signature
        expected_nonce: The nonce stored on the resolved account
        expected_domain: The domain the message must be bound to, None skips the check
        now: Clock override for the validity window

    Returns:
        VerifiedMessage with the parsed record and the recovered address
    """
    parsed = parse_message(message)

    if expected_domain and parsed.domain != expected_domain:
        raise DomainMismatch(f"Expected domain '{expected_domain}', got '{parsed.domain}'")
    _check_validity_window(parsed, now or datetime.now(timezone.utc))

    if not expected_nonce or not hmac.compare_digest(
        str(parsed.nonce).encode(), str(expected_nonce).encode()
    ):
        raise InvalidNonce("Message nonce does not match the issued nonce")

    recovered = recover_address(message, signature)

    if recovered.lower() != str(parsed.address).lower():
        raise AddressMismatch(f"Signer {recovered} is not the declared address {parsed.address}")

    logger.debug("SIWE message verified for %s", recovered)
    return VerifiedMessage(message=parsed, address=recovered)
