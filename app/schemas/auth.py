from typing import Optional

from pydantic import BaseModel, Field

from app.models.users import Role
from app.schemas.my_base_model import CustomBaseModel


class NonceRequest(BaseModel):
    """Request model for nonce generation - input validation"""

    wallet_address: Optional[str] = Field(None, description="Wallet address bound to the account")


class PrecheckRequest(BaseModel):
    """Request model for nonce generation by email - input validation"""

    email: Optional[str] = Field(None, description="Account email")


class NonceResponse(CustomBaseModel):
    """Response model for nonce generation - output"""

    nonce: str = ""
    wallet_address: Optional[str] = None


class LoginRequest(BaseModel):
    """Request model for wallet login - input validation"""

    message: Optional[str] = Field(None, description="The EIP-4361 message that was signed")
    signature: Optional[str] = Field(None, description="Hex-encoded personal_sign signature")
    email: Optional[str] = Field(None, description="Fallback account lookup key")


class RefreshRequest(BaseModel):
    """Request model for token refresh - input validation"""

    refresh_token: Optional[str] = Field(None, description="Refresh token from login")


class RegisterRequest(BaseModel):
    """Request model for account registration - input validation"""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    wallet_address: str = Field(..., min_length=1)
    role: Role = Role.DONOR


class AccountProjection(CustomBaseModel):
    """Public view of an account, never includes the password hash or nonce"""

    id: str
    name: str = ""
    email: Optional[str] = None
    wallet_address: str = ""
    role: str = ""
    status: str = ""

    @classmethod
    def from_account(cls, account) -> "AccountProjection":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            wallet_address=account.wallet_address,
            role=account.role,
            status=account.status,
        )


class AuthResponse(CustomBaseModel):
    """Response model for authentication - output"""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    account: AccountProjection
