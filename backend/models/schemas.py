from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, List

from models.magic_code_types import VerificationStatus
from repositories.db_models import MagicCodeStatus


# Magic Code Schemas
class MagicCodeCreate(BaseModel):
    operation: str = Field(..., min_length=1, max_length=256)
    user_id: int
    client_id: Optional[str] = Field(
        default=None,
        description="Public client identifier; the default client is used when omitted",
    )
    email: Optional[EmailStr] = Field(
        default=None, description="Target address; defaults to the user's email"
    )


class MagicCode(BaseModel):
    id: int
    uuid: str
    user_id: int
    client_id: int
    email: str
    operation: str
    expire: int
    status: MagicCodeStatus
    login_allowed: bool
    created: int
    changed: int

    model_config = ConfigDict(from_attributes=True)


class MagicCodeIssued(MagicCode):
    """Returned once, at issuance: the only response carrying the code value."""

    value: str


class MagicCodeRevokeMultiple(BaseModel):
    ids: List[int] = Field(..., max_length=1000)


# Verification Schemas
class VerificationRequest(BaseModel):
    operation: str = Field(..., min_length=1, max_length=256)
    user_id: int
    email: Optional[EmailStr] = None


class VerificationResultResponse(BaseModel):
    status: VerificationStatus
    error: Optional[str] = None


class TokenData(BaseModel):
    email: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    environment: str
