"""Router for issuing, inspecting and revoking magic codes.

Every endpoint is restricted to global admins.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import repositories.db_models as db_models
from helpers.rate_limiter import limiter
from models.config import settings
from models.schemas import (
    MagicCode,
    MagicCodeCreate,
    MagicCodeIssued,
    MagicCodeRevokeMultiple,
)
from repositories.database import get_db
from services.magic_code_collector import MagicCodeCollector
from services.magic_code_service import MagicCodeService

router = APIRouter(prefix="/magic-codes", tags=["magic-codes"])


@router.post("", response_model=MagicCodeIssued, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.MAGIC_CODE_ISSUE_RATE_LIMIT)
def issue_magic_code(
    request: Request,
    data: MagicCodeCreate,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> MagicCodeIssued:
    """
    Issue a new magic code for a user and client application.

    The response is the only place the code value is ever returned.
    Delivery to the user's email is up to the calling admin.
    """
    client = MagicCodeService.resolve_client(db, data.client_id, data.user_id)
    code = MagicCodeService.issue(
        db,
        operation=data.operation,
        user_id=data.user_id,
        client_id=client.id,
        email=data.email,
    )
    return MagicCodeIssued.model_validate(code)


@router.get("", response_model=List[MagicCode])
def list_magic_codes(
    user_id: int,
    operation: Optional[str] = None,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> List[MagicCode]:
    """List codes belonging to an account, optionally for one operation."""
    codes = MagicCodeCollector.collect_for_account(db, user_id, operation)
    return [MagicCode.model_validate(code) for code in codes]


@router.post("/revoke", status_code=status.HTTP_204_NO_CONTENT)
def revoke_magic_codes(
    data: MagicCodeRevokeMultiple,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> Response:
    """Revoke several codes. Unknown IDs are ignored."""
    MagicCodeService.revoke_multiple(db, data.ids)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{code_id}", response_model=MagicCode)
def get_magic_code(
    code_id: int,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> MagicCode:
    return MagicCode.model_validate(MagicCodeService.get(db, code_id))


@router.post("/{code_id}/revoke", status_code=status.HTTP_204_NO_CONTENT)
def revoke_magic_code(
    code_id: int,
    current_user: db_models.User = Depends(auth.get_admin_user),
    db: Session = Depends(get_db),
) -> Response:
    """Revoke a code. Revoking an unknown or already revoked code is a no-op."""
    MagicCodeService.revoke(db, code_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
