"""Router exposing magic code request verification."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from models.magic_code_types import (
    MagicCodeResult,
    VerificationResult,
    VerificationStatus,
)
from models.schemas import VerificationRequest, VerificationResultResponse
from repositories.database import get_db
from services.verification_provider import MagicCodeVerificationProvider

router = APIRouter(prefix="/verification", tags=["verification"])

_BLOCKED_ERRORS = {
    f"magic_code_{MagicCodeResult.BLOCKED_BY_IP.value}",
    f"magic_code_{MagicCodeResult.BLOCKED_BY_USER.value}",
}


def _to_response(result: VerificationResult) -> JSONResponse:
    if result.status == VerificationStatus.OK:
        status_code = 200
    elif result.status == VerificationStatus.UNHANDLED:
        status_code = 400
    elif result.error in _BLOCKED_ERRORS:
        status_code = 429
    else:
        status_code = 403

    body = VerificationResultResponse(status=result.status, error=result.error)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@router.post("/login", response_model=VerificationResultResponse)
def verify_login(
    request: Request,
    data: VerificationRequest,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """
    Verify the X-Verification-Magic-Code header for a login.

    Only the login eligibility of the code is consumed, so a code issued for
    e.g. "set-password" can still authorize that operation afterwards.
    """
    result = MagicCodeVerificationProvider.verify_login(
        db, request, data.operation, data.user_id, data.email
    )
    return _to_response(result)


@router.post("/operation", response_model=VerificationResultResponse)
def verify_operation(
    request: Request,
    data: VerificationRequest,
    db: Session = Depends(get_db),
) -> JSONResponse:
    """Verify the X-Verification-Magic-Code header for an operation."""
    result = MagicCodeVerificationProvider.verify_operation(
        db, request, data.operation, data.user_id, data.email
    )
    return _to_response(result)
