"""
Magic code verification provider.

Adapts an incoming HTTP request to the magic code verification engine so
the authentication layer can ask "is this request verified for operation X".
"""

from typing import Callable, Optional, Union

from fastapi import Request
from loguru import logger
from sqlalchemy.orm import Session

from helpers.request_utils import get_client_ip, get_header
from models.magic_code_types import MagicCodeResult, VerificationResult, VerifyMode
from repositories.client_repository import ClientApplicationRepository
from repositories.db_models import ClientApplication
from services.magic_code_service import MagicCodeService

HEADER_MAGIC_CODE = "X-Verification-Magic-Code"
HEADER_CONSUMER_ID = "X-Consumer-ID"

UNHANDLED_NO_CONSUMER = "magic_code_no_consumer_found"
ERR_INVALID_CODE = "magic_code_invalid_code"

_Verify = Callable[[ClientApplication, str], VerificationResult]


class MagicCodeVerificationProvider:
    """Verification provider reading the code from a request header."""

    @staticmethod
    def negotiate_client(
        db: Session, request: Request
    ) -> Optional[ClientApplication]:
        """
        Find the client application a request is made on behalf of.

        Uses the X-Consumer-ID header, falling back to the default client.
        """
        client_id = get_header(request, HEADER_CONSUMER_ID)
        return ClientApplicationRepository(db).resolve(client_id or None)

    @staticmethod
    def _prepare(
        db: Session, request: Request
    ) -> Union[VerificationResult, Callable[[_Verify], VerificationResult]]:
        client = MagicCodeVerificationProvider.negotiate_client(db, request)
        if not client:
            logger.error("Client application could not be negotiated for request")
            return VerificationResult.unhandled(UNHANDLED_NO_CONSUMER)

        code = get_header(request, HEADER_MAGIC_CODE)
        if code is None:
            return VerificationResult.unhandled()
        if not code:
            return VerificationResult.err(ERR_INVALID_CODE)

        return lambda verify: verify(client, code)

    @staticmethod
    def _verify(
        db: Session,
        request: Request,
        mode: VerifyMode,
        operation: str,
        user_id: int,
        email: Optional[str],
    ) -> VerificationResult:
        prepared = MagicCodeVerificationProvider._prepare(db, request)
        if isinstance(prepared, VerificationResult):
            return prepared

        def verify(client: ClientApplication, code: str) -> VerificationResult:
            result = MagicCodeService.verify(
                db,
                code,
                operation,
                mode,
                user_id,
                client.id,
                email=email,
                ip_address=get_client_ip(request),
            )
            if result == MagicCodeResult.SUCCESS:
                return VerificationResult.ok()
            return VerificationResult.err(f"magic_code_{result.value}")

        return prepared(verify)

    @staticmethod
    def verify_operation(
        db: Session,
        request: Request,
        operation: str,
        user_id: int,
        email: Optional[str] = None,
    ) -> VerificationResult:
        """Verify the request for an operation, revoking the code on success."""
        return MagicCodeVerificationProvider._verify(
            db, request, VerifyMode.OPERATION, operation, user_id, email
        )

    @staticmethod
    def verify_login(
        db: Session,
        request: Request,
        operation: str,
        user_id: int,
        email: Optional[str] = None,
    ) -> VerificationResult:
        """Verify the request for a login, consuming only login eligibility."""
        return MagicCodeVerificationProvider._verify(
            db, request, VerifyMode.LOGIN, operation, user_id, email
        )
