"""
Service layer for magic codes: issuance, verification and revocation.

Verification order matters. The IP limit is checked strictly before the user
limit, and a user-level failure is never registered while the IP is blocked.
Otherwise an attacker whose IP is already blocked could still lock a chosen
user out by exhausting that user's budget.
"""

import time
from typing import Iterable, Optional

import sentry_sdk
from loguru import logger
from sqlalchemy.orm import Session

from models.config import settings
from models.exceptions import (
    ClientApplicationNotFoundException,
    MagicCodeNotFoundException,
    UserNotFoundException,
)
from models.magic_code_types import LOGIN_OPERATION, MagicCodeResult, VerifyMode
from repositories.client_repository import ClientApplicationRepository
from repositories.db_models import ClientApplication, MagicCode, MagicCodeStatus
from repositories.magic_code_repository import MagicCodeRepository
from repositories.user_repository import UserRepository
from services.code_generator import create_unique_code
from services.flood_service import FloodService

FLOOD_EVENT_IP = "magic_code.failed_verification_ip"
FLOOD_EVENT_USER = "magic_code.failed_verification_user"


def _mask_code(value: str) -> str:
    """Mask a code value for logging."""
    if len(value) <= 2:
        return "***"
    return value[:2] + "*" * (len(value) - 2)


class MagicCodeService:
    """Service for issuing and verifying magic codes."""

    @staticmethod
    def get(db: Session, code_id: int) -> MagicCode:
        """
        Get a magic code by ID.

        Raises:
            MagicCodeNotFoundException: If the code does not exist
        """
        code = MagicCodeRepository(db).get_by_id(code_id)
        if not code:
            raise MagicCodeNotFoundException(code_id)
        return code

    @staticmethod
    def resolve_client(
        db: Session, client_id: Optional[str] = None, user_id: Optional[int] = None
    ) -> ClientApplication:
        """
        Resolve a public client identifier to a client application.

        Without an identifier, the user's own client or the default client is used.

        Raises:
            ClientApplicationNotFoundException: If no client matches
        """
        client = ClientApplicationRepository(db).resolve(client_id, user_id)
        if not client:
            raise ClientApplicationNotFoundException(client_id)
        return client

    @staticmethod
    def issue(
        db: Session,
        operation: str,
        user_id: int,
        client_id: int,
        email: Optional[str] = None,
        now: Optional[int] = None,
    ) -> MagicCode:
        """
        Create a new magic code.

        Does not retry on DuplicateMagicCodeException; callers should re-run
        the whole issuance.

        Args:
            db: Database session
            operation: The operation this code authorizes
            user_id: The user the code is for
            client_id: Primary key of the client application
            email: Target address, defaults to the user's email
            now: Issuance time in epoch seconds (defaults to the clock)

        Raises:
            UserNotFoundException: Unknown user
            ClientApplicationNotFoundException: Unknown client application
            DuplicateMagicCodeException: No unique value could be generated
        """
        issued_at = int(time.time()) if now is None else now

        user = UserRepository(db).get_by_id(user_id)
        if not user:
            raise UserNotFoundException(user_id)
        if not ClientApplicationRepository(db).get_by_id(client_id):
            raise ClientApplicationNotFoundException(client_id)

        repo = MagicCodeRepository(db)
        value = create_unique_code(repo)

        code = repo.create(
            now=issued_at,
            user_id=user.id,
            client_id=client_id,
            value=value,
            operation=operation,
            email=email if email is not None else user.email,
            expire=issued_at + settings.MAGIC_CODE_TTL,
            login_allowed=operation in settings.MAGIC_CODE_LOGIN_PERMITTED_OPERATIONS,
        )
        repo.commit()
        repo.refresh(code)

        logger.info(
            f"Magic code {code.id} issued for user {user_id} "
            f"(operation={operation}, client={client_id}, login_allowed={code.login_allowed})"
        )
        return code

    @staticmethod
    def verify(
        db: Session,
        value: str,
        operation: str,
        mode: VerifyMode,
        user_id: int,
        client_id: int,
        email: Optional[str] = None,
        ip_address: Optional[str] = None,
        now: Optional[int] = None,
    ) -> MagicCodeResult:
        """
        Verify a magic code and consume it on success.

        Every reason a code does not match collapses into INVALID.

        Args:
            db: Database session
            value: The code as typed by the user
            operation: The operation being authorized
            mode: LOGIN consumes login eligibility, OPERATION revokes the code
            user_id: The user presenting the code
            client_id: Primary key of the client application
            email: Address the code was sent to, defaults to the user's email
            ip_address: Client IP for flood control, defaults to the request's
            now: Verification time in epoch seconds (defaults to the clock)
        """
        current = int(time.time()) if now is None else now
        flood = settings.flood_config()
        identifier = str(user_id)

        if not FloodService.is_allowed(
            db, FLOOD_EVENT_IP, flood.ip_limit, flood.ip_window, ip_address, current
        ):
            # Only the IP counter is touched while the IP is blocked
            FloodService.register(
                db, FLOOD_EVENT_IP, flood.ip_window, ip_address, current
            )
            db.commit()
            logger.warning(
                f"Magic code verification failed for user {user_id}. IP blocked."
            )
            sentry_sdk.capture_message(
                "Magic code verification blocked by IP flood limit", level="warning"
            )
            return MagicCodeResult.BLOCKED_BY_IP

        if not FloodService.is_allowed(
            db, FLOOD_EVENT_USER, flood.user_limit, flood.user_window, identifier, current
        ):
            FloodService.register(
                db, FLOOD_EVENT_IP, flood.ip_window, ip_address, current
            )
            db.commit()
            logger.warning(
                f"Magic code verification failed for user {user_id}. User blocked."
            )
            sentry_sdk.capture_message(
                f"Magic code verification blocked by user flood limit (user_id={user_id})",
                level="warning",
            )
            return MagicCodeResult.BLOCKED_BY_USER

        target_email = (
            email if email is not None else UserRepository(db).get_email(user_id)
        )
        repo = MagicCodeRepository(db)

        consumed = False
        if target_email is not None:
            conditions = {
                "value": value,
                "user_id": user_id,
                "email": target_email,
                "operation": operation,
                "client_id": client_id,
                "status": MagicCodeStatus.ACTIVE,
            }
            if mode == VerifyMode.LOGIN:
                conditions["login_allowed"] = True

            ids = repo.query_ids(conditions, expire_at_least=current, limit=1)
            if ids:
                consumed = repo.consume(
                    ids[0],
                    revoke=mode != VerifyMode.LOGIN or operation == LOGIN_OPERATION,
                    revoke_login=mode == VerifyMode.LOGIN,
                    require_login_allowed=mode == VerifyMode.LOGIN,
                    now=current,
                )
                if not consumed:
                    logger.warning(
                        f"Magic code {ids[0]} was consumed by a concurrent verification"
                    )

        if not consumed:
            FloodService.register(
                db, FLOOD_EVENT_IP, flood.ip_window, ip_address, current
            )
            FloodService.register(
                db, FLOOD_EVENT_USER, flood.user_window, identifier, current
            )
            db.commit()
            logger.warning(
                f"Magic code {_mask_code(value)} is not found for user {user_id}."
            )
            return MagicCodeResult.INVALID

        # The IP counter is deliberately left alone on success
        FloodService.clear(db, FLOOD_EVENT_USER, identifier)
        db.commit()

        logger.info(
            f"Magic code verified for user {user_id} "
            f"(operation={operation}, mode={mode.value})"
        )
        return MagicCodeResult.SUCCESS

    @staticmethod
    def revoke(db: Session, code_id: int, now: Optional[int] = None) -> None:
        """
        Revoke a magic code by ID.

        A missing code is treated as already revoked.
        """
        repo = MagicCodeRepository(db)
        code = repo.get_by_id(code_id)
        if not code:
            logger.debug(f"Magic code {code_id} not found, nothing to revoke")
            return

        code.revoke()
        repo.save(code, now=int(time.time()) if now is None else now)
        repo.commit()
        logger.info(f"Magic code {code_id} revoked")

    @staticmethod
    def revoke_multiple(
        db: Session, ids: Iterable[int], now: Optional[int] = None
    ) -> None:
        """
        Revoke several magic codes independently.

        A failure on one ID is logged and does not stop the others.
        """
        for code_id in ids:
            try:
                MagicCodeService.revoke(db, code_id, now=now)
            except Exception as e:
                db.rollback()
                logger.error(f"Failed to revoke magic code {code_id}: {e!r}")
