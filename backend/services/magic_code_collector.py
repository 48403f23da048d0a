"""
Collects magic codes for housekeeping and account/client teardown.
"""

import time
from typing import Iterable, Optional

from loguru import logger
from sqlalchemy.orm import Session

from repositories.client_repository import ClientApplicationRepository
from repositories.db_models import MagicCode
from repositories.magic_code_repository import MagicCodeRepository


class MagicCodeCollector:
    """Service for selecting and bulk-deleting magic codes."""

    @staticmethod
    def collect_expired(
        db: Session, limit: int = 0, now: Optional[int] = None
    ) -> list[MagicCode]:
        """
        Get codes whose deadline has passed.

        Args:
            db: Database session
            limit: Maximum number of codes, 0 for all
            now: Reference time in epoch seconds (defaults to the clock)
        """
        current = int(time.time()) if now is None else now
        repo = MagicCodeRepository(db)
        ids = repo.query_ids({}, expire_before=current, limit=limit)
        return repo.get_many_by_ids(ids)

    @staticmethod
    def collect_for_account(
        db: Session, user_id: int, operation: Optional[str] = None
    ) -> list[MagicCode]:
        """
        Get codes owned by a user, plus codes of clients acting for that user.

        The operation filter only applies to the user's own codes.
        """
        repo = MagicCodeRepository(db)
        conditions: dict = {"user_id": user_id}
        if operation:
            conditions["operation"] = operation
        ids = set(repo.query_ids(conditions))

        for client in ClientApplicationRepository(db).get_by_default_user(user_id):
            ids.update(repo.query_ids({"client_id": client.id}))

        return repo.get_many_by_ids(ids)

    @staticmethod
    def collect_for_client(db: Session, client_id: int) -> list[MagicCode]:
        """Get all codes issued for one client application."""
        repo = MagicCodeRepository(db)
        return repo.get_many_by_ids(repo.query_ids({"client_id": client_id}))

    @staticmethod
    def delete_multiple(db: Session, codes: Iterable[MagicCode]) -> int:
        """
        Delete the given codes and commit.

        Returns:
            Number of codes deleted
        """
        repo = MagicCodeRepository(db)
        count = repo.delete_many(codes)
        repo.commit()
        if count:
            logger.info(f"Deleted {count} magic codes")
        return count
