"""
Flood control: sliding-window attempt limits shared across workers.

Counters live in the database, keyed by (event, identifier). When no
identifier is given the current request's client IP is used.
"""

import time
from typing import Optional

from sqlalchemy.orm import Session

from core.correlation import get_client_ip
from repositories.flood_repository import FloodEventRepository

UNKNOWN_IDENTIFIER = "unknown"


def _now(now: Optional[int]) -> int:
    return int(time.time()) if now is None else now


def _identifier(identifier: Optional[str]) -> str:
    if identifier:
        return identifier
    return get_client_ip() or UNKNOWN_IDENTIFIER


class FloodService:
    """Service for windowed event limits."""

    @staticmethod
    def is_allowed(
        db: Session,
        event: str,
        threshold: int,
        window: int,
        identifier: Optional[str] = None,
        now: Optional[int] = None,
    ) -> bool:
        """
        Check whether the key is still below its limit.

        Args:
            db: Database session
            event: Scope key, e.g. "magic_code.failed_verification_ip"
            threshold: Maximum number of events allowed in the window
            window: Trailing window in seconds
            identifier: Counter identifier, defaults to the client IP
            now: Current epoch seconds (defaults to the clock)

        Returns:
            True if fewer than `threshold` events fall within the window
        """
        repo = FloodEventRepository(db)
        current = _now(now)
        count = repo.count_since(event, _identifier(identifier), current - window)
        return count < threshold

    @staticmethod
    def register(
        db: Session,
        event: str,
        window: int = 3600,
        identifier: Optional[str] = None,
        now: Optional[int] = None,
    ) -> None:
        """
        Record one event for the key and prune its expired events.

        Does not commit; the caller owns the transaction.
        """
        repo = FloodEventRepository(db)
        current = _now(now)
        key = _identifier(identifier)
        repo.add_event(event, key, timestamp=current, expiration=current + window)
        repo.delete_expired_for_key(event, key, current)

    @staticmethod
    def clear(db: Session, event: str, identifier: Optional[str] = None) -> None:
        """Forget all events for the key. Does not commit."""
        FloodEventRepository(db).delete_for_key(event, _identifier(identifier))

    @staticmethod
    def garbage_collect(db: Session, now: Optional[int] = None) -> int:
        """
        Delete expired events of every key and commit.

        Returns:
            Number of events deleted
        """
        repo = FloodEventRepository(db)
        count = repo.delete_expired(_now(now))
        repo.commit()
        return count
