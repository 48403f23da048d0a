"""Repository for flood control events."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import FloodEvent


class FloodEventRepository(BaseRepository[FloodEvent]):
    """
    Shared, windowed event counters keyed by (event, identifier).

    Rows are only ever inserted or deleted, never updated, so concurrent
    registrations cannot overwrite each other.
    """

    def __init__(self, db: Session):
        super().__init__(FloodEvent, db)

    def count_since(self, event: str, identifier: str, since: int) -> int:
        """Count events for the key with a timestamp after `since`."""
        result = (
            self.db.query(func.count(FloodEvent.id))
            .filter(
                FloodEvent.event == event,
                FloodEvent.identifier == identifier,
                FloodEvent.timestamp > since,
            )
            .scalar()
        )
        return result or 0

    def add_event(
        self, event: str, identifier: str, timestamp: int, expiration: int
    ) -> FloodEvent:
        """Insert one event."""
        return self.add(
            FloodEvent(
                event=event,
                identifier=identifier,
                timestamp=timestamp,
                expiration=expiration,
            )
        )

    def delete_for_key(self, event: str, identifier: str) -> int:
        """
        Delete all events for the key.

        Returns:
            Number of events deleted
        """
        result = (
            self.db.query(FloodEvent)
            .filter(FloodEvent.event == event, FloodEvent.identifier == identifier)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return result  # type: ignore[return-value]

    def delete_expired_for_key(self, event: str, identifier: str, now: int) -> int:
        """Delete events of the key whose expiration has passed."""
        result = (
            self.db.query(FloodEvent)
            .filter(
                FloodEvent.event == event,
                FloodEvent.identifier == identifier,
                FloodEvent.expiration < now,
            )
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return result  # type: ignore[return-value]

    def delete_expired(self, now: int) -> int:
        """Delete every expired event, across all keys."""
        result = (
            self.db.query(FloodEvent)
            .filter(FloodEvent.expiration < now)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return result  # type: ignore[return-value]
