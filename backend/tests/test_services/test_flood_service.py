"""Tests for FloodService windowed limits."""

from sqlalchemy.orm import Session

from core.correlation import client_ip_var
from repositories.db_models import FloodEvent
from services.flood_service import UNKNOWN_IDENTIFIER, FloodService

EVENT = "test.event"
NOW = 1_700_000_000


class TestFloodServiceIsAllowed:
    """Tests for threshold checks."""

    def test_allowed_below_threshold(self, db_session: Session) -> None:
        for _ in range(2):
            FloodService.register(db_session, EVENT, 60, "key", now=NOW)
        assert FloodService.is_allowed(db_session, EVENT, 3, 60, "key", now=NOW)

    def test_blocked_at_threshold(self, db_session: Session) -> None:
        for _ in range(3):
            FloodService.register(db_session, EVENT, 60, "key", now=NOW)
        assert not FloodService.is_allowed(db_session, EVENT, 3, 60, "key", now=NOW)

    def test_events_outside_window_are_ignored(self, db_session: Session) -> None:
        for _ in range(3):
            FloodService.register(db_session, EVENT, 60, "key", now=NOW)
        assert FloodService.is_allowed(db_session, EVENT, 3, 60, "key", now=NOW + 60)

    def test_keys_are_independent(self, db_session: Session) -> None:
        for _ in range(3):
            FloodService.register(db_session, EVENT, 60, "a", now=NOW)
        assert FloodService.is_allowed(db_session, EVENT, 3, 60, "b", now=NOW)
        assert FloodService.is_allowed(db_session, "other.event", 3, 60, "a", now=NOW)


class TestFloodServiceRegisterAndClear:
    """Tests for registration, clearing and garbage collection."""

    def test_register_prunes_expired_events_of_key(self, db_session: Session) -> None:
        FloodService.register(db_session, EVENT, 10, "key", now=NOW)
        FloodService.register(db_session, EVENT, 10, "other", now=NOW)
        FloodService.register(db_session, EVENT, 10, "key", now=NOW + 100)

        identifiers = sorted(e.identifier for e in db_session.query(FloodEvent).all())
        assert identifiers == ["key", "other"]

    def test_clear_removes_only_that_key(self, db_session: Session) -> None:
        FloodService.register(db_session, EVENT, 60, "a", now=NOW)
        FloodService.register(db_session, EVENT, 60, "b", now=NOW)

        FloodService.clear(db_session, EVENT, "a")

        assert FloodService.is_allowed(db_session, EVENT, 1, 60, "a", now=NOW)
        assert not FloodService.is_allowed(db_session, EVENT, 1, 60, "b", now=NOW)

    def test_garbage_collect_deletes_expired(self, db_session: Session) -> None:
        FloodService.register(db_session, EVENT, 10, "a", now=NOW)
        FloodService.register(db_session, EVENT, 1000, "b", now=NOW)

        deleted = FloodService.garbage_collect(db_session, now=NOW + 100)

        assert deleted == 1
        assert db_session.query(FloodEvent).count() == 1

    def test_identifier_defaults_to_request_ip(self, db_session: Session) -> None:
        token = client_ip_var.set("192.0.2.10")
        try:
            FloodService.register(db_session, EVENT, 60, now=NOW)
        finally:
            client_ip_var.reset(token)

        event = db_session.query(FloodEvent).one()
        assert event.identifier == "192.0.2.10"

    def test_identifier_falls_back_to_unknown(self, db_session: Session) -> None:
        FloodService.register(db_session, EVENT, 60, now=NOW)
        event = db_session.query(FloodEvent).one()
        assert event.identifier == UNKNOWN_IDENTIFIER
