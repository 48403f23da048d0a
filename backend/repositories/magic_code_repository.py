"""Repository for magic code records."""

from typing import Any, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import MagicCode, MagicCodeStatus


class MagicCodeRepository(BaseRepository[MagicCode]):
    """
    Keyed storage for magic codes.

    Queries take a mapping of column name to value (an exact-match
    conjunction) plus optional bounds on `expire`.
    """

    def __init__(self, db: Session):
        super().__init__(MagicCode, db)

    def create(self, *, now: int, **fields: Any) -> MagicCode:
        """
        Create and flush a new magic code.

        Returns:
            The new record with its ID assigned
        """
        fields.setdefault("status", MagicCodeStatus.ACTIVE)
        code = MagicCode(created=now, changed=now, **fields)
        return self.add(code)

    def _filtered(
        self,
        conditions: Mapping[str, Any],
        expire_before: Optional[int] = None,
        expire_at_least: Optional[int] = None,
    ):
        query = self.db.query(MagicCode)
        for column_name, value in conditions.items():
            column = getattr(MagicCode, column_name, None)
            if column is None:
                raise ValueError(f"Unknown magic code field: {column_name}")
            query = query.filter(column == value)
        if expire_before is not None:
            query = query.filter(MagicCode.expire < expire_before)
        if expire_at_least is not None:
            query = query.filter(MagicCode.expire >= expire_at_least)
        return query

    def query_ids(
        self,
        conditions: Mapping[str, Any],
        *,
        expire_before: Optional[int] = None,
        expire_at_least: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[int]:
        """
        Get IDs of codes matching all conditions, ordered by ID.

        Args:
            conditions: Column name to exact value
            expire_before: Only codes with expire < this epoch
            expire_at_least: Only codes with expire >= this epoch
            limit: Maximum number of IDs (None or 0 for no limit)
        """
        query = (
            self._filtered(conditions, expire_before, expire_at_least)
            .with_entities(MagicCode.id)
            .order_by(MagicCode.id)
        )
        if limit:
            query = query.limit(limit)
        return [row[0] for row in query.all()]

    def count_matching(self, conditions: Mapping[str, Any]) -> int:
        """Count codes matching all conditions."""
        result = (
            self._filtered(conditions).with_entities(func.count(MagicCode.id)).scalar()
        )
        return result or 0

    def value_exists(self, value: str) -> bool:
        """Check whether any record, in any state, already uses this value."""
        return self.count_matching({"value": value}) > 0

    def save(self, entity: MagicCode, now: Optional[int] = None) -> MagicCode:
        """Persist changes of a loaded code, stamping its changed time."""
        if now is not None:
            entity.changed = now
        return super().save(entity)

    def consume(
        self,
        code_id: int,
        *,
        revoke: bool,
        revoke_login: bool,
        require_login_allowed: bool,
        now: int,
    ) -> bool:
        """
        Atomically consume an active code.

        A single conditional UPDATE, so of two concurrent callers only one
        can observe the code as active (and login-eligible, if required).

        Returns:
            True if this call changed the record, False if it was already consumed
        """
        values: dict[Any, Any] = {MagicCode.changed: now}
        if revoke:
            values[MagicCode.status] = MagicCodeStatus.REVOKED
        if revoke_login:
            values[MagicCode.login_allowed] = False

        query = self.db.query(MagicCode).filter(
            MagicCode.id == code_id,
            MagicCode.status == MagicCodeStatus.ACTIVE,
        )
        if require_login_allowed:
            query = query.filter(MagicCode.login_allowed == True)  # noqa: E712

        updated = query.update(values, synchronize_session="fetch")
        self.db.flush()
        return updated == 1
