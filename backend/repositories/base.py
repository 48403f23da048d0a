"""
Base repository class providing common database operations.
"""

from typing import Generic, Iterable, TypeVar

from sqlalchemy.orm import Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.

    Type parameter T should be a SQLAlchemy model class with an integer `id`.
    Methods flush but never commit unless their name says so; the service
    layer owns the transaction.
    """

    def __init__(self, model: type[T], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> T | None:
        """
        Get entity by ID.

        Returns:
            Entity if found, None otherwise
        """
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_many_by_ids(self, ids: Iterable[int]) -> list[T]:
        """
        Get all entities whose ID is in `ids`, ordered by ID.

        Unknown IDs are skipped.
        """
        id_list = list(ids)
        if not id_list:
            return []
        return (
            self.db.query(self.model)
            .filter(self.model.id.in_(id_list))
            .order_by(self.model.id)
            .all()
        )

    def add(self, entity: T) -> T:
        """
        Add entity to session and flush so database defaults (ID) are populated.
        """
        self.db.add(entity)
        self.db.flush()
        return entity

    def save(self, entity: T) -> T:
        """Persist pending changes of an already tracked entity."""
        self.db.add(entity)
        self.db.flush()
        return entity

    def delete_many(self, entities: Iterable[T]) -> int:
        """
        Delete entities.

        Returns:
            Number of entities deleted
        """
        count = 0
        for entity in entities:
            self.db.delete(entity)
            count += 1
        self.db.flush()
        return count

    def commit(self) -> None:
        """Commit the current transaction."""
        self.db.commit()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.db.rollback()

    def refresh(self, entity: T) -> None:
        """Refresh entity from database."""
        self.db.refresh(entity)
