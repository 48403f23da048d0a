"""
Client application repository: the registry of consumers codes are issued for.
"""

from typing import Optional

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class ClientApplicationRepository(BaseRepository[db_models.ClientApplication]):
    """Repository for ClientApplication entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.ClientApplication, db)

    def get_by_client_id(self, client_id: str) -> Optional[db_models.ClientApplication]:
        """
        Get a client application by its public identifier.

        Args:
            client_id: Public client identifier (not the primary key)

        Returns:
            ClientApplication if found, None otherwise
        """
        return (
            self.db.query(db_models.ClientApplication)
            .filter(db_models.ClientApplication.client_id == client_id)
            .first()
        )

    def get_default(self) -> Optional[db_models.ClientApplication]:
        """Get the client application flagged as default, if any."""
        return (
            self.db.query(db_models.ClientApplication)
            .filter(db_models.ClientApplication.is_default == True)  # noqa: E712
            .order_by(db_models.ClientApplication.id)
            .first()
        )

    def get_default_for_user(
        self, user_id: int
    ) -> Optional[db_models.ClientApplication]:
        """
        Get the client application to use for a user when none is given.

        Prefers a client whose default user is this account, then the global
        default client.
        """
        own = (
            self.db.query(db_models.ClientApplication)
            .filter(db_models.ClientApplication.user_id == user_id)
            .order_by(db_models.ClientApplication.id)
            .first()
        )
        return own or self.get_default()

    def get_by_default_user(self, user_id: int) -> list[db_models.ClientApplication]:
        """Get all client applications that act for the given user by default."""
        return (
            self.db.query(db_models.ClientApplication)
            .filter(db_models.ClientApplication.user_id == user_id)
            .order_by(db_models.ClientApplication.id)
            .all()
        )

    def resolve(
        self, client_id: Optional[str], user_id: Optional[int] = None
    ) -> Optional[db_models.ClientApplication]:
        """
        Resolve a public client identifier, or the default client when omitted.
        """
        if client_id:
            return self.get_by_client_id(client_id)
        if user_id is not None:
            return self.get_default_for_user(user_id)
        return self.get_default()
