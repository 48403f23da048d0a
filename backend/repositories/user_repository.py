"""
User repository: the user directory the magic code core resolves emails from.
"""

from typing import Optional

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class UserRepository(BaseRepository[db_models.User]):
    """Repository for User entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.User, db)

    def get_email(self, user_id: int) -> Optional[str]:
        """
        Resolve a user ID to the user's email address.

        Returns:
            The email address, or None for an unknown user
        """
        user = self.get_by_id(user_id)
        return user.email if user else None
