"""
Repository pattern implementation for data access layer.
"""

from .base import BaseRepository
from .client_repository import ClientApplicationRepository
from .flood_repository import FloodEventRepository
from .magic_code_repository import MagicCodeRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "ClientApplicationRepository",
    "FloodEventRepository",
    "MagicCodeRepository",
    "UserRepository",
]
