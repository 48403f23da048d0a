"""
Services layer for business logic.

This package contains service modules that encapsulate business logic
separate from the API routes.
"""

from .flood_service import FloodService
from .magic_code_collector import MagicCodeCollector
from .magic_code_service import MagicCodeService
from .verification_provider import MagicCodeVerificationProvider

__all__ = [
    "FloodService",
    "MagicCodeCollector",
    "MagicCodeService",
    "MagicCodeVerificationProvider",
]
