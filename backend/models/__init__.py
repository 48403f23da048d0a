"""Models package - Pydantic schemas and domain types."""

from .magic_code_types import (
    MagicCodeResult,
    VerificationResult,
    VerificationStatus,
    VerifyMode,
)

__all__ = [
    "MagicCodeResult",
    "VerificationResult",
    "VerificationStatus",
    "VerifyMode",
]
