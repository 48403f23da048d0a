"""
Magic code value generation.

Codes are six symbols with a dash in the middle, e.g. "2CV-UGB".
"""

import secrets
from typing import Optional

from loguru import logger

from models.config import settings
from models.exceptions import DuplicateMagicCodeException
from repositories.magic_code_repository import MagicCodeRepository

CODE_LENGTH = 6
SEPARATOR_POSITION = 3


def generate_code(alphabet: Optional[str] = None) -> str:
    """
    Generate a magic code value from a cryptographically secure source.

    Not unique by itself; see create_unique_code.
    """
    chars = alphabet or settings.MAGIC_CODE_ALPHABET
    symbols = [secrets.choice(chars) for _ in range(CODE_LENGTH)]
    return "".join(symbols[:SEPARATOR_POSITION]) + "-" + "".join(
        symbols[SEPARATOR_POSITION:]
    )


def create_unique_code(
    repo: MagicCodeRepository,
    max_attempts: Optional[int] = None,
    alphabet: Optional[str] = None,
) -> str:
    """
    Generate a code value no stored record uses yet.

    Args:
        repo: Magic code repository to check candidates against
        max_attempts: Candidates to try (defaults to configuration)
        alphabet: Symbols to draw from (defaults to configuration)

    Raises:
        DuplicateMagicCodeException: If every candidate was taken
    """
    attempts = max_attempts or settings.MAGIC_CODE_MAX_GENERATION_ATTEMPTS
    for attempt in range(1, attempts + 1):
        candidate = generate_code(alphabet)
        if not repo.value_exists(candidate):
            return candidate
        logger.debug(f"Magic code collision on attempt {attempt}")

    logger.error(f"Magic code generation exhausted {attempts} attempts")
    raise DuplicateMagicCodeException(attempts)
