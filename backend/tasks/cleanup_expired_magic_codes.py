#!/usr/bin/env python3
"""
Cleanup task for expired magic codes and flood events.

This script can be run:
- Via cron: 0 * * * * cd /path/to/backend && python -m tasks.cleanup_expired_magic_codes
- Via the APScheduler job in core/scheduler.py
- Manually: python -m tasks.cleanup_expired_magic_codes

Recommended: Run hourly
"""

import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING, Optional

# Add backend to path for imports
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from loguru import logger  # noqa: E402

from models.config import settings  # noqa: E402
from repositories.database import SessionLocal  # noqa: E402
from services.flood_service import FloodService  # noqa: E402
from services.magic_code_collector import MagicCodeCollector  # noqa: E402

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def cleanup_expired_magic_codes(
    db: "Session | None" = None,
    batch_size: Optional[int] = None,
    now: Optional[int] = None,
) -> dict[str, int]:
    """
    Delete expired magic codes in batches, then expired flood events.

    Args:
        db: Optional database session. If not provided, creates a new session.
        batch_size: Codes deleted per batch (defaults to configuration)
        now: Reference time in epoch seconds (defaults to the clock)

    Returns:
        Dictionary with counts of deleted codes and flood events
    """
    should_close = db is None
    if db is None:
        db = SessionLocal()

    size = batch_size or settings.MAGIC_CODE_CLEANUP_BATCH_SIZE
    current = int(time.time()) if now is None else now

    try:
        logger.info("Starting expired magic code cleanup task")
        start_time = time.perf_counter()

        deleted_codes = 0
        while True:
            expired = MagicCodeCollector.collect_expired(db, limit=size, now=current)
            if not expired:
                break
            deleted_codes += MagicCodeCollector.delete_multiple(db, expired)
            if len(expired) < size:
                break

        deleted_events = FloodService.garbage_collect(db, now=current)

        elapsed = time.perf_counter() - start_time
        logger.info(
            f"Magic code cleanup completed in {elapsed:.2f}s - "
            f"codes: {deleted_codes}, flood events: {deleted_events}"
        )

        return {
            "deleted_codes": deleted_codes,
            "deleted_flood_events": deleted_events,
        }

    except Exception as e:
        logger.error(f"Magic code cleanup failed: {e!r}")
        raise
    finally:
        if should_close:
            db.close()


if __name__ == "__main__":
    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
        level="INFO",
    )

    try:
        result = cleanup_expired_magic_codes()
        print(f"Cleanup completed: {result}")
        sys.exit(0)
    except Exception as e:
        print(f"Cleanup failed: {e}", file=sys.stderr)
        sys.exit(1)
