"""Admin-only operational endpoints."""

from fastapi import APIRouter, Depends

import authentication.auth as auth
import repositories.db_models as db_models

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/scheduler")
def get_scheduler_status(
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> dict:
    """
    Get background scheduler status.

    Admin only endpoint to check if the magic code cleanup job is scheduled.
    """
    from core.scheduler import get_scheduler_status

    return get_scheduler_status()
