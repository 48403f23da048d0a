"""
Background task scheduler for magic code housekeeping.

Uses APScheduler for reliable scheduled task execution.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger


# Global scheduler instance
scheduler: BackgroundScheduler | None = None


def magic_code_cleanup_job() -> None:
    """Scheduled job deleting expired magic codes and flood events."""
    from tasks.cleanup_expired_magic_codes import cleanup_expired_magic_codes

    logger.info("Running scheduled magic code cleanup job")
    results = cleanup_expired_magic_codes()
    logger.info(f"Magic code cleanup completed: {results}")


def setup_scheduler() -> None:
    """
    Configure and start the background scheduler.

    Schedules:
    - Magic code cleanup: hourly, on the hour
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already initialized")
        return

    scheduler = BackgroundScheduler()

    scheduler.add_job(
        magic_code_cleanup_job,
        CronTrigger(minute=0),
        id="magic_code_cleanup",
        name="Magic Code Cleanup",
        replace_existing=True,
        misfire_grace_time=900,
    )

    scheduler.start()
    logger.info("Background scheduler started with hourly magic code cleanup")


def shutdown_scheduler() -> None:
    """Gracefully shutdown the scheduler."""
    global scheduler

    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background scheduler stopped")
        scheduler = None


def get_scheduler_status() -> dict:
    """Get current scheduler status for monitoring."""
    if scheduler is None:
        return {"running": False, "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append(
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": (
                    job.next_run_time.isoformat() if job.next_run_time else None
                ),
            }
        )

    return {"running": scheduler.running, "jobs": jobs}
