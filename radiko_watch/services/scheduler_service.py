import logging
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from radiko_watch.config import settings
from radiko_watch.services.schedule_fetch_service import fetch_and_process


logger = logging.getLogger(__name__)

class ScheduleScheduler:
    """Scheduler for automatic schedule fetching"""

    def __init__(self):
        self.scheduler: AsyncIOScheduler | None = None

    async def _fetch_job(self) -> None:
        """Background job that runs the schedule fetch"""
        logger.info("Scheduled fetch triggered")
        try:
            result = await fetch_and_process()
            if "error" in result:
                logger.error(f"Scheduled fetch failed: {result['error']}")
        except Exception as e:
            logger.error(f"Exception in scheduled fetch: {e}", exc_info=True)

    def start(self) -> None:
        """Start the scheduler with the fetch job"""
        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        try:
            trigger = CronTrigger.from_crontab(settings.fetch_cron, timezone='Asia/Tokyo')
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", settings.fetch_cron, exc)
            raise

        self.scheduler = AsyncIOScheduler(timezone='Asia/Tokyo')
        self.scheduler.add_job(
            self._fetch_job,
            trigger=trigger,
            id='schedule_fetch',
            max_instances=1,
            coalesce=True,
            misfire_grace_time=settings.fetch_misfire_grace_sec
        )

        self.scheduler.start()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next fetch: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")
            self.scheduler = None

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled fetch time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job('schedule_fetch')
        return job.next_run_time if job else None


fetch_scheduler = ScheduleScheduler()
