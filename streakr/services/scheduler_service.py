"""
STREAKr Background Scheduler Service

Runs the automatic question lock sync on an interval using APScheduler.
"""

import atexit
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from streakr import db
from streakr.models import SeasonContext
from streakr.services.lock_sync import sync_locks

logger = logging.getLogger(__name__)


class SchedulerService:
    """Manages background scheduling of the lock sync"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.is_running = False
        self.sync_stats = {
            "last_sync": None,
            "total_syncs": 0,
            "successful_syncs": 0,
            "failed_syncs": 0,
            "last_error": None,
            "questions_locked": 0,
        }

        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initialize scheduler with Flask app"""
        self.app = app
        self.scheduler = BackgroundScheduler(daemon=True, timezone="UTC")

        # Register shutdown
        atexit.register(self.shutdown)

        if app.config.get("SCHEDULER_ENABLED", True):
            self.start()

    def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            self.scheduler.remove_all_jobs()
            self._add_core_jobs()
            self.scheduler.start()
            self.is_running = True

            logger.info("Scheduler started successfully")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the background scheduler"""
        if not self.is_running:
            return

        try:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Scheduler stopped")

        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")

    def shutdown(self):
        """Graceful shutdown"""
        self.stop()

    def _add_core_jobs(self):
        minutes = self.app.config.get("LOCK_SYNC_INTERVAL_MINUTES", 5)
        self.scheduler.add_job(
            func=self._sync_locks,
            trigger=IntervalTrigger(minutes=minutes),
            id="sync_locks",
            name="Lock Started Games",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
        )
        logger.info(f"Lock sync scheduled every {minutes} minutes")

    def _sync_locks(self):
        """Lock open questions of started games in the current round"""
        with self.app.app_context():
            try:
                season_ctx = SeasonContext.load(self.app.config["CURRENT_SEASON"])
                result = sync_locks(season_ctx)
                self._update_stats(True, result["locked"] + result["created"])
                return result

            except Exception as e:
                db.session.rollback()
                self._update_stats(False)
                self.sync_stats["last_error"] = str(e)
                logger.error(f"Error in lock sync: {e}", exc_info=True)
                return None

    def _update_stats(self, success, locked=0):
        self.sync_stats["last_sync"] = datetime.now(timezone.utc).isoformat()
        self.sync_stats["total_syncs"] += 1
        if success:
            self.sync_stats["successful_syncs"] += 1
            self.sync_stats["questions_locked"] += locked
        else:
            self.sync_stats["failed_syncs"] += 1

    def get_status(self):
        """Get scheduler status information"""
        jobs = []
        if self.scheduler:
            for job in self.scheduler.get_jobs():
                next_run = job.next_run_time
                jobs.append(
                    {
                        "id": job.id,
                        "name": job.name,
                        "next_run": next_run.isoformat() if next_run else None,
                        "trigger": str(job.trigger),
                    }
                )

        return {"is_running": self.is_running, "jobs": jobs, "stats": self.sync_stats}


# Global scheduler instance
scheduler_service = SchedulerService()
