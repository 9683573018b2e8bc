"""
Scheduling service for periodic sync operations
"""

import signal
import logging
import threading
from datetime import datetime
from croniter import croniter
from bdaycal.config import get_scheduler_config

logger = logging.getLogger(__name__)

class SchedulerService:
    """Service to run the sync on a cron schedule, one run at a time"""

    def __init__(self, sync_func, stop_event=None, config=None):
        self.sync_func = sync_func
        self.stop_event = stop_event or threading.Event()

        config = config or get_scheduler_config()
        self.sync_schedule = config['sync_schedule']
        self.run_on_start = config['run_on_start']
        self.startup_delay = config['startup_delay']

        self.last_sync = None

    @property
    def running(self):
        return not self.stop_event.is_set()

    def install_signal_handlers(self):
        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

    def _signal_handler(self, signum, frame):
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        self.stop_event.set()

    def _next_sync_time(self, now=None):
        """Calculate next sync time based on cron schedule"""
        cron = croniter(self.sync_schedule, now or datetime.now())
        return cron.get_next(datetime)

    def _perform_sync(self):
        """Perform the actual sync operation"""
        try:
            logger.info("Starting sync operation...")
            success = self.sync_func()
            if success:
                self.last_sync = datetime.now()
                logger.info("Sync operation completed successfully")
            else:
                logger.warning("Sync operation completed with errors")
            return success
        except Exception as e:
            logger.error(f"Sync operation failed: {e}")
            return False

    def _wait_until(self, when):
        """Wait until ``when`` unless shutdown is requested; True if the time was reached"""
        seconds = max(0.0, (when - datetime.now()).total_seconds())
        return not self.stop_event.wait(seconds)

    def run_daemon(self, install_signals=True):
        """Run as daemon with scheduled syncs"""
        if install_signals:
            self.install_signal_handlers()

        logger.info("Starting birthday sync daemon...")
        logger.info(f"Sync schedule: {self.sync_schedule}")

        if self.startup_delay > 0:
            logger.info(f"Waiting {self.startup_delay} seconds before starting...")
            if self.stop_event.wait(self.startup_delay):
                logger.info("Shutdown requested during startup delay")
                return

        if self.run_on_start and self.running:
            logger.info("Running initial sync...")
            self._perform_sync()

        while self.running:
            next_time = self._next_sync_time()
            logger.info(f"Next sync: {next_time.strftime('%Y-%m-%d %H:%M:%S')}")
            if not self._wait_until(next_time):
                break
            self._perform_sync()

        logger.info("Scheduler daemon stopped")
