"""
Daily sync scheduler.

Runs one full sync at startup when the store is empty, then one every day at
a fixed local time (05:00 WIB by default, before service hours). The next
target is recomputed after every run so clock drift and long syncs correct
themselves.
"""

import logging
import signal
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from comuline.config.config_main import sync_config

logger = logging.getLogger(__name__)


def sync_timezone(utc_offset_hours: int = sync_config.utc_offset_hours) -> timezone:
    return timezone(timedelta(hours=utc_offset_hours))


def next_run_after(now: datetime, hour: int, minute: int, tz: timezone) -> datetime:
    """
    Next occurrence of hour:minute in tz, strictly after now.

    A target exactly equal to now is returned as-is so it fires immediately.
    """
    local_now = now.astimezone(tz)
    target = local_now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if local_now > target:
        target += timedelta(days=1)
    return target


class DailySyncScheduler:
    """Background worker that triggers a full sync once a day."""

    def __init__(self, coordinator, store,
                 hour: int = sync_config.daily_hour,
                 minute: int = sync_config.daily_minute,
                 utc_offset_hours: int = sync_config.utc_offset_hours,
                 clock: Optional[Callable[[], datetime]] = None):
        self.coordinator = coordinator
        self.store = store
        self.hour = hour
        self.minute = minute
        self.tz = sync_timezone(utc_offset_hours)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Kick off the initial sync if needed and start the daily loop."""
        if self.store.has_stations():
            logger.info("Data exists, skipping initial sync")
        else:
            logger.info("No data found, performing initial sync")
            self.coordinator.trigger()

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="daily-sync", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None):
        """Graceful shutdown. A sync already running is not interrupted."""
        logger.info("Daily sync scheduler stopping")
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def wait(self, poll_interval: float = 1.0):
        """Block the caller until stop() is called."""
        while not self._stop_event.wait(poll_interval):
            pass

    def install_signal_handlers(self):
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals gracefully."""
        logger.info(f"Received signal {signum}, initiating shutdown")
        self._stop_event.set()

    def seconds_until_next_run(self) -> float:
        now = self.clock()
        target = next_run_after(now, self.hour, self.minute, self.tz)
        delay = (target - now).total_seconds()
        logger.info(f"Scheduled next sync in {timedelta(seconds=int(delay))} (at {target.isoformat()})")
        return max(delay, 0.0)

    def _run(self):
        while not self._stop_event.is_set():
            delay = self.seconds_until_next_run()
            if self._stop_event.wait(delay):
                break

            logger.info("Executing scheduled sync")
            try:
                self.coordinator.sync_all()
            except Exception as e:
                logger.error(f"Scheduled sync failed: {e}", exc_info=True)
