"""
Sync Orchestrator

Single entry point for the Comuline synchronization pipeline: stations first,
then the per-station schedule fan-out, never more than one pass at a time.

Usage:
    python -m comuline.ingest              # serve the daily schedule
    python -m comuline.ingest --once       # one full sync, then exit
    python -m comuline.ingest --reset-db --once
"""

import argparse
import logging
import sys
import threading
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from comuline.config.config_main import krl_config, logging_config
from comuline.data.krl.krl_client import KrlClient
from comuline.data.store import Store

from .stations import sync_stations
from .schedules import sync_schedules
from .scheduler import DailySyncScheduler

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """
    Serializes station and schedule sync into one single-flight pass.

    A second request while a pass is running is rejected, not queued.
    """

    def __init__(self, store: Store, krl_client: KrlClient):
        self.store = store
        self.krl_client = krl_client
        self._lock = threading.Lock()

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    def sync_all(self) -> bool:
        """
        Run a full sync in the calling thread.

        Returns:
            True if this call ran the pass, False if one was already running
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Sync already in progress, skipping")
            return False

        try:
            self._run_pipeline()
        finally:
            self._lock.release()
        return True

    def trigger(self) -> bool:
        """
        Start a full sync in a background thread and return immediately.

        Returns:
            True if a pass was started, False if one was already running
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Sync already in progress, skipping")
            return False

        thread = threading.Thread(target=self._run_and_release, name="sync-all", daemon=True)
        try:
            thread.start()
        except RuntimeError:
            self._lock.release()
            raise
        return True

    def _run_and_release(self):
        try:
            self._run_pipeline()
        except Exception as e:
            logger.error(f"Sync pass failed: {e}", exc_info=True)
        finally:
            self._lock.release()

    def _run_pipeline(self):
        started = datetime.now()
        logger.info("Full sync started")

        sync_stations(self.store, self.krl_client)
        stats = sync_schedules(self.store, self.krl_client)

        duration = (datetime.now() - started).total_seconds()
        logger.info(
            f"Full sync finished in {duration:.1f}s "
            f"({stats['succeeded']}/{stats['total']} station schedules updated)"
        )


def configure_logging(level: str = logging_config.level):
    logging.basicConfig(level=level, format=logging_config.format)


def run_service(store: Store, coordinator: SyncCoordinator):
    """Start the daily scheduler and block until SIGINT/SIGTERM."""
    scheduler = DailySyncScheduler(coordinator, store)
    scheduler.install_signal_handlers()
    scheduler.start()

    try:
        scheduler.wait()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        scheduler.stop(timeout=5)
        logger.info("Comuline sync service terminated")


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Comuline station and schedule synchronization',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Keep the local store fresh (initial sync if empty, then daily at 05:00 WIB)
  python -m comuline.ingest

  # One-off full sync
  python -m comuline.ingest --once

  # Start from an empty database
  python -m comuline.ingest --reset-db --yes --once
        """
    )

    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single full sync and exit'
    )

    parser.add_argument(
        '--reset-db',
        action='store_true',
        help='Drop and recreate the stations and schedules tables first (DESTRUCTIVE)'
    )

    parser.add_argument(
        '--yes',
        action='store_true',
        help='Do not ask for confirmation with --reset-db'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=logging_config.level,
        help='Log level (default: from LOG_LEVEL env var)'
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level.upper())

    if args.reset_db and not args.yes:
        response = input("--reset-db will DELETE ALL stored stations and schedules. Continue? (yes/no): ")
        if response.lower() != 'yes':
            print("Aborted.")
            sys.exit(0)

    try:
        store = Store()
        store.initialize(drop_existing=args.reset_db)
    except SQLAlchemyError as e:
        logger.critical(f"Failed to initialize store: {e}")
        sys.exit(1)

    coordinator = SyncCoordinator(store, KrlClient(krl_config))

    if args.once:
        coordinator.sync_all()
        return

    run_service(store, coordinator)


if __name__ == "__main__":
    main()
