"""
Comuline Synchronization Module

Keeps the local station and schedule store in step with the KRL partner API.

Entry Point:
    python -m comuline.ingest [--once] [--reset-db]

Components:
    - names: Route-name normalization and station id resolution
    - stations: Station list sync (full-collection replace)
    - schedules: Per-station schedule fan-out (per-partition replace)
    - orchestrator: Single-flight coordinator and CLI
    - scheduler: Startup and daily sync trigger
"""

from .orchestrator import SyncCoordinator, main
from .scheduler import DailySyncScheduler

__all__ = ['SyncCoordinator', 'DailySyncScheduler', 'main']
