"""
Schedule synchronization.

One schedule fetch per known station, fanned out over a bounded thread pool.
Each station's partition is replaced independently, so a failing station
never affects the others and keeps whatever it had before.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, date
from typing import Dict, List, Optional, Tuple

from comuline.config.config_main import sync_config
from comuline.data.krl.krl_client import KrlClient, KrlClientError
from comuline.data.krl.payloads import SchedulePayload
from comuline.data.store import Store
from comuline.data.types import Schedule, ScheduleMetadata, ScheduleOrigin
from .names import build_station_name_map, resolve_station_id

logger = logging.getLogger(__name__)

SCHEDULE_ID_PREFIX = "sc_krl_"
TIME_FORMATS = ("%H:%M", "%H:%M:%S")

# Stored when upstream sends a time we cannot read
UNPARSED_TIME = datetime(1970, 1, 1)


def schedule_id(station_id: str, train_id: str) -> str:
    return f"{SCHEDULE_ID_PREFIX}{station_id}_{train_id}"


def parse_schedule_time(value: str, today: date) -> datetime:
    """
    Combine an upstream HH:MM[:SS] string with today's date.

    The result is "today's instance" of a recurring departure; it goes stale
    after local midnight until the next sync.
    """
    for fmt in TIME_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except (TypeError, ValueError):
            continue
        return datetime.combine(today, parsed.time())
    return UNPARSED_TIME


def split_route_name(route_name: str) -> Tuple[str, str]:
    """'JAKARTAKOTA-BOGOR' -> ('JAKARTAKOTA', 'BOGOR'); no dash -> both whole."""
    if "-" not in route_name:
        return route_name, route_name
    origin, destination = route_name.split("-", 1)
    return origin.strip(), destination.strip()


def build_schedules(station_id: str, payloads: List[SchedulePayload],
                    name_map: Dict[str, str], now: Optional[datetime] = None) -> List[Schedule]:
    """
    Turn upstream schedule records for one station into stored schedules.

    Args:
        station_id: Station the departures were fetched for
        payloads: Records from the schedule endpoint
        name_map: Canonical station name -> station id
        now: Sync time, used for the calendar date and updated_at

    Returns:
        One Schedule per upstream record; unresolved origin or destination
        ids are left as ''
    """
    now = now or datetime.now()
    today = now.date()

    schedules = []
    for payload in payloads:
        origin_name, destination_name = split_route_name(payload.route_name)

        schedules.append(Schedule(
            id=schedule_id(station_id, payload.train_id),
            station_id=station_id,
            station_origin_id=resolve_station_id(origin_name, name_map),
            station_destination_id=resolve_station_id(destination_name, name_map),
            train_id=payload.train_id,
            line=payload.ka_name,
            route=payload.route_name,
            departs_at=parse_schedule_time(payload.time_est, today),
            arrives_at=parse_schedule_time(payload.dest_time, today),
            metadata=ScheduleMetadata(origin=ScheduleOrigin(color=payload.color)),
            updated_at=now,
        ))
    return schedules


def sync_station_schedule(store: Store, krl_client: KrlClient, station_id: str,
                          name_map: Dict[str, str]) -> bool:
    """
    Fetch and replace one station's schedule partition.

    Returns:
        False if the fetch failed (partition untouched) or the write rolled back
    """
    try:
        payloads = krl_client.get_schedules(
            station_id,
            time_from=sync_config.schedule_time_from,
            time_to=sync_config.schedule_time_to,
        )
    except KrlClientError as e:
        # 404 is common for inactive stations
        logger.warning(f"Failed to fetch schedule for station {station_id}: {e}")
        return False

    schedules = build_schedules(station_id, payloads, name_map)
    if not store.set_schedules(station_id, schedules):
        return False

    logger.info(f"Saved {len(schedules)} schedules for station {station_id}")
    return True


def sync_schedules(store: Store, krl_client: KrlClient,
                   max_workers: int = sync_config.max_workers,
                   progress_every: int = sync_config.progress_every) -> Dict:
    """
    Refresh the schedule partition of every stored station.

    Must run after the station collection has been synced: the name map used
    for origin/destination resolution is built from a snapshot of it.

    Returns:
        Statistics dictionary with total, succeeded and failed counts
    """
    logger.info("Syncing schedules...")
    stations = store.get_stations()
    name_map = build_station_name_map(stations)

    stats = {'total': len(stations), 'succeeded': 0, 'failed': 0}
    if not stations:
        logger.warning("No stations stored, nothing to sync")
        return stats

    completed = 0
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="schedule-sync") as executor:
        futures = {
            executor.submit(sync_station_schedule, store, krl_client, station.id, name_map): station.id
            for station in stations
        }
        for future in as_completed(futures):
            station_id = futures[future]
            try:
                ok = future.result()
            except Exception as e:
                logger.error(f"Schedule sync crashed for station {station_id}: {e}", exc_info=True)
                ok = False

            if ok:
                stats['succeeded'] += 1
            else:
                stats['failed'] += 1

            completed += 1
            if completed % progress_every == 0 or completed == stats['total']:
                logger.info(f"Schedule sync progress: {completed}/{stats['total']}")

    logger.info(
        f"Synced schedules: {stats['succeeded']} stations updated, "
        f"{stats['failed']} failed"
    )
    return stats
