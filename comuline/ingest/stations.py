"""
Station synchronization.

Fetches the upstream station list, drops non-operational groupings, adds the
stations the endpoint does not publish, and replaces the stored collection.
"""

import logging
from typing import List

from comuline.config.config_main import sync_config
from comuline.data.krl.krl_client import KrlClient, KrlClientError
from comuline.data.krl.payloads import StationPayload
from comuline.data.store import Store
from comuline.data.types import (
    Station, StationMetadata, StationOrigin, STATION_TYPE_KRL, STATION_TYPE_LOCAL
)

logger = logging.getLogger(__name__)

STATION_UID_PREFIX = "st_krl_"

# Served by commuter trains but missing from the station endpoint
MANUAL_STATIONS = [
    Station(
        uid="st_krl_bst",
        id="BST",
        name="BANDARA SOEKARNO HATTA",
        type=STATION_TYPE_KRL,
        metadata=StationMetadata(active=True, origin=StationOrigin(fg_enable=1, daop=1)),
    ),
    Station(
        uid="st_krl_ckp",
        id="CKP",
        name="CIKAMPEK",
        type=STATION_TYPE_LOCAL,
        metadata=StationMetadata(active=True, origin=StationOrigin(fg_enable=1, daop=1)),
    ),
    Station(
        uid="st_krl_pwk",
        id="PWK",
        name="PURWAKARTA",
        type=STATION_TYPE_LOCAL,
        metadata=StationMetadata(active=True, origin=StationOrigin(fg_enable=1, daop=2)),
    ),
]


def station_uid(station_id: str) -> str:
    return f"{STATION_UID_PREFIX}{station_id}"


def to_daop(group_wil: int) -> int:
    """Upstream reports the default operational area as 0."""
    return 1 if group_wil == 0 else group_wil


def build_stations(payloads: List[StationPayload],
                   excluded_prefix: str = sync_config.excluded_station_prefix) -> List[Station]:
    """
    Turn upstream station records into the stored station set.

    Args:
        payloads: Records from the station endpoint
        excluded_prefix: Id prefix of non-operational groupings to drop

    Returns:
        Upstream stations (filtered) followed by the manual stations
    """
    stations = []
    for payload in payloads:
        if payload.sta_id.startswith(excluded_prefix):
            continue

        stations.append(Station(
            uid=station_uid(payload.sta_id),
            id=payload.sta_id,
            name=payload.sta_name,
            type=STATION_TYPE_KRL,
            metadata=StationMetadata(
                active=True,
                origin=StationOrigin(
                    fg_enable=payload.fg_enable,
                    daop=to_daop(payload.group_wil),
                ),
            ),
        ))

    stations.extend(MANUAL_STATIONS)
    return stations


def sync_stations(store: Store, krl_client: KrlClient) -> bool:
    """
    Replace the stored station collection with the upstream one.

    Never raises for upstream failures: the existing collection is kept and
    False is returned.
    """
    logger.info("Syncing stations...")

    try:
        payloads = krl_client.get_stations()
    except KrlClientError as e:
        logger.error(f"Failed to fetch stations: {e}")
        return False

    stations = build_stations(payloads)
    if not store.set_stations(stations):
        return False

    logger.info(f"Synced {len(stations)} stations")
    return True
