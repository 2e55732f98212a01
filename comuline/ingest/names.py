"""
Station name resolution for schedule route names.

The schedule endpoint spells some stations without spaces ("JAKARTAKOTA")
while the station endpoint uses the spaced form ("JAKARTA KOTA").
"""

from typing import Dict, Iterable

from comuline.data.types import Station

STATION_NAME_CORRECTIONS = {
    "TANJUNGPRIUK": "TANJUNG PRIOK",
    "JAKARTAKOTA": "JAKARTA KOTA",
    "KAMPUNGBANDAN": "KAMPUNG BANDAN",
    "TANAHABANG": "TANAH ABANG",
    "PARUNGPANJANG": "PARUNG PANJANG",
    "BANDARASOEKARNOHATTA": "BANDARA SOEKARNO HATTA",
}


def normalize_station_name(name: str) -> str:
    """Return the canonical spelling of a station name, or the name unchanged."""
    return STATION_NAME_CORRECTIONS.get(name, name)


def build_station_name_map(stations: Iterable[Station]) -> Dict[str, str]:
    """Map canonical station name -> station id. Later duplicates win."""
    return {station.name: station.id for station in stations}


def resolve_station_id(name: str, name_map: Dict[str, str]) -> str:
    """Station id for a free-text name, or '' when it cannot be resolved."""
    return name_map.get(normalize_station_name(name), "")
