"""
In-process read contract for the serving layer.

The HTTP router is a thin wrapper around this class; it never talks to the
Store or the synchronizers directly and never sees sync errors.
"""

from typing import List, Optional

from comuline.data.store import Store
from comuline.data.types import Station, Schedule, RouteData, RouteDetail, RouteStop


class TimetableService:
    def __init__(self, store: Store, coordinator):
        self.store = store
        self.coordinator = coordinator

    def get_stations(self) -> List[Station]:
        return self.store.get_stations()

    def get_station(self, station_id: str) -> Optional[Station]:
        return self.store.get_station(station_id)

    def get_schedules(self, station_id: str) -> List[Schedule]:
        return self.store.get_schedules(station_id)

    def get_route(self, train_id: str) -> List[Schedule]:
        return self.store.get_route(train_id)

    def get_route_data(self, train_id: str) -> Optional[RouteData]:
        """
        A train's stop sequence annotated with station names.

        The detail block comes from the first stop; arrives_at from the last.
        Returns None when the train has no stored stops.
        """
        schedules = self.store.get_route(train_id)
        if not schedules:
            return None

        names = {station.id: station.name for station in self.store.get_stations()}

        routes = [
            RouteStop(
                id=sch.id,
                station_id=sch.station_id,
                station_name=names.get(sch.station_id, ""),
                departs_at=sch.departs_at,
                created_at=sch.updated_at,
                updated_at=sch.updated_at,
            )
            for sch in schedules
        ]

        first, last = schedules[0], schedules[-1]
        details = RouteDetail(
            train_id=train_id,
            line=first.line,
            route=first.route,
            station_origin_id=first.station_origin_id,
            station_origin_name=names.get(first.station_origin_id, ""),
            station_destination_id=first.station_destination_id,
            station_destination_name=names.get(first.station_destination_id, ""),
            arrives_at=last.arrives_at,
        )
        return RouteData(routes=routes, details=details)

    def sync_all(self) -> bool:
        """Fire-and-forget full sync. False if one is already running."""
        return self.coordinator.trigger()
