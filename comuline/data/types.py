"""
Value types handed out by the Store and the timetable service.

These are plain dataclasses so callers never hold on to ORM rows or sessions.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import List, Optional

STATION_TYPE_KRL = "KRL"
STATION_TYPE_LOCAL = "LOCAL"


@dataclass
class StationOrigin:
    fg_enable: int = 0
    daop: int = 1


@dataclass
class StationMetadata:
    active: bool = True
    origin: StationOrigin = field(default_factory=StationOrigin)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "StationMetadata":
        """Missing keys fall back to the dataclass defaults."""
        data = data or {}
        origin = data.get("origin") or {}
        defaults = StationOrigin()
        return cls(
            active=bool(data.get("active", cls.active)),
            origin=StationOrigin(
                fg_enable=int(origin.get("fg_enable", defaults.fg_enable)),
                daop=int(origin.get("daop", defaults.daop)),
            ),
        )


@dataclass
class Station:
    uid: str
    id: str
    name: str
    type: str
    metadata: StationMetadata = field(default_factory=StationMetadata)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ScheduleOrigin:
    color: str = ""


@dataclass
class ScheduleMetadata:
    origin: ScheduleOrigin = field(default_factory=ScheduleOrigin)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ScheduleMetadata":
        origin = (data or {}).get("origin") or {}
        return cls(origin=ScheduleOrigin(color=origin.get("color", "")))


@dataclass
class Schedule:
    id: str
    station_id: str
    station_origin_id: str
    station_destination_id: str
    train_id: str
    line: str
    route: str
    departs_at: datetime
    arrives_at: datetime
    metadata: ScheduleMetadata = field(default_factory=ScheduleMetadata)
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RouteStop:
    id: str
    station_id: str
    station_name: str
    departs_at: datetime
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


@dataclass
class RouteDetail:
    train_id: str
    line: str
    route: str
    station_origin_id: str
    station_origin_name: str
    station_destination_id: str
    station_destination_name: str
    arrives_at: datetime


@dataclass
class RouteData:
    routes: List[RouteStop]
    details: RouteDetail

    def to_dict(self) -> dict:
        return asdict(self)
