"""
SQLAlchemy models for the Comuline timetable database.

Two collections, both replaced wholesale by the synchronization pipeline:
stations (one row per station) and schedules (partitioned by station_id).
"""

from sqlalchemy import Column, String, DateTime, JSON

from .db_broker import Base
from .types import Station, StationMetadata, Schedule, ScheduleMetadata


class StationRecord(Base):
    """Commuter-line stations, upstream set plus manually curated entries."""

    __tablename__ = 'stations'

    uid = Column(String, primary_key=True)
    id = Column(String, index=True)
    name = Column(String)
    type = Column(String)
    metadata_json = Column('metadata', JSON)

    @classmethod
    def from_station(cls, station: Station) -> "StationRecord":
        return cls(
            uid=station.uid,
            id=station.id,
            name=station.name,
            type=station.type,
            metadata_json=station.to_dict()["metadata"],
        )

    def to_station(self) -> Station:
        return Station(
            uid=self.uid,
            id=self.id,
            name=self.name,
            type=self.type,
            metadata=StationMetadata.from_dict(self.metadata_json),
        )

    def __repr__(self):
        return f"<StationRecord(uid='{self.uid}', id='{self.id}', name='{self.name}', type='{self.type}')>"


class ScheduleRecord(Base):
    """Today's departures from a station, one row per (station, train)."""

    __tablename__ = 'schedules'

    id = Column(String, primary_key=True)
    station_id = Column(String, index=True)
    station_origin_id = Column(String)
    station_destination_id = Column(String)
    train_id = Column(String)
    line = Column(String)
    route = Column(String)
    departs_at = Column(DateTime)
    arrives_at = Column(DateTime)
    metadata_json = Column('metadata', JSON)
    updated_at = Column(DateTime)

    @classmethod
    def from_schedule(cls, schedule: Schedule) -> "ScheduleRecord":
        return cls(
            id=schedule.id,
            station_id=schedule.station_id,
            station_origin_id=schedule.station_origin_id,
            station_destination_id=schedule.station_destination_id,
            train_id=schedule.train_id,
            line=schedule.line,
            route=schedule.route,
            departs_at=schedule.departs_at,
            arrives_at=schedule.arrives_at,
            metadata_json=schedule.to_dict()["metadata"],
            updated_at=schedule.updated_at,
        )

    def to_schedule(self) -> Schedule:
        return Schedule(
            id=self.id,
            station_id=self.station_id,
            station_origin_id=self.station_origin_id or "",
            station_destination_id=self.station_destination_id or "",
            train_id=self.train_id,
            line=self.line,
            route=self.route,
            departs_at=self.departs_at,
            arrives_at=self.arrives_at,
            metadata=ScheduleMetadata.from_dict(self.metadata_json),
            updated_at=self.updated_at,
        )

    def __repr__(self):
        return f"<ScheduleRecord(id='{self.id}', station='{self.station_id}', train='{self.train_id}', departs={self.departs_at})>"
