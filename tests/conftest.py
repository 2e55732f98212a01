"""
Shared fixtures: an in-memory store and builders for test data.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from comuline.data.db_broker import build_engine
from comuline.data.krl.krl_client import KrlClient
from comuline.data.krl.payloads import StationPayload, SchedulePayload
from comuline.data.store import Store
from comuline.data.types import (
    Station, StationMetadata, StationOrigin, Schedule, ScheduleMetadata, ScheduleOrigin
)


@pytest.fixture
def store():
    """Fresh in-memory SQLite store with tables created."""
    engine = build_engine("sqlite://")
    store = Store(engine)
    store.initialize()
    yield store
    engine.dispose()


@pytest.fixture
def krl_client():
    """Mock KRL client; tests set get_stations/get_schedules behavior."""
    client = Mock(spec=KrlClient)
    client.get_stations.return_value = []
    client.get_schedules.return_value = []
    return client


def make_station(station_id, name, type="KRL", daop=1, fg_enable=1):
    return Station(
        uid=f"st_krl_{station_id}",
        id=station_id,
        name=name,
        type=type,
        metadata=StationMetadata(active=True, origin=StationOrigin(fg_enable=fg_enable, daop=daop)),
    )


def make_schedule(station_id, train_id, departs_at, arrives_at=None, route="BOGOR-JAKARTA KOTA",
                  line="COMMUTER LINE BOGOR", origin_id="BOO", destination_id="JAKK"):
    return Schedule(
        id=f"sc_krl_{station_id}_{train_id}",
        station_id=station_id,
        station_origin_id=origin_id,
        station_destination_id=destination_id,
        train_id=train_id,
        line=line,
        route=route,
        departs_at=departs_at,
        arrives_at=arrives_at or departs_at,
        metadata=ScheduleMetadata(origin=ScheduleOrigin(color="#E30A16")),
        updated_at=datetime(2026, 1, 30, 5, 0),
    )


def station_payload(sta_id, sta_name, group_wil=0, fg_enable=1):
    return StationPayload(sta_id=sta_id, sta_name=sta_name, group_wil=group_wil, fg_enable=fg_enable)


def schedule_payload(train_id, route_name, time_est="08:00:00", dest_time="09:30:00",
                     ka_name="COMMUTER LINE BOGOR", color="#E30A16"):
    return SchedulePayload(
        train_id=train_id,
        ka_name=ka_name,
        route_name=route_name,
        dest="",
        time_est=time_est,
        color=color,
        dest_time=dest_time,
    )
