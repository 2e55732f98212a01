"""
Tests for schedule synchronization and the per-station fan-out.
"""

import logging
import threading
import time
from datetime import date, datetime

from comuline.data.krl.krl_client import UpstreamStatusError, DecodeError
from comuline.ingest.schedules import (
    parse_schedule_time, split_route_name, build_schedules, sync_schedules,
    sync_station_schedule, UNPARSED_TIME
)
from conftest import make_station, make_schedule, schedule_payload

TODAY = date(2026, 1, 30)
NOW = datetime(2026, 1, 30, 5, 0, 12)


class TestParsing:

    def test_hh_mm(self):
        assert parse_schedule_time("08:10", TODAY) == datetime(2026, 1, 30, 8, 10)

    def test_hh_mm_ss(self):
        assert parse_schedule_time("08:10:45", TODAY) == datetime(2026, 1, 30, 8, 10, 45)

    def test_unparseable_is_epoch(self):
        assert parse_schedule_time("", TODAY) == UNPARSED_TIME
        assert parse_schedule_time("soon", TODAY) == UNPARSED_TIME
        assert parse_schedule_time("25:00", TODAY) == UNPARSED_TIME

    def test_route_split_on_first_dash(self):
        assert split_route_name("JAKARTAKOTA-BOGOR") == ("JAKARTAKOTA", "BOGOR")
        assert split_route_name("TANAHABANG - RANGKASBITUNG") == ("TANAHABANG", "RANGKASBITUNG")
        assert split_route_name("A-B-C") == ("A", "B-C")

    def test_route_without_dash(self):
        assert split_route_name("BOGOR") == ("BOGOR", "BOGOR")


class TestBuildSchedules:

    def test_origin_resolved_destination_unresolved(self):
        name_map = {"JAKARTA KOTA": "JAKK"}
        [schedule] = build_schedules(
            "MRI", [schedule_payload("1000", "JAKARTAKOTA-BOGOR")], name_map, now=NOW
        )

        assert schedule.station_origin_id == "JAKK"
        assert schedule.station_destination_id == ""

    def test_fields_mapped(self):
        [schedule] = build_schedules(
            "BOO",
            [schedule_payload("1000", "BOGOR-JAKARTAKOTA", time_est="05:30", dest_time="bad",
                              ka_name="COMMUTER LINE BOGOR", color="#E30A16")],
            {"BOGOR": "BOO", "JAKARTA KOTA": "JAKK"},
            now=NOW,
        )

        assert schedule.id == "sc_krl_BOO_1000"
        assert schedule.station_id == "BOO"
        assert schedule.train_id == "1000"
        assert schedule.line == "COMMUTER LINE BOGOR"
        assert schedule.route == "BOGOR-JAKARTAKOTA"
        assert schedule.departs_at == datetime(2026, 1, 30, 5, 30)
        assert schedule.arrives_at == UNPARSED_TIME
        assert schedule.metadata.origin.color == "#E30A16"
        assert schedule.updated_at == NOW


class TestSyncSchedules:

    def test_name_resolution_scenario(self, store, krl_client):
        store.set_stations([make_station("JAKK", "JAKARTA KOTA"), make_station("MRI", "MANGGARAI")])
        krl_client.get_schedules.side_effect = lambda station_id, **kw: [
            schedule_payload(f"{station_id}-1", "JAKARTAKOTA-BOGOR")
        ]

        sync_schedules(store, krl_client)

        [schedule] = store.get_schedules("MRI")
        assert schedule.station_origin_id == "JAKK"
        assert schedule.station_destination_id == ""

    def test_one_failure_among_many(self, store, krl_client, caplog):
        stations = [make_station(f"S{i:03d}", f"STATION {i}") for i in range(100)]
        store.set_stations(stations)

        old = make_schedule("S042", "OLD", datetime(2026, 1, 29, 6, 0))
        store.set_schedules("S042", [old])

        def get_schedules(station_id, **kwargs):
            if station_id == "S042":
                raise UpstreamStatusError(404, "Not Found")
            return [schedule_payload(f"T{station_id}", "STATION 1-STATION 2")]

        krl_client.get_schedules.side_effect = get_schedules

        with caplog.at_level(logging.INFO):
            stats = sync_schedules(store, krl_client)

        assert stats == {'total': 100, 'succeeded': 99, 'failed': 1}
        assert store.get_schedules("S042") == [old]
        for station in stations:
            if station.id != "S042":
                [schedule] = store.get_schedules(station.id)
                assert schedule.train_id == f"T{station.id}"

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any("S042" in r.getMessage() for r in warnings)
        assert "Schedule sync progress: 100/100" in caplog.text

    def test_progress_logged_every_five(self, store, krl_client, caplog):
        store.set_stations([make_station(f"S{i}", f"STATION {i}") for i in range(12)])

        with caplog.at_level(logging.INFO):
            sync_schedules(store, krl_client, max_workers=4)

        progress = [r.getMessage() for r in caplog.records if "progress" in r.getMessage()]
        assert progress == [
            "Schedule sync progress: 5/12",
            "Schedule sync progress: 10/12",
            "Schedule sync progress: 12/12",
        ]

    def test_concurrency_is_bounded(self, store, krl_client):
        store.set_stations([make_station(f"S{i}", f"STATION {i}") for i in range(30)])

        lock = threading.Lock()
        state = {'active': 0, 'peak': 0}

        def get_schedules(station_id, **kwargs):
            with lock:
                state['active'] += 1
                state['peak'] = max(state['peak'], state['active'])
            time.sleep(0.01)
            with lock:
                state['active'] -= 1
            return []

        krl_client.get_schedules.side_effect = get_schedules
        stats = sync_schedules(store, krl_client, max_workers=5)

        assert stats['succeeded'] == 30
        assert state['peak'] <= 5

    def test_empty_result_still_replaces_partition(self, store, krl_client):
        store.set_schedules("BOO", [make_schedule("BOO", "1000", datetime(2026, 1, 29, 6, 0))])
        krl_client.get_schedules.return_value = []

        assert sync_station_schedule(store, krl_client, "BOO", {}) is True
        assert store.get_schedules("BOO") == []

    def test_decode_failure_skips_station(self, store, krl_client):
        store.set_schedules("BOO", [make_schedule("BOO", "1000", datetime(2026, 1, 29, 6, 0))])
        krl_client.get_schedules.side_effect = DecodeError("bad payload")

        assert sync_station_schedule(store, krl_client, "BOO", {}) is False
        assert len(store.get_schedules("BOO")) == 1

    def test_unexpected_error_does_not_abort_fan_out(self, store, krl_client):
        store.set_stations([make_station("A", "ALPHA"), make_station("B", "BETA")])

        def get_schedules(station_id, **kwargs):
            if station_id == "A":
                raise RuntimeError("bug")
            return [schedule_payload("1", "ALPHA-BETA")]

        krl_client.get_schedules.side_effect = get_schedules
        stats = sync_schedules(store, krl_client)

        assert stats['failed'] == 1
        assert len(store.get_schedules("B")) == 1

    def test_no_stations_is_a_no_op(self, store, krl_client):
        stats = sync_schedules(store, krl_client)

        assert stats == {'total': 0, 'succeeded': 0, 'failed': 0}
        krl_client.get_schedules.assert_not_called()
