"""
Transactional store for the station and schedule collections.

The synchronization pipeline is the only writer. Every write is a full
replace: the whole station collection, or one station's schedule partition,
is deleted and re-inserted inside a single transaction. Writes are serialized
with a store-level lock; reads are not, so a reader may observe a fan-out that
is still in progress.
"""

import logging
import threading
from typing import Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db_broker import Base, ConnectionBroker, make_session_factory, session_scope
from .models import StationRecord, ScheduleRecord
from .types import Station, Schedule

logger = logging.getLogger(__name__)


class Store:
    """SQL-backed persistence for stations and per-station schedules."""

    def __init__(self, engine: Engine = None):
        self.engine = engine if engine is not None else ConnectionBroker.get_engine()
        self._session_factory = make_session_factory(self.engine)
        self._write_lock = threading.Lock()

    def initialize(self, drop_existing: bool = False):
        """
        Create tables and indexes.

        Args:
            drop_existing: Drop both collections first

        Raises:
            SQLAlchemyError: the database could not be opened or created.
                Callers treat this as fatal.
        """
        if drop_existing:
            logger.warning("Dropping existing stations and schedules tables")
            Base.metadata.drop_all(bind=self.engine)
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Store initialized ({self.engine.url.render_as_string(hide_password=True)})")

    def _session(self):
        return session_scope(self._session_factory)

    # ------------------------------------------------------------------
    # Stations
    # ------------------------------------------------------------------

    def has_stations(self) -> bool:
        try:
            with self._session() as session:
                return session.query(StationRecord.uid).first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Failed to count stations: {e}")
            return False

    def set_stations(self, stations: List[Station]) -> bool:
        """
        Replace the whole station collection.

        Returns:
            True if the replace committed, False if it was rolled back.
        """
        with self._write_lock:
            try:
                with self._session() as session:
                    session.query(StationRecord).delete(synchronize_session=False)
                    session.add_all([StationRecord.from_station(st) for st in stations])
            except SQLAlchemyError:
                logger.error("Station replace failed, previous collection kept", exc_info=True)
                return False
        return True

    def get_stations(self) -> List[Station]:
        with self._session() as session:
            return [row.to_station() for row in session.query(StationRecord).all()]

    def get_station(self, station_id: str) -> Optional[Station]:
        with self._session() as session:
            row = session.query(StationRecord).filter(StationRecord.id == station_id).first()
            return row.to_station() if row else None

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    def set_schedules(self, station_id: str, schedules: List[Schedule]) -> bool:
        """
        Replace one station's schedule partition (even with an empty list).

        Returns:
            True if the replace committed, False if it was rolled back.
        """
        with self._write_lock:
            try:
                with self._session() as session:
                    session.query(ScheduleRecord).filter(
                        ScheduleRecord.station_id == station_id
                    ).delete(synchronize_session=False)
                    session.add_all([ScheduleRecord.from_schedule(sch) for sch in schedules])
            except SQLAlchemyError:
                logger.error(f"Schedule replace failed for station {station_id}, partition kept", exc_info=True)
                return False
        return True

    def get_schedules(self, station_id: str) -> List[Schedule]:
        """Schedules departing from a station, earliest first. Empty when none."""
        with self._session() as session:
            return self._ordered_schedules(session, ScheduleRecord.station_id == station_id)

    def get_route(self, train_id: str) -> List[Schedule]:
        """Every stop of a train, earliest departure first."""
        with self._session() as session:
            return self._ordered_schedules(session, ScheduleRecord.train_id == train_id)

    def get_all_schedules(self) -> Dict[str, List[Schedule]]:
        result: Dict[str, List[Schedule]] = {}
        with self._session() as session:
            for row in session.query(ScheduleRecord).order_by(ScheduleRecord.departs_at.asc()):
                result.setdefault(row.station_id, []).append(row.to_schedule())
        return result

    @staticmethod
    def _ordered_schedules(session: Session, criterion) -> List[Schedule]:
        rows = (
            session.query(ScheduleRecord)
            .filter(criterion)
            .order_by(ScheduleRecord.departs_at.asc(), ScheduleRecord.id.asc())
            .all()
        )
        return [row.to_schedule() for row in rows]
