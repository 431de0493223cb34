# hall_booking/availability.py
"""
Slot availability: interval validation, overlap test and the lock that
makes check-then-insert atomic.

A NULL start or end time on either side is treated as unbounded, so a
booking without times conflicts with every other booking of that hall and
day.
"""
import logging
import threading
import zlib
from contextlib import contextmanager
from datetime import date, time
from typing import Dict, Hashable, Iterator, List, Optional

from sqlalchemy import or_, select, text
from sqlalchemy.orm import Session

from hall_booking import models
from hall_booking.errors import ValidationError

logger = logging.getLogger(__name__)


def validate_interval(start_time: Optional[time], end_time: Optional[time]) -> None:
    """Reject a malformed interval before any conflict check runs."""
    if (start_time is None) != (end_time is None):
        raise ValidationError(
            "Both start_time and end_time must be given, or neither",
            details={"start_time": _fmt(start_time), "end_time": _fmt(end_time)},
        )
    if start_time is not None and start_time >= end_time:
        raise ValidationError(
            "start_time must be before end_time",
            details={"start_time": _fmt(start_time), "end_time": _fmt(end_time)},
        )


def intervals_overlap(
    a_start: Optional[time],
    a_end: Optional[time],
    b_start: Optional[time],
    b_end: Optional[time],
) -> bool:
    # Half-open: [10:00, 12:00) and [12:00, 13:00) do not overlap
    starts_before_b_ends = a_start is None or b_end is None or a_start < b_end
    ends_after_b_starts = a_end is None or b_start is None or a_end > b_start
    return starts_before_b_ends and ends_after_b_starts


def _fmt(value: Optional[time]) -> Optional[str]:
    return value.strftime("%H:%M") if value is not None else None


class AvailabilityChecker:
    def __init__(self, db: Session):
        self.db = db

    def conflicting_bookings(
        self,
        hall_id: str,
        booking_date: date,
        start_time: Optional[time],
        end_time: Optional[time],
        excluding_booking_id: Optional[str] = None,
    ):
        query = self.db.query(models.Booking).filter(
            models.Booking.hall_id == hall_id,
            models.Booking.booking_date == booking_date,
            models.Booking.status != models.BookingStatus.REJECTED.value,
        )
        if excluding_booking_id is not None:
            query = query.filter(models.Booking.id != excluding_booking_id)
        if end_time is not None:
            query = query.filter(or_(models.Booking.start_time.is_(None), models.Booking.start_time < end_time))
        if start_time is not None:
            query = query.filter(or_(models.Booking.end_time.is_(None), models.Booking.end_time > start_time))
        return query.all()

    def check_conflict(
        self,
        hall_id: str,
        booking_date: date,
        start_time: Optional[time],
        end_time: Optional[time],
        excluding_booking_id: Optional[str] = None,
    ) -> bool:
        conflicts = self.conflicting_bookings(hall_id, booking_date, start_time, end_time, excluding_booking_id)
        if conflicts:
            logger.debug(
                "Slot %s %s %s-%s conflicts with %s",
                hall_id, booking_date, _fmt(start_time), _fmt(end_time),
                [b.id for b in conflicts],
            )
        return bool(conflicts)

    def check_availability(
        self,
        hall_id: str,
        booking_date: date,
        start_time: Optional[time],
        end_time: Optional[time],
    ) -> bool:
        validate_interval(start_time, end_time)
        return not self.check_conflict(hall_id, booking_date, start_time, end_time)


class KeyedLocks:
    """
    One mutex per key, kept only while somebody holds or waits for it.

    Entries are reference-counted under a guard lock and dropped when the
    last holder leaves, so the map never outgrows the keys in use.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: Dict[Hashable, List] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]


_slot_locks = KeyedLocks()


def slot_lock_key(hall_id: str, booking_date: date) -> int:
    # Stable signed 64-bit key for pg_advisory_xact_lock
    raw = f"{hall_id}:{booking_date.isoformat()}".encode()
    key = (zlib.crc32(raw) << 32) | zlib.crc32(raw[::-1])
    return key - (1 << 64) if key >= (1 << 63) else key


def hall_row_lock(hall_id: str):
    """SELECT ... FOR UPDATE on the hall row; a no-op clause on SQLite."""
    return select(models.Hall.id).where(models.Hall.id == hall_id).with_for_update()


@contextmanager
def slot_lock(db: Session, hall_id: str, booking_date: date) -> Iterator[None]:
    """
    Serialize check-then-insert for one (hall, date).

    Hold this around the conflict check, the insert and the commit. Threads
    of one process queue on a mutex per key. Other workers are held off by
    the database, inside the current transaction: PostgreSQL takes an
    advisory lock on the (hall, date) key, other servers lock the hall row.
    SQLite has neither, so a SQLite deployment must run a single worker.
    """
    with _slot_locks.hold((hall_id, booking_date)):
        try:
            if db.get_bind().dialect.name == "postgresql":
                db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": slot_lock_key(hall_id, booking_date)})
            else:
                db.execute(hall_row_lock(hall_id))
            yield
        except Exception:
            db.rollback()
            raise
