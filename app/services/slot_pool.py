# app/services/slot_pool.py
"""
Slot Pool: fixed set of numbered slots with atomic claim/release.

Claims always take the lowest-numbered free slot. The scan is followed by a
compare-and-set UPDATE (… WHERE is_occupied = false), so a slot won by another
writer between scan and update is detected by a zero row count and the scan
repeats. `lock` serializes claim/release/growth inside this process; callers
that must commit other rows atomically with a claim hold it until commit.

No method here commits. The caller owns the transaction.
"""

import threading
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.exceptions import NotFound, SlotUnavailable
from app.models.parking_slot import ParkingSlot
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class SlotSummary:
    total: int
    occupied: int

    @property
    def free(self) -> int:
        return self.total - self.occupied


class SlotPool:
    def __init__(self):
        self.lock = threading.RLock()

    def claim_lowest_free(self, db: Session) -> int:
        """Mark the lowest free slot occupied and return its number."""
        with self.lock:
            while True:
                slot_number = (
                    db.query(ParkingSlot.slot_number)
                    .filter(ParkingSlot.is_occupied == False)  # noqa: E712
                    .order_by(ParkingSlot.slot_number)
                    .limit(1)
                    .scalar()
                )
                if slot_number is None:
                    raise SlotUnavailable("All parking slots are occupied")

                claimed = (
                    db.query(ParkingSlot)
                    .filter(ParkingSlot.slot_number == slot_number,
                            ParkingSlot.is_occupied == False)  # noqa: E712
                    .update({ParkingSlot.is_occupied: True})
                )
                if claimed:
                    logger.debug(f"Claimed slot {slot_number}")
                    return slot_number
                logger.info(f"Slot {slot_number} taken concurrently, rescanning")

    def release(self, db: Session, slot_number: int):
        """Mark a slot free. Releasing an already-free slot is a no-op."""
        with self.lock:
            matched = (
                db.query(ParkingSlot)
                .filter(ParkingSlot.slot_number == slot_number)
                .update({ParkingSlot.is_occupied: False})
            )
            if not matched:
                raise NotFound("Slot", slot_number)
            logger.debug(f"Released slot {slot_number}")

    def ensure_capacity(self, db: Session, capacity: int) -> int:
        """
        Grow the pool to at least `capacity` slots. Never shrinks.
        New slots are free and numbered contiguously above the current maximum.
        Returns how many slots were added.
        """
        with self.lock:
            count, max_number = db.query(
                func.count(ParkingSlot.slot_number), func.max(ParkingSlot.slot_number)
            ).one()
            missing = capacity - count
            if missing <= 0:
                return 0
            start = (max_number or 0) + 1
            db.add_all(ParkingSlot(slot_number=n, is_occupied=False)
                       for n in range(start, start + missing))
            db.flush()
            logger.info(f"Slot pool grown by {missing} (slots {start}..{start + missing - 1})")
            return missing

    def list_slots(self, db: Session) -> list[ParkingSlot]:
        return db.query(ParkingSlot).order_by(ParkingSlot.slot_number).all()

    def occupancy(self, db: Session) -> SlotSummary:
        total = db.query(func.count(ParkingSlot.slot_number)).scalar()
        occupied = (
            db.query(func.count(ParkingSlot.slot_number))
            .filter(ParkingSlot.is_occupied == True)  # noqa: E712
            .scalar()
        )
        return SlotSummary(total=total, occupied=occupied)

    def mark_occupied_set(self, db: Session, slot_numbers: Iterable[int]) -> list[int]:
        """
        Repair path: force occupancy flags to match `slot_numbers` exactly.
        Returns the slot numbers whose flag was changed.
        """
        wanted = set(slot_numbers)
        with self.lock:
            changed = [
                number for number, occupied in
                db.query(ParkingSlot.slot_number, ParkingSlot.is_occupied)
                .order_by(ParkingSlot.slot_number)
                if bool(occupied) != (number in wanted)
            ]
            for number in changed:
                (db.query(ParkingSlot)
                   .filter(ParkingSlot.slot_number == number)
                   .update({ParkingSlot.is_occupied: number in wanted}))
            return changed
