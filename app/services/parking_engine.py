# app/services/parking_engine.py
"""
Parking Engine: registration, fare quoting, checkout, cancellation, listing.

The only place where the Slot Pool and the Vehicle Ledger are used together.
Every state change runs as one DB transaction while holding the pool lock:
the slot flag and the vehicle row commit together or not at all, so a failed
registration never strands an occupied-but-unowned slot and a checkout never
leaves a slot occupied by a vehicle that has left.

Lifecycle per vehicle:
    (none) -> active        register
    active -> checked_out   checkout  (terminal, releases slot)
    active -> deleted       cancel    (terminal, releases slot, only within the window)
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.orm import Query, Session

from app.config import settings
from app.exceptions import (CancellationWindowClosed, InvalidState, NoSlotAvailable,
                            SlotUnavailable)
from app.models.vehicle import Vehicle
from app.services.fare_service import FareCalculator, build_fare_calculator
from app.services.slot_pool import SlotPool, SlotSummary
from app.services.vehicle_ledger import VehicleFilter, VehicleLedger
from app.utils.clock import utcnow
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FareQuote:
    vehicle_id: str
    category: str
    entry_time: datetime
    quoted_at: datetime
    minutes: int
    fare: int
    final: bool   # True once checked out: fare is the stored, charged amount


@dataclass
class DailySummary:
    day: date
    vehicles_checked_out: int
    revenue: int
    avg_parking_minutes: float


class ParkingEngine:
    def __init__(
        self,
        pool: Optional[SlotPool] = None,
        ledger: Optional[VehicleLedger] = None,
        calculator: Optional[FareCalculator] = None,
        clock: Callable[[], datetime] = utcnow,
        capacity: int = 50,
        cancellation_window: timedelta = timedelta(minutes=2),
    ):
        self.pool = pool or SlotPool()
        self.ledger = ledger or VehicleLedger()
        self.calculator = calculator or FareCalculator()
        self.clock = clock
        self.capacity = capacity
        self.cancellation_window = cancellation_window

    @classmethod
    def from_settings(cls, cfg=settings) -> "ParkingEngine":
        return cls(
            calculator=build_fare_calculator(cfg),
            capacity=cfg.SLOT_CAPACITY,
            cancellation_window=timedelta(seconds=cfg.CANCELLATION_WINDOW_SECONDS),
        )

    @contextmanager
    def _transaction(self, db: Session):
        """Hold the pool lock until commit; roll back on any failure."""
        with self.pool.lock:
            try:
                yield
                db.commit()
            except Exception:
                db.rollback()
                raise

    # ── Startup ──────────────────────────────────────────────────────────

    def initialize(self, db: Session) -> int:
        """Grow the pool to the configured capacity and repair slot flags."""
        with self._transaction(db):
            added = self.pool.ensure_capacity(db, self.capacity)
        self.reconcile_slots(db)
        return added

    def reconcile_slots(self, db: Session) -> list[int]:
        """
        Make the occupied flags equal the slots of active vehicles.
        Returns the slot numbers that had to be corrected.
        """
        with self._transaction(db):
            counts = self.ledger.active_slot_counts(db)
            for slot_number, n in counts.items():
                if n > 1:
                    logger.error(f"Slot {slot_number} held by {n} active vehicles")
            known = {s.slot_number for s in self.pool.list_slots(db)}
            for slot_number in sorted(set(counts) - known):
                logger.error(f"Active vehicle references unknown slot {slot_number}")
            changed = self.pool.mark_occupied_set(db, counts)
        for slot_number in changed:
            logger.warning(f"Reconciled slot {slot_number} "
                           f"({'occupied' if slot_number in counts else 'free'})")
        return changed

    # ── Lifecycle ────────────────────────────────────────────────────────

    def register(self, db: Session, data: Mapping[str, Any]) -> Vehicle:
        """Claim the lowest free slot and open an occupancy record on it."""
        entry_time = self.clock()
        with self._transaction(db):
            try:
                slot_number = self.pool.claim_lowest_free(db)
            except SlotUnavailable:
                logger.warning(f"No slot for {data.get('vehicle_number')}: pool full")
                raise NoSlotAvailable()
            try:
                vehicle = self.ledger.create(
                    db, {**data, "slot_number": slot_number, "entry_time": entry_time}
                )
            except Exception as e:
                logger.warning(f"Registration failed after claiming slot {slot_number}, "
                               f"rolling back: {e}")
                raise
        logger.info(f"Registered {vehicle.vehicle_number} ({vehicle.category}) "
                    f"→ slot {vehicle.slot_number} id={vehicle.id}")
        return vehicle

    def quote_fare(self, db: Session, vehicle_id: str, now: Optional[datetime] = None) -> FareQuote:
        """Provisional fare as if the vehicle left at `now`. Changes nothing."""
        vehicle = self.ledger.get_by_id(db, vehicle_id)
        if vehicle.exit_time is not None:
            return FareQuote(
                vehicle_id=vehicle.id, category=vehicle.category,
                entry_time=vehicle.entry_time, quoted_at=vehicle.exit_time,
                minutes=self.calculator.billable_minutes(vehicle.entry_time, vehicle.exit_time),
                fare=vehicle.parking_fare, final=True,
            )
        now = now or self.clock()
        return FareQuote(
            vehicle_id=vehicle.id, category=vehicle.category,
            entry_time=vehicle.entry_time, quoted_at=now,
            minutes=self.calculator.billable_minutes(vehicle.entry_time, now),
            fare=self.calculator.compute_fare(vehicle.entry_time, now, vehicle.category),
            final=False,
        )

    def checkout(self, db: Session, vehicle_id: str, now: Optional[datetime] = None) -> Vehicle:
        """Charge the fare at the actual exit instant and free the slot."""
        now = now or self.clock()
        with self._transaction(db):
            vehicle = self.ledger.get_by_id(db, vehicle_id)
            if vehicle.exit_time is not None:
                raise InvalidState(f"Vehicle {vehicle_id} already checked out at {vehicle.exit_time}")
            fare = self.calculator.compute_fare(vehicle.entry_time, now, vehicle.category)
            vehicle = self.ledger.mark_checked_out(db, vehicle_id, now, fare)
            self.pool.release(db, vehicle.slot_number)
        logger.info(f"Checked out {vehicle.vehicle_number} from slot {vehicle.slot_number} "
                    f"fare={fare} id={vehicle_id}")
        return vehicle

    def cancel(self, db: Session, vehicle_id: str, now: Optional[datetime] = None):
        """Undo a registration made within the cancellation window."""
        now = now or self.clock()
        with self._transaction(db):
            vehicle = self.ledger.get_by_id(db, vehicle_id)
            if vehicle.exit_time is not None:
                raise InvalidState(f"Vehicle {vehicle_id} already checked out, cannot cancel")
            if now - vehicle.entry_time > self.cancellation_window:
                logger.warning(f"Cancel rejected for {vehicle_id}: entered {vehicle.entry_time}")
                raise CancellationWindowClosed(vehicle_id, int(self.cancellation_window.total_seconds()))
            slot_number = vehicle.slot_number
            self.ledger.delete(db, vehicle_id)
            self.pool.release(db, slot_number)
        logger.info(f"Cancelled {vehicle_id}, slot {slot_number} released")

    # ── Queries ──────────────────────────────────────────────────────────

    def get_vehicle(self, db: Session, vehicle_id: str) -> Vehicle:
        return self.ledger.get_by_id(db, vehicle_id)

    def list_vehicles(self, db: Session, filters: Optional[VehicleFilter] = None) -> Query:
        return self.ledger.query(db, filters)

    def slot_summary(self, db: Session) -> SlotSummary:
        return self.pool.occupancy(db)

    def daily_summary(self, db: Session, day: date) -> DailySummary:
        vehicles = self.ledger.checked_out_on(db, day).all()
        minutes = [self.calculator.billable_minutes(v.entry_time, v.exit_time) for v in vehicles]
        return DailySummary(
            day=day,
            vehicles_checked_out=len(vehicles),
            revenue=sum(v.parking_fare or 0 for v in vehicles),
            avg_parking_minutes=round(sum(minutes) / len(minutes), 1) if minutes else 0.0,
        )


parking_engine = ParkingEngine.from_settings()


def get_parking_engine() -> ParkingEngine:
    """FastAPI dependency: the process-wide engine, sharing one pool lock."""
    return parking_engine
