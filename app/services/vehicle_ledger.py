# app/services/vehicle_ledger.py
"""
Vehicle Ledger: durable occupancy records (current and historical).

State changes are conditional updates/deletes on `exit_time IS NULL`, so two
racing checkouts of the same id cannot both succeed, with no global lock.
No method here commits. The caller owns the transaction.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Mapping, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from app.exceptions import InvalidState, NotFound, ValidationError
from app.models.vehicle import ACTIVE, Vehicle
from app.utils.logger import get_logger

logger = get_logger(__name__)

HISTORY = "history"
STATUSES = (ACTIVE, HISTORY)

REQUIRED_FIELDS = ("owner_name", "phone_number", "vehicle_number", "brand",
                   "category", "slot_number", "entry_time")


@dataclass
class VehicleFilter:
    """Selection for VehicleLedger.query. Unset fields don't filter."""
    status: Optional[str] = None          # active | history | None (all)
    slot_number: Optional[int] = None
    vehicle_number: Optional[str] = None  # case-insensitive substring
    exit_date_from: Optional[date] = None  # inclusive, UTC calendar days
    exit_date_to: Optional[date] = None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class VehicleLedger:
    def create(self, db: Session, data: Mapping[str, Any]) -> Vehicle:
        missing = [name for name in REQUIRED_FIELDS if _is_blank(data.get(name))]
        if missing:
            raise ValidationError(missing)
        slot_number = data["slot_number"]
        if not isinstance(slot_number, int) or slot_number < 1:
            raise ValidationError(["slot_number"], "Slot number must be a positive integer")

        vehicle = Vehicle(**{name: data[name] for name in REQUIRED_FIELDS})
        db.add(vehicle)
        db.flush()
        return vehicle

    def get_by_id(self, db: Session, vehicle_id: str) -> Vehicle:
        vehicle = db.get(Vehicle, vehicle_id)
        if vehicle is None:
            raise NotFound("Vehicle", vehicle_id)
        return vehicle

    def mark_checked_out(self, db: Session, vehicle_id: str, exit_time: datetime, fare: int) -> Vehicle:
        updated = (
            db.query(Vehicle)
            .filter(Vehicle.id == vehicle_id, Vehicle.exit_time.is_(None))
            .update({Vehicle.exit_time: exit_time, Vehicle.parking_fare: fare})
        )
        if not updated:
            self._raise_for_terminal(db, vehicle_id, "check out")
        return self.get_by_id(db, vehicle_id)

    def delete(self, db: Session, vehicle_id: str):
        deleted = (
            db.query(Vehicle)
            .filter(Vehicle.id == vehicle_id, Vehicle.exit_time.is_(None))
            .delete()
        )
        if not deleted:
            self._raise_for_terminal(db, vehicle_id, "delete")

    def _raise_for_terminal(self, db: Session, vehicle_id: str, action: str):
        vehicle = self.get_by_id(db, vehicle_id)   # NotFound if absent
        raise InvalidState(
            f"Cannot {action} vehicle {vehicle_id}: already checked out at {vehicle.exit_time}"
        )

    def query(self, db: Session, filters: Optional[VehicleFilter] = None) -> Query:
        """
        Build the vehicle query. Nothing runs until the result is iterated,
        and every iteration re-reads current state.
        """
        filters = filters or VehicleFilter()
        q = db.query(Vehicle)

        if filters.status == ACTIVE:
            q = q.filter(Vehicle.exit_time.is_(None))
        elif filters.status == HISTORY:
            q = q.filter(Vehicle.exit_time.isnot(None))
        elif filters.status is not None:
            raise ValidationError(["status"], f"Status must be one of {', '.join(STATUSES)}")

        if filters.slot_number is not None:
            q = q.filter(Vehicle.slot_number == filters.slot_number)
        if filters.vehicle_number:
            needle = filters.vehicle_number.strip().lower()
            q = q.filter(func.lower(Vehicle.vehicle_number).contains(needle, autoescape=True))
        if filters.exit_date_from:
            q = q.filter(Vehicle.exit_time >= datetime.combine(filters.exit_date_from, time.min))
        if filters.exit_date_to:
            day_after = filters.exit_date_to + timedelta(days=1)
            q = q.filter(Vehicle.exit_time < datetime.combine(day_after, time.min))

        return q.order_by(Vehicle.entry_time.desc(), Vehicle.id)

    def active_slot_counts(self, db: Session) -> Counter:
        """Slot number -> number of active vehicles on it. More than 1 is a broken invariant."""
        rows = (
            db.query(Vehicle.slot_number, func.count(Vehicle.id))
            .filter(Vehicle.exit_time.is_(None))
            .group_by(Vehicle.slot_number)
        )
        return Counter({slot_number: n for slot_number, n in rows})

    def checked_out_on(self, db: Session, day: date) -> Query:
        return self.query(db, VehicleFilter(status=HISTORY, exit_date_from=day, exit_date_to=day))
