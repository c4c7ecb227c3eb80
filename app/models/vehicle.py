# app/models/vehicle.py
"""
Vehicle occupancy table.
One row per stay: created on registration, stamped with exit_time + parking_fare
on checkout, deleted on cancellation. Rows with exit_time set form the history.
"""

import uuid
from sqlalchemy import Column, Integer, String, DateTime
from app.database import Base

ACTIVE = "active"
CHECKED_OUT = "checked_out"


def new_vehicle_id() -> str:
    return uuid.uuid4().hex


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(String(32), primary_key=True, default=new_vehicle_id)
    owner_name = Column(String(200), nullable=False)
    phone_number = Column(String(50), nullable=False)
    vehicle_number = Column(String(50), nullable=False, index=True)  # plate, not unique across history
    brand = Column(String(100), nullable=False)
    category = Column(String(50), nullable=False)                    # car | motorcycle | truck
    slot_number = Column(Integer, nullable=False, index=True)
    entry_time = Column(DateTime, nullable=False, index=True)
    exit_time = Column(DateTime, index=True)                         # null while parked
    parking_fare = Column(Integer)                                   # set once on checkout

    @property
    def status(self) -> str:
        return ACTIVE if self.exit_time is None else CHECKED_OUT

    def __repr__(self):
        return f"<Vehicle {self.id} plate={self.vehicle_number} slot={self.slot_number} {self.status}>"
