# app/models/parking_slot.py
"""
Parking slot table: the fixed pool of numbered, interchangeable slots.
is_occupied is only ever flipped by the slot pool service.
"""

from sqlalchemy import Boolean, Column, Integer
from app.database import Base


class ParkingSlot(Base):
    __tablename__ = "parking_slots"

    slot_number = Column(Integer, primary_key=True, autoincrement=False)
    is_occupied = Column(Boolean, default=False, nullable=False, index=True)

    def __repr__(self):
        return f"<ParkingSlot {self.slot_number} occupied={self.is_occupied}>"
