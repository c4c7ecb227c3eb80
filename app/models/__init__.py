# Parking Slot Engine — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.parking_slot import ParkingSlot   # noqa
from app.models.vehicle import Vehicle            # noqa
