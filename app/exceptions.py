# app/exceptions.py
"""
Error kinds raised by the parking engine and its collaborators.
Each carries the HTTP status the API layer maps it to (see app/main.py).
"""


class ParkingError(Exception):
    """Base exception for the parking engine."""
    status_code = 500

    def __init__(self, message="Parking error"):
        self.message = message
        super().__init__(self.message)


class ValidationError(ParkingError):
    """Missing or malformed input. Never retried."""
    status_code = 400

    def __init__(self, fields, message="Missing or invalid fields"):
        self.fields = list(fields)
        super().__init__(f"{message}: {', '.join(self.fields)}")


class NotFound(ParkingError):
    """Unknown vehicle id or slot number."""
    status_code = 404

    def __init__(self, kind, key):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class NoSlotAvailable(ParkingError):
    """Pool exhausted. The caller may retry later."""
    status_code = 409

    def __init__(self, message="No parking slots available"):
        super().__init__(message)


class InvalidState(ParkingError):
    """Operation attempted on a record that is already terminal."""
    status_code = 409


class CancellationWindowClosed(InvalidState):
    def __init__(self, vehicle_id, window_seconds):
        self.vehicle_id = vehicle_id
        self.window_seconds = window_seconds
        super().__init__(
            f"Vehicle {vehicle_id} can only be cancelled within {window_seconds}s of entry"
        )


class SlotUnavailable(ParkingError):
    """Internal slot pool signal; converted to NoSlotAvailable by the engine."""
