"""
Custom exceptions for the matching service.

Matching outcomes (no candidates, schedule conflicts, stale writes) are
returned as ``AssignmentResult`` values. These exceptions cover lookups and
storage failures that the HTTP layer turns into error responses.
"""


class AppointmentNotFoundError(Exception):
    """Raised when an appointment id does not exist in the store."""

    def __init__(self, appointment_id: str):
        self.appointment_id = appointment_id
        super().__init__(f"Appointment {appointment_id} not found")


class StorageError(Exception):
    """Raised when the store returns data that cannot be read or written."""

    def __init__(self, message: str, record_id: str = None):
        self.record_id = record_id
        self.message = message
        super().__init__(message)


class StoreNotConfiguredError(Exception):
    """Raised when the configured store backend lacks credentials."""

    def __init__(self, backend: str, message: str = None):
        self.backend = backend
        super().__init__(message or f"Store backend '{backend}' is not configured")
