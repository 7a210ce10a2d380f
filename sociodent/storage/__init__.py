"""Storage backends for doctors, appointments and reassignment history."""

from .base import AppointmentStore, SaveResult, WriteCondition
from .memory import InMemoryAppointmentStore
from .supabase_store import SupabaseAppointmentStore

__all__ = [
    "AppointmentStore",
    "SaveResult",
    "WriteCondition",
    "InMemoryAppointmentStore",
    "SupabaseAppointmentStore",
]
