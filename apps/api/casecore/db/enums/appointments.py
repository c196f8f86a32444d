"""Appointment-related enums."""

from enum import Enum


class AppointmentStatus(str, Enum):
    """Appointment lifecycle status."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


DEFAULT_APPOINTMENT_STATUS = AppointmentStatus.SCHEDULED
