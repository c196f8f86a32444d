"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    User roles.

    - ADMIN: Organization-wide, every office
    - OFFICE_MANAGER: Everything inside one office
    - LAWYER / PSYCHOLOGIST / RECEPTIONIST / EVENT_COORDINATOR: Staff scoped
      to office + department, plus their own assignments
    - CLIENT: Client portal only, own cases
    """

    ADMIN = "admin"
    OFFICE_MANAGER = "office_manager"
    LAWYER = "lawyer"
    PSYCHOLOGIST = "psychologist"
    RECEPTIONIST = "receptionist"
    EVENT_COORDINATOR = "event_coordinator"
    CLIENT = "client"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_

    @property
    def is_management(self) -> bool:
        return self in MANAGEMENT_ROLES

    @property
    def is_staff(self) -> bool:
        return self in STAFF_ROLES


MANAGEMENT_ROLES = frozenset({Role.ADMIN, Role.OFFICE_MANAGER})
STAFF_ROLES = frozenset(
    {Role.LAWYER, Role.PSYCHOLOGIST, Role.RECEPTIONIST, Role.EVENT_COORDINATOR}
)
