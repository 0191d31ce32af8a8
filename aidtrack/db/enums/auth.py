"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    User roles with increasing privilege levels.

    - VOLUNTEER: field work (families, needs, aids, visits, documents)
    - ADMIN: association admin (users, stock catalog, deletions, audit)
    """

    VOLUNTEER = "volunteer"
    ADMIN = "admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_
