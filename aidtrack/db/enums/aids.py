"""Aid enums."""

from enum import Enum


class AidSource(str, Enum):
    """Where the distributed goods came from."""

    DONATION = "donation"
    PURCHASE = "purchase"
    PARTNER = "partner"
