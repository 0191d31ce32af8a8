"""Need enums."""

from enum import Enum


class NeedUrgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class NeedStatus(str, Enum):
    """
    Fulfilment status of a need.

    Aid reconciliation only moves forward: pending -> partial -> covered.
    """

    PENDING = "pending"
    PARTIAL = "partial"
    COVERED = "covered"


class PriorityLevel(str, Enum):
    """Display level derived from a need's priority score."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


DEFAULT_NEED_STATUS = NeedStatus.PENDING.value
