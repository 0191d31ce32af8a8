"""Intervention enums."""

from enum import Enum


class InterventionStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


DEFAULT_INTERVENTION_STATUS = InterventionStatus.TODO.value
