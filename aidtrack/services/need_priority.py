"""Need priority scoring.

Pure functions: every input, including the reference time, is passed in.
The score ranks open needs for triage; higher means more pressing.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from aidtrack.db.enums import NeedStatus, NeedUrgency, PriorityLevel


URGENCY_WEIGHTS = {
    NeedUrgency.HIGH: 30,
    NeedUrgency.MEDIUM: 20,
    NeedUrgency.LOW: 10,
}
STATUS_ADJUSTMENTS = {
    NeedStatus.PENDING: 0,
    NeedStatus.PARTIAL: -15,
}
URGENCY_RANK = {
    NeedUrgency.HIGH: 3,
    NeedUrgency.MEDIUM: 2,
    NeedUrgency.LOW: 1,
}

AGING_POINTS_PER_DAY = 1.0
AGING_CAP = 30
NEGLECT_POINTS_PER_DAY = 0.5
NEGLECT_CAP = 15

# Lower than any reachable open-need score (low + partial = -5)
COVERED_PRIORITY_SCORE = -50

LEVEL_THRESHOLDS = (
    (45, PriorityLevel.CRITICAL),
    (30, PriorityLevel.HIGH),
    (15, PriorityLevel.MEDIUM),
)

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class NeedPriority:
    score: int
    level: PriorityLevel


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _days_between(start: datetime, end: datetime) -> float:
    """Elapsed days, clamped at 0 for timestamps in the future."""
    elapsed = (_as_utc(end) - _as_utc(start)).total_seconds() / SECONDS_PER_DAY
    return max(elapsed, 0.0)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_priority_score(
    urgency: NeedUrgency | str,
    status: NeedStatus | str,
    created_at: datetime,
    last_visit_at: datetime | None,
    now: datetime,
) -> int:
    """
    Score a need.

    base(urgency) + status adjustment + aging (1/day since creation, max 30)
    + neglect (0.5/day since the family's last visit, max 15; never visited
    counts as the max). Covered needs return COVERED_PRIORITY_SCORE.
    """
    status = NeedStatus(status)
    if status == NeedStatus.COVERED:
        return COVERED_PRIORITY_SCORE

    urgency = NeedUrgency(urgency)
    score = float(URGENCY_WEIGHTS[urgency] + STATUS_ADJUSTMENTS[status])

    score += min(_days_between(created_at, now) * AGING_POINTS_PER_DAY, AGING_CAP)

    if last_visit_at is None:
        score += NEGLECT_CAP
    else:
        score += min(_days_between(last_visit_at, now) * NEGLECT_POINTS_PER_DAY, NEGLECT_CAP)

    return _round_half_up(score)


def priority_level(score: int) -> PriorityLevel:
    if score <= 0:
        return PriorityLevel.NONE
    for threshold, level in LEVEL_THRESHOLDS:
        if score >= threshold:
            return level
    return PriorityLevel.LOW


def compute_priority(
    urgency: NeedUrgency | str,
    status: NeedStatus | str,
    created_at: datetime,
    last_visit_at: datetime | None,
    now: datetime,
) -> NeedPriority:
    score = compute_priority_score(urgency, status, created_at, last_visit_at, now)
    return NeedPriority(score=score, level=priority_level(score))


def priority_sort_key(
    score: int,
    urgency: NeedUrgency | str,
    created_at: datetime,
    need_id: UUID | str,
) -> tuple:
    """
    Total order for needs: score desc, urgency desc, oldest first, then id.

    Use with sorted(..., key=...); every component sorts ascending.
    """
    return (
        -score,
        -URGENCY_RANK[NeedUrgency(urgency)],
        _as_utc(created_at),
        str(need_id),
    )
