"""
Inactivity classifier.
The only place where days-since-last-mock is compared against the tier thresholds;
the leaderboard badges and the reaper's purge check both call classify_inactivity.
"""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from engine import ACTIVE_MAX_DAYS, PURGE_AFTER_DAYS, WARNING_MAX_DAYS
from portal.datemath import days_between


class InactivityTier(str, Enum):
    ACTIVE = "active"
    WARNING = "warning"
    DANGER = "danger"
    PURGE_ELIGIBLE = "purge_eligible"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    InactivityTier.ACTIVE: 0,
    InactivityTier.WARNING: 1,
    InactivityTier.DANGER: 2,
    InactivityTier.PURGE_ELIGIBLE: 3,
}


@dataclass(frozen=True)
class InactivityStatus:
    tier: InactivityTier
    days_since: Optional[int]  # None = never active
    remaining_days: Optional[int] = None  # countdown to purge, DANGER only

    @property
    def purge_eligible(self) -> bool:
        return self.tier is InactivityTier.PURGE_ELIGIBLE


def classify_inactivity(last_active: Optional[date], today: Optional[date] = None) -> InactivityStatus:
    """
    Map the last activity day to a severity tier.

    A missing date counts as maximal inactivity (purge eligible).
    """
    if last_active is None:
        return InactivityStatus(InactivityTier.PURGE_ELIGIBLE, None)

    days_since = days_between(last_active, today)
    if days_since > PURGE_AFTER_DAYS:
        return InactivityStatus(InactivityTier.PURGE_ELIGIBLE, days_since)
    if days_since > WARNING_MAX_DAYS:
        return InactivityStatus(InactivityTier.DANGER, days_since, PURGE_AFTER_DAYS - days_since)
    if days_since > ACTIVE_MAX_DAYS:
        return InactivityStatus(InactivityTier.WARNING, days_since)
    return InactivityStatus(InactivityTier.ACTIVE, days_since)
