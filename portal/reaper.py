"""
Reaper sweep: permanently delete long-inactive profiles and their scores/notes.
Runs opportunistically when the super-user logs in, or from reap.py on a timer.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from portal.datemath import today as current_day
from portal.errors import PermissionDenied, PortalError
from portal.inactivity import classify_inactivity
from portal.models import UserProfile

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    purged: int = 0
    errors: int = 0
    purged_usernames: List[str] = field(default_factory=list)


def find_purge_candidates(db, today: Optional[date] = None) -> List[UserProfile]:
    """Profiles the classifier marks purge eligible, never the super-user."""
    today = today or current_day()
    return [
        p for p in db.iter_profiles()
        if not p.is_superuser and classify_inactivity(p.last_active_day, today).purge_eligible
    ]


def run_reaper_sweep(db, caller_is_privileged: bool, today: Optional[date] = None) -> SweepResult:
    """
    Delete every purge-eligible profile, dependents before the parent row.

    Only the super-user may run this; anyone else gets PermissionDenied with
    nothing deleted. A failure on one profile is logged and counted, and the
    sweep moves on. Safe to re-run: purged profiles no longer match.
    """
    if not caller_is_privileged:
        raise PermissionDenied("Only the super-user can run the reaper sweep")

    result = SweepResult()
    candidates = find_purge_candidates(db, today)
    logger.info("Reaper sweep: %d profile(s) eligible for purge", len(candidates))

    for profile in candidates:
        try:
            db.delete_user_cascade(profile.id)
        except PortalError as e:
            result.errors += 1
            logger.error("Reaper could not purge %s (%s): %s", profile.username, profile.id, e)
            continue
        result.purged += 1
        result.purged_usernames.append(profile.username)
        logger.info("Reaper purged %s (last active %s)", profile.username, profile.last_active_day)

    logger.info("Reaper sweep finished: %d purged, %d errors", result.purged, result.errors)
    return result
