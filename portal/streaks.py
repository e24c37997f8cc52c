"""
Streak evaluator.
decay_streak / credit_activity are pure (snapshot in, snapshot out);
evaluate_streak_on_login is the login hook that persists a decay.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from engine import MAX_STREAK_POINTS, STREAK_POINT_INTERVAL
from portal.datemath import add_days, days_between, today as current_day
from portal.errors import ProfileNotFound
from portal.models import UserProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakDecision:
    profile: UserProfile
    changed: bool
    gap_days: Optional[int] = None
    point_consumed: bool = False
    streak_reset: bool = False


def decay_streak(profile: UserProfile, today: Optional[date] = None) -> StreakDecision:
    """
    Apply missed-day decay to a profile snapshot.

    - no last_mock_date, or a gap of 0/1 days: unchanged (yesterday is still on streak)
    - gap >= 2 with points banked: spend one point, move last_mock_date to yesterday
    - gap >= 2 with no points: streak_count drops to 0, last_mock_date untouched
    """
    if profile.last_mock_date is None:
        return StreakDecision(profile, changed=False)

    today = today or current_day()
    gap = days_between(profile.last_mock_date, today)
    if gap < 2:
        return StreakDecision(profile, changed=False, gap_days=gap)

    if profile.streak_points > 0:
        updated = profile.evolve(
            streak_points=profile.streak_points - 1,
            last_mock_date=add_days(today, -1),
        )
        return StreakDecision(updated, changed=True, gap_days=gap, point_consumed=True)

    # last_mock_date stays put on a full reset, so the next login lands here again.
    if profile.streak_count == 0:
        return StreakDecision(profile, changed=False, gap_days=gap, streak_reset=True)
    return StreakDecision(profile.evolve(streak_count=0), changed=True, gap_days=gap, streak_reset=True)


def credit_activity(profile: UserProfile, today: Optional[date] = None) -> UserProfile:
    """Streak transition for a scored mock taken today."""
    today = today or current_day()
    if profile.last_mock_date is None:
        streak = 1
    else:
        gap = days_between(profile.last_mock_date, today)
        if gap == 0:
            streak = max(profile.streak_count, 1)
        elif gap == 1:
            streak = profile.streak_count + 1
        else:
            streak = 1

    points = profile.streak_points
    if streak != profile.streak_count and streak % STREAK_POINT_INTERVAL == 0:
        points = min(points + 1, MAX_STREAK_POINTS)

    return profile.evolve(streak_count=streak, streak_points=points, last_mock_date=today)


def evaluate_streak_on_login(db, profile: UserProfile, today: Optional[date] = None) -> UserProfile:
    """
    Run decay once for a freshly authenticated profile and persist it.

    Writes at most one partial update, only when something changed. A profile
    deleted underneath us is logged and returned as-is. Store errors propagate.
    """
    decision = decay_streak(profile, today)
    if not decision.changed:
        return decision.profile

    patch = decision.profile.patch_from(profile)
    try:
        saved = db.update_profile(profile.id, patch)
    except ProfileNotFound:
        logger.warning("Streak check skipped: profile %s no longer exists", profile.id)
        return profile

    if decision.point_consumed:
        logger.info(
            "%s missed %d days: spent a streak point (%d left), streak kept at %d",
            profile.username, decision.gap_days, saved.streak_points, saved.streak_count,
        )
    else:
        logger.info("%s missed %d days with no points: streak reset", profile.username, decision.gap_days)
    return saved
