"""Leaderboard and profile views. Read-only: nothing here writes to the store."""
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from engine import LEADERBOARD_LIMIT, PASS_PERCENTAGE, PRO_LEVEL_MOCKS
from portal.datemath import to_day, today as current_day
from portal.inactivity import InactivityStatus, classify_inactivity
from portal.models import UserProfile
from portal.streaks import decay_streak


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    username: str
    gpa: float
    exams_completed: int
    streak_count: int
    status: InactivityStatus


@dataclass(frozen=True)
class ProfileSummary:
    mocks_taken: int
    average_percentage: float
    level: str
    completed_today: int
    daily_goal: int
    status: InactivityStatus
    history: List[Dict]


def civilian_leaderboard(db, limit: int = LEADERBOARD_LIMIT, today: Optional[date] = None) -> List[LeaderboardEntry]:
    """Top profiles by GPA, super-user excluded, with the same badges the reaper sees."""
    today = today or current_day()
    ranked = sorted(
        (p for p in db.iter_profiles() if not p.is_superuser and p.total_exams_completed > 0),
        key=lambda p: (-p.gpa, -p.total_exams_completed, p.username.lower()),
    )
    return [
        LeaderboardEntry(
            rank=i,
            username=p.username,
            gpa=round(p.gpa, 1),
            exams_completed=p.total_exams_completed,
            streak_count=decay_streak(p, today).profile.streak_count,
            status=classify_inactivity(p.last_active_day, today),
        )
        for i, p in enumerate(ranked[:limit], start=1)
    ]


def profile_summary(db, profile: UserProfile, today: Optional[date] = None) -> ProfileSummary:
    today = today or current_day()
    scores = db.get_scores(profile.id)
    history = [
        {
            "date": to_day(s["created_at"]) if s.get("created_at") else None,
            "percentage": s.get("percentage", 0.0),
            "result": "PASSED" if (s.get("percentage") or 0.0) >= PASS_PERCENTAGE else "FAILED",
        }
        for s in scores
    ]
    average = sum(h["percentage"] for h in history) / len(history) if history else 0.0
    return ProfileSummary(
        mocks_taken=len(history),
        average_percentage=round(average, 1),
        level="Pro" if len(history) > PRO_LEVEL_MOCKS else "Rookie",
        completed_today=db.count_scores_since(profile.id, today),
        daily_goal=profile.daily_goal,
        status=classify_inactivity(profile.last_active_day, today),
        history=history,
    )
