"""
Profile snapshot and role tiers.
Rows come from the Supabase `profiles` table as plain dicts; this module converts
them into immutable snapshots and back into partial-update patches.
"""
from dataclasses import dataclass, field, replace
from datetime import date
from enum import IntEnum
from typing import Dict, Optional

from engine import DEFAULT_DAILY_GOAL
from portal.datemath import to_day


class Role(IntEnum):
    """Ordered permission tiers. Higher value = more privilege."""
    STUDENT = 0
    MODERATOR = 1
    ELITE_MODERATOR = 2
    SUPERUSER = 3


@dataclass(frozen=True)
class UserProfile:
    id: str
    username: str
    streak_count: int = 0
    streak_points: int = 0
    last_mock_date: Optional[date] = None
    total_percentage_points: float = 0.0
    total_exams_completed: int = 0
    is_moderator: bool = False
    is_elite_mod: bool = False
    is_superuser: bool = False
    daily_goal: int = DEFAULT_DAILY_GOAL
    created_at: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if self.streak_count < 0 or self.streak_points < 0:
            raise ValueError(f"Negative streak counters for {self.username!r}")

    @property
    def gpa(self) -> float:
        """Lifetime average percentage across completed mocks."""
        if not self.total_exams_completed:
            return 0.0
        return self.total_percentage_points / self.total_exams_completed

    @property
    def last_active_day(self) -> Optional[date]:
        """Day used for inactivity checks: last mock, else the day the profile was created."""
        if self.last_mock_date is not None:
            return self.last_mock_date
        if self.created_at:
            return to_day(self.created_at)
        return None

    @property
    def role(self) -> Role:
        if self.is_superuser:
            return Role.SUPERUSER
        if self.is_elite_mod:
            return Role.ELITE_MODERATOR
        if self.is_moderator:
            return Role.MODERATOR
        return Role.STUDENT

    @classmethod
    def from_row(cls, row: Dict) -> "UserProfile":
        last = row.get("last_mock_date")
        return cls(
            id=str(row["id"]),
            username=row["username"],
            streak_count=int(row.get("streak_count") or 0),
            streak_points=int(row.get("streak_points") or 0),
            last_mock_date=to_day(last) if last else None,
            total_percentage_points=float(row.get("total_percentage_points") or 0.0),
            total_exams_completed=int(row.get("total_exams_completed") or 0),
            is_moderator=bool(row.get("is_moderator")),
            is_elite_mod=bool(row.get("is_elite_mod")),
            is_superuser=bool(row.get("is_superuser")),
            daily_goal=int(row.get("daily_goal") or DEFAULT_DAILY_GOAL),
            created_at=row.get("created_at"),
        )

    def to_row(self) -> Dict:
        row = {
            "id": self.id,
            "username": self.username,
            "streak_count": self.streak_count,
            "streak_points": self.streak_points,
            "last_mock_date": self.last_mock_date.isoformat() if self.last_mock_date else None,
            "total_percentage_points": self.total_percentage_points,
            "total_exams_completed": self.total_exams_completed,
            "is_moderator": self.is_moderator,
            "is_elite_mod": self.is_elite_mod,
            "is_superuser": self.is_superuser,
            "daily_goal": self.daily_goal,
        }
        if self.created_at:
            row["created_at"] = self.created_at
        return row

    def patch_from(self, before: "UserProfile") -> Dict:
        """Fields of this snapshot that differ from ``before``, as a row patch."""
        new_row, old_row = self.to_row(), before.to_row()
        return {k: v for k, v in new_row.items() if k != "id" and old_row.get(k) != v}

    def evolve(self, **changes) -> "UserProfile":
        return replace(self, **changes)
