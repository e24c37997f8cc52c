"""
Mock Engine: timed mock session, scoring, and result submission.
One point per correct answer; percentage = correct / questions * 100; pass at 50%.
"""
import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from engine import MOCK_DURATION_SECONDS, PASS_PERCENTAGE
from portal.datemath import today as current_day
from portal.errors import PortalError
from portal.models import UserProfile
from portal.streaks import credit_activity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MockResult:
    score: int
    total: int
    percentage: float
    passed: bool


class MockSession:
    """Manages a single timed mock: answer selection and scoring."""

    DURATION_SECONDS = MOCK_DURATION_SECONDS

    def __init__(self, user_id: str, questions: List[Dict], started_at: Optional[datetime] = None):
        """
        Initialize mock session.

        Args:
            user_id: id of the test-taker
            questions: question rows; expected keys: id, question, options, correct_option
        """
        self.session_id = uuid4()
        self.user_id = user_id
        self.questions = questions
        self.selected: Dict[int, int] = {}  # question index -> option index
        self.started_at = started_at or datetime.utcnow()
        self.result: Optional[MockResult] = None

    def select(self, index: int, option: int):
        """Record (or change) the chosen option for question ``index``."""
        if self.result is not None:
            raise RuntimeError("Mock already submitted")
        if not 0 <= index < len(self.questions):
            raise IndexError(f"No question at index {index}")
        options = self.questions[index].get("options") or []
        if not 0 <= option < len(options):
            raise ValueError(f"Question {index} has no option {option}")
        self.selected[index] = option

    def time_remaining(self, now: Optional[datetime] = None) -> int:
        elapsed = ((now or datetime.utcnow()) - self.started_at).total_seconds()
        return max(0, self.DURATION_SECONDS - int(elapsed))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.time_remaining(now) <= 0

    def finish(self) -> MockResult:
        """Score the session. Unanswered questions count as wrong."""
        if self.result is not None:
            return self.result
        total = len(self.questions)
        score = sum(
            1 for i, q in enumerate(self.questions)
            if i in self.selected and self.selected[i] == q.get("correct_option")
        )
        percentage = (score / total * 100) if total else 0.0
        self.result = MockResult(score, total, percentage, percentage >= PASS_PERCENTAGE)
        logger.info(f"Mock {self.session_id} finished: {score}/{total} ({percentage:.1f}%)")
        return self.result


def submit_mock_result(
    db,
    profile: UserProfile,
    result: MockResult,
    mock_id: int = 1,
    today: Optional[date] = None,
) -> UserProfile:
    """
    Save a finished mock and credit the profile.

    Inserts the score row, then writes accumulators, streak and last_mock_date
    together in one profile patch. If the patch fails the score row is deleted
    again, so a retry does not count the mock twice.

    Returns:
        The updated profile snapshot
    """
    today = today or current_day()
    saved = db.insert_score({
        "user_id": profile.id,
        "mock_id": mock_id,
        "score": result.score,
        "total": result.total,
        "percentage": result.percentage,
        "created_at": datetime.now(timezone.utc).isoformat(),
    })
    credited = credit_activity(profile, today).evolve(
        total_percentage_points=profile.total_percentage_points + result.percentage,
        total_exams_completed=profile.total_exams_completed + 1,
    )
    try:
        updated = db.update_profile(profile.id, credited.patch_from(profile))
    except PortalError:
        logger.warning(f"{profile.username}: profile update failed, removing score {saved.get('id')}")
        if saved.get("id") is not None:
            db.delete_score(saved["id"])
        raise
    logger.info(
        f"{profile.username}: mock {mock_id} saved, streak {updated.streak_count}, GPA {updated.gpa:.1f}"
    )
    return updated


def daily_question(questions: List[Dict], day: Optional[date] = None) -> Optional[Dict]:
    """Pick the question of the day. Same pool and day give the same question."""
    if not questions:
        return None
    day = day or current_day()
    ordered = sorted(questions, key=lambda q: str(q.get("id", "")))
    return random.Random(day.toordinal()).choice(ordered)
