"""Mock session scoring and result submission."""
from datetime import datetime, timedelta

import pytest

from conftest import TODAY
from portal.engine import MockResult, MockSession, daily_question, submit_mock_result
from portal.errors import StoreUnavailable


def _questions(n=4):
    return [
        {"id": f"q{i}", "question": f"Q{i}?", "options": ["a", "b", "c", "d"], "correct_option": i % 4}
        for i in range(n)
    ]


def test_score_counts_correct_answers():
    session = MockSession("u1", _questions(4))
    session.select(0, 0)  # correct
    session.select(1, 1)  # correct
    session.select(2, 0)  # wrong
    result = session.finish()
    assert (result.score, result.total) == (2, 4)
    assert result.percentage == 50.0
    assert result.passed


def test_unanswered_counts_as_wrong():
    session = MockSession("u1", _questions(4))
    session.select(0, 0)
    result = session.finish()
    assert result.percentage == 25.0
    assert not result.passed


def test_changing_an_answer_keeps_the_last_choice():
    session = MockSession("u1", _questions(1))
    session.select(0, 3)
    session.select(0, 0)
    assert session.finish().score == 1


def test_invalid_selection_rejected():
    session = MockSession("u1", _questions(2))
    with pytest.raises(IndexError):
        session.select(5, 0)
    with pytest.raises(ValueError):
        session.select(0, 9)


def test_no_changes_after_finish():
    session = MockSession("u1", _questions(2))
    first = session.finish()
    assert session.finish() is first
    with pytest.raises(RuntimeError):
        session.select(0, 0)


def test_empty_mock_scores_zero():
    assert MockSession("u1", []).finish().percentage == 0.0


def test_timer_expires():
    start = datetime(2026, 3, 15, 9, 0)
    session = MockSession("u1", _questions(), started_at=start)
    assert session.time_remaining(start + timedelta(seconds=60)) == MockSession.DURATION_SECONDS - 60
    assert not session.is_expired(start + timedelta(seconds=30))
    assert session.is_expired(start + timedelta(seconds=MockSession.DURATION_SECONDS))


def test_submit_updates_profile_and_saves_score(db, supabase, make_profile):
    profile = make_profile("tariq", days_ago=1, streak_count=3, total_percentage_points=160.0, total_exams_completed=2)
    updated = submit_mock_result(db, profile, MockResult(8, 10, 80.0, True), mock_id=7, today=TODAY)

    assert updated.total_exams_completed == 3
    assert updated.total_percentage_points == 240.0
    assert updated.gpa == 80.0
    assert updated.streak_count == 4
    assert updated.last_mock_date == TODAY
    saved = supabase.tables["scores"][0]
    assert (saved["user_id"], saved["mock_id"], saved["percentage"]) == (profile.id, 7, 80.0)
    assert supabase.writes() == [("profiles", "update")]


def test_second_mock_same_day_keeps_streak(db, make_profile):
    profile = make_profile("uzma", days_ago=1, streak_count=3)
    first = submit_mock_result(db, profile, MockResult(5, 10, 50.0, True), today=TODAY)
    second = submit_mock_result(db, first, MockResult(6, 10, 60.0, True), today=TODAY)
    assert second.streak_count == 4
    assert second.total_exams_completed == 2


def test_failed_profile_update_removes_score(db, supabase, make_profile):
    """A mock that could not be credited leaves no score row behind, so it can be resubmitted."""
    profile = make_profile("vaqar", days_ago=1, streak_count=2, total_exams_completed=1, total_percentage_points=50.0)
    supabase.fail("profiles", "update")
    with pytest.raises(StoreUnavailable):
        submit_mock_result(db, profile, MockResult(7, 10, 70.0, True), today=TODAY)
    assert supabase.tables["scores"] == []
    assert db.get_profile(profile.id) == profile

    del supabase.failures[("profiles", "update")]
    updated = submit_mock_result(db, profile, MockResult(7, 10, 70.0, True), today=TODAY)
    assert updated.total_exams_completed == 2
    assert len(supabase.tables["scores"]) == 1


def test_daily_question_is_stable_for_a_day():
    pool = _questions(10)
    picked = daily_question(pool, TODAY)
    assert picked in pool
    assert daily_question(list(reversed(pool)), TODAY) == picked
    days = {daily_question(pool, TODAY + timedelta(days=i))["id"] for i in range(30)}
    assert len(days) > 1


def test_daily_question_empty_pool():
    assert daily_question([], TODAY) is None
