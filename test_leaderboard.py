"""Civilian leaderboard and profile summary."""
from conftest import TODAY
from portal.inactivity import InactivityTier
from portal.leaderboard import civilian_leaderboard, profile_summary


def test_ranked_by_gpa_without_superuser(db, make_profile):
    make_profile("root", days_ago=0, total_percentage_points=500.0, total_exams_completed=5, is_superuser=True)
    make_profile("low", days_ago=0, total_percentage_points=120.0, total_exams_completed=2)
    make_profile("high", days_ago=0, total_percentage_points=270.0, total_exams_completed=3)
    make_profile("idle", days_ago=0)

    board = civilian_leaderboard(db, today=TODAY)

    assert [e.username for e in board] == ["high", "low"]
    assert [e.rank for e in board] == [1, 2]
    assert board[0].gpa == 90.0


def test_ties_break_on_exam_count(db, make_profile):
    make_profile("few", days_ago=0, total_percentage_points=80.0, total_exams_completed=1)
    make_profile("many", days_ago=0, total_percentage_points=240.0, total_exams_completed=3)
    assert [e.username for e in civilian_leaderboard(db, today=TODAY)] == ["many", "few"]


def test_badges_match_reaper_tiers(db, make_profile):
    make_profile("slipping", days_ago=45, total_percentage_points=50.0, total_exams_completed=1, streak_count=4)
    entry = civilian_leaderboard(db, today=TODAY)[0]
    assert entry.status.tier is InactivityTier.DANGER
    assert entry.status.remaining_days == 15
    # Shown as the streak will read at next login (no points banked -> reset)
    assert entry.streak_count == 0


def test_leaderboard_is_read_only(db, supabase, make_profile):
    make_profile("v", days_ago=10, total_percentage_points=70.0, total_exams_completed=1, streak_count=3, streak_points=1)
    civilian_leaderboard(db, today=TODAY)
    assert supabase.writes() == []


def test_limit(db, make_profile):
    for i in range(12):
        make_profile(f"p{i:02d}", days_ago=0, total_percentage_points=float(i), total_exams_completed=1)
    assert len(civilian_leaderboard(db, today=TODAY)) == 10
    assert len(civilian_leaderboard(db, limit=3, today=TODAY)) == 3


def test_profile_summary(db, supabase, make_profile):
    profile = make_profile("wasim", days_ago=0, daily_goal=3)
    supabase.tables["scores"] = [
        {"id": str(i), "user_id": profile.id, "percentage": pct, "created_at": created}
        for i, (pct, created) in enumerate([
            (40.0, "2026-03-01T10:00:00"),
            (80.0, "2026-03-15T09:00:00"),
            (60.0, "2026-03-15T11:00:00"),
        ])
    ]
    summary = profile_summary(db, profile, today=TODAY)
    assert summary.mocks_taken == 3
    assert summary.average_percentage == 60.0
    assert summary.level == "Rookie"
    assert summary.completed_today == 2
    assert summary.daily_goal == 3
    assert [h["result"] for h in summary.history] == ["PASSED", "PASSED", "FAILED"]


def test_pro_level_after_five_mocks(db, supabase, make_profile):
    profile = make_profile("xena", days_ago=0)
    supabase.tables["scores"] = [
        {"id": str(i), "user_id": profile.id, "percentage": 70.0, "created_at": "2026-03-0%dT10:00:00" % (i + 1)}
        for i in range(6)
    ]
    assert profile_summary(db, profile, today=TODAY).level == "Pro"
