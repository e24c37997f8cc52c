"""The Brain Portal: multi-page Streamlit front end."""
import random
import sys
from pathlib import Path

# Ensure project root is in path
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import streamlit as st

from db import get_database
from importer import parse_payload
from portal.accounts import create_invite_codes, login, redeem_invite, set_daily_goal, set_role, wipe_user
from portal.engine import MockSession, daily_question, submit_mock_result
from portal.errors import PortalError
from portal.inactivity import InactivityTier
from portal.leaderboard import civilian_leaderboard, profile_summary
from portal.models import Role
from portal.reaper import run_reaper_sweep

MOCK_QUESTIONS = 20
TIER_BADGES = {
    InactivityTier.ACTIVE: "🟢 Active",
    InactivityTier.WARNING: "🟡 Slipping",
    InactivityTier.DANGER: "🔴 Danger",
    InactivityTier.PURGE_ELIGIBLE: "⚫ Inactive",
}

st.set_page_config(page_title="The Brain Portal", layout="wide")
db = get_database()

# ----- Login -----
if "user" not in st.session_state:
    st.session_state["user"] = None

if st.session_state["user"] is None:
    st.title("The Brain Portal")
    tab_login, tab_join = st.tabs(["Log in", "Join with invite code"])
    with tab_login:
        username = st.text_input("Username", key="login_username")
        if st.button("Enter", type="primary"):
            try:
                # Streak decay runs here, once per login, not on every rerun.
                st.session_state["user"] = login(db, username)
                st.rerun()
            except (PortalError, ValueError) as e:
                st.error(str(e))
    with tab_join:
        new_name = st.text_input("Choose a username", key="join_username")
        code = st.text_input("Invite code", key="join_code")
        if st.button("Create account"):
            try:
                st.session_state["user"] = redeem_invite(db, code, new_name)
                st.rerun()
            except (PortalError, ValueError) as e:
                st.error(str(e))
    st.stop()

user = st.session_state["user"]
pages = ["Dashboard", "Mock Test", "Leaderboard", "Profile", "Notes"]
if user.role >= Role.MODERATOR:
    pages.append("Admin")
st.sidebar.title("The Brain Portal")
st.sidebar.metric("Streak", f"{user.streak_count} days", help=f"{user.streak_points} streak point(s) banked")
page = st.sidebar.radio("Navigate", pages, label_visibility="collapsed")
if st.sidebar.button("Log out"):
    st.session_state.clear()
    st.rerun()

# ----- Dashboard -----
if page == "Dashboard":
    st.header(f"Welcome back, {user.username}!")
    try:
        summary = profile_summary(db, user)
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("GPA", f"{user.gpa:.1f}%")
        with col2:
            st.metric("Mocks today", f"{summary.completed_today} / {summary.daily_goal}")
        with col3:
            st.metric("Status", TIER_BADGES[summary.status.tier])
        st.progress(min(summary.completed_today / summary.daily_goal, 1.0) if summary.daily_goal else 0.0)
        if summary.status.remaining_days is not None:
            st.warning(f"Take a mock soon: this account is purged in {summary.status.remaining_days} day(s).")

        goal = st.number_input("Daily goal (mocks)", min_value=1, value=user.daily_goal, step=1)
        if st.button("Set goal") and goal != user.daily_goal:
            st.session_state["user"] = set_daily_goal(db, user, int(goal))
            st.rerun()

        st.subheader("🧠 Brain Tickle")
        tickle = daily_question(db.get_questions())
        if tickle is None:
            st.caption("No questions in the bank yet.")
        else:
            st.write(tickle.get("question", ""))
            tickle_options = tickle.get("options") or []
            for i, option in enumerate(tickle_options):
                st.write(f"{chr(65 + i)}. {option}")
            if st.button("Reveal answer"):
                answer = tickle.get("correct_option")
                if answer is not None and 0 <= answer < len(tickle_options):
                    st.success(f"Answer: {chr(65 + answer)}. {tickle_options[answer]}")
                if tickle.get("explanation"):
                    st.info(tickle["explanation"])
    except PortalError as e:
        st.error(f"Could not load your stats. Check DB and .env (SUPABASE_URL, SUPABASE_KEY). {e}")

# ----- Mock Test -----
elif page == "Mock Test":
    st.header("Mock Test")
    st.caption(f"{MOCK_QUESTIONS} MCQs · {MockSession.DURATION_SECONDS // 60} minutes · pass at 50%")
    session = st.session_state.get("mock")

    if session is None:
        if st.button("Start mock", type="primary"):
            try:
                pool = db.get_questions()
                if not pool:
                    st.warning("No questions in the bank yet.")
                else:
                    picked = random.sample(pool, min(MOCK_QUESTIONS, len(pool)))
                    st.session_state["mock"] = MockSession(user.id, picked)
                    st.session_state["mock_idx"] = 0
                    st.session_state["mock_saved"] = False
                    st.rerun()
            except PortalError as e:
                st.error(f"Failed to load questions: {e}")
        st.stop()

    if session.result is not None:
        r = session.result
        if not st.session_state.get("mock_saved"):
            st.warning(f"Your result ({r.score}/{r.total}) has not been saved yet.")
            if st.button("Retry save", type="primary"):
                try:
                    st.session_state["user"] = submit_mock_result(db, user, r)
                    st.session_state["mock_saved"] = True
                    st.rerun()
                except PortalError as e:
                    st.error(f"Could not save your result: {e}")
            st.stop()
        st.success(f"Mock complete! {r.score}/{r.total} ({r.percentage:.1f}%): {'PASSED' if r.passed else 'FAILED'}")
        if st.button("Back to dashboard"):
            del st.session_state["mock"]
            st.session_state["mock_saved"] = False
            st.rerun()
        st.stop()

    remaining = session.time_remaining()
    m, s = divmod(remaining, 60)
    st.sidebar.metric("Time left", f"{m}:{s:02d}")
    idx = st.session_state.get("mock_idx", 0)
    q = session.questions[idx]
    st.subheader(f"Question {idx + 1} of {len(session.questions)}")
    st.write(q.get("question", ""))
    options = q.get("options") or []
    current = session.selected.get(idx)
    choice = st.radio("Choose one:", range(len(options)), format_func=lambda i: options[i],
                      index=current if current is not None else None, key=f"mock_q_{session.session_id}_{idx}")
    if choice is not None:
        session.select(idx, choice)

    col1, col2, col3 = st.columns([1, 1, 2])
    with col1:
        if st.button("Previous") and idx > 0:
            st.session_state["mock_idx"] = idx - 1
            st.rerun()
    with col2:
        if st.button("Next") and idx < len(session.questions) - 1:
            st.session_state["mock_idx"] = idx + 1
            st.rerun()
    with col3:
        submit = st.button("Submit test")
    # Auto-submit when time runs out
    if submit or session.is_expired():
        try:
            st.session_state["user"] = submit_mock_result(db, user, session.finish())
            st.session_state["mock_saved"] = True
            st.rerun()
        except PortalError as e:
            # session.result is now set, so the next rerun offers "Retry save"
            st.error(f"Could not save your result: {e}")

# ----- Leaderboard -----
elif page == "Leaderboard":
    st.header("Global Rankings")
    try:
        rows = civilian_leaderboard(db)
    except PortalError as e:
        st.error(f"Could not load rankings: {e}")
        rows = []
    if not rows:
        st.info("No scores yet. Be the first to take a mock!")
    for entry in rows:
        st.write(
            f"**#{entry.rank} {entry.username}** · {entry.gpa:.1f}% over {entry.exams_completed} mock(s) · "
            f"🔥 {entry.streak_count} · {TIER_BADGES[entry.status.tier]}"
        )

# ----- Profile -----
elif page == "Profile":
    st.header("Profile")
    try:
        summary = profile_summary(db, user)
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("Mocks Taken", summary.mocks_taken)
        with col2:
            st.metric("Average Score", f"{summary.average_percentage}%")
        with col3:
            st.metric("User Level", summary.level)
        st.subheader("Exam History")
        if summary.history:
            st.dataframe(summary.history, use_container_width=True)
        else:
            st.caption("No history found. Complete a mock test to see your stats!")
    except PortalError as e:
        st.error(str(e))

# ----- Notes -----
elif page == "Notes":
    st.header("Study Notes")
    try:
        notes = db.get_notes(user.id)
        subject = st.text_input("Subject")
        existing = next((n for n in notes if n["subject"] == subject), None)
        content = st.text_area("Note", value=existing["content"] if existing else "", height=240)
        if st.button("Save note") and subject:
            db.save_note(user.id, subject, content)
            st.rerun()
        for note in notes:
            with st.expander(note["subject"]):
                st.write(note["content"])
                if st.button("Delete", key=f"del_{note['id']}"):
                    db.delete_note(user.id, note["id"])
                    st.rerun()
    except PortalError as e:
        st.error(str(e))

# ----- Admin -----
elif page == "Admin":
    st.header("Admin Console")
    try:
        if st.button("Create invite code"):
            st.code(create_invite_codes(db, user)[0])

        st.subheader("Bulk Upload Questions")
        payload = st.text_area("Paste JSON here...", height=200)
        if st.button("Push to Database"):
            try:
                rows, skipped = parse_payload(payload)
                db.upsert_questions_batch(rows)
                st.success(f"Success! {len(rows)} questions uploaded ({skipped} skipped).")
            except ValueError as e:
                st.error(f"Error: check your JSON format. {e}")

        if user.role >= Role.ELITE_MODERATOR:
            st.subheader("Permissions")
            others = [p for p in db.iter_profiles() if p.id != user.id and not p.is_superuser]
            target = st.selectbox("User", others, format_func=lambda p: f"{p.username} ({p.role.name.lower()})")
            allowed = [Role.STUDENT, Role.MODERATOR] + ([Role.ELITE_MODERATOR] if user.is_superuser else [])
            role = st.selectbox("Role", allowed, format_func=lambda r: r.name.replace("_", " ").title())
            if target is not None and st.button("Apply role"):
                set_role(db, user, target.id, role)
                st.success(f"{target.username} is now {role.name.lower()}")
            if user.is_superuser and target is not None and st.button("Wipe user", type="secondary"):
                wipe_user(db, user, target.id)
                st.success(f"{target.username} and all their data were deleted")

        if user.is_superuser:
            st.subheader("Reaper")
            if st.button("Run reaper sweep"):
                result = run_reaper_sweep(db, caller_is_privileged=True)
                st.success(f"Purged {result.purged} profile(s), {result.errors} error(s)")
    except PortalError as e:
        st.error(str(e))
