"""Print the Supabase schema for the Brain Portal and seed the super-user profile."""
import logging
import sys
from datetime import datetime
from uuid import uuid4

logger = logging.getLogger(__name__)

# SQL schema
SCHEMA_SQL = """
-- Profiles (one per redeemed invite code)
CREATE TABLE IF NOT EXISTS profiles (
    id UUID PRIMARY KEY,
    username TEXT NOT NULL,
    streak_count INT NOT NULL DEFAULT 0 CHECK (streak_count >= 0),
    streak_points INT NOT NULL DEFAULT 0 CHECK (streak_points >= 0),
    last_mock_date DATE,
    total_percentage_points DOUBLE PRECISION NOT NULL DEFAULT 0,
    total_exams_completed INT NOT NULL DEFAULT 0,
    is_moderator BOOLEAN NOT NULL DEFAULT FALSE,
    is_elite_mod BOOLEAN NOT NULL DEFAULT FALSE,
    is_superuser BOOLEAN NOT NULL DEFAULT FALSE,
    daily_goal INT NOT NULL DEFAULT 5,
    created_at TIMESTAMPTZ DEFAULT NOW()
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_profiles_username_ci ON profiles (LOWER(username));
-- Only one super-user row can exist
CREATE UNIQUE INDEX IF NOT EXISTS idx_profiles_single_superuser ON profiles (is_superuser) WHERE is_superuser;

-- Single-use invite codes
CREATE TABLE IF NOT EXISTS invite_codes (
    code TEXT PRIMARY KEY,
    created_by UUID,
    used_by UUID,
    used_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Mock results (dependent on profiles)
CREATE TABLE IF NOT EXISTS scores (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES profiles(id),
    mock_id INT NOT NULL DEFAULT 1,
    score INT NOT NULL,
    total INT NOT NULL,
    percentage DOUBLE PRECISION NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

-- Personal study notes (dependent on profiles)
CREATE TABLE IF NOT EXISTS personal_notes (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES profiles(id),
    subject TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    updated_at TIMESTAMPTZ DEFAULT NOW(),
    UNIQUE(user_id, subject)
);

-- Question bank
CREATE TABLE IF NOT EXISTS questions (
    id UUID PRIMARY KEY,
    subject TEXT NOT NULL DEFAULT 'general',
    question TEXT NOT NULL,
    options JSONB NOT NULL,
    correct_option INT NOT NULL,
    explanation TEXT
);

CREATE INDEX IF NOT EXISTS idx_profiles_last_mock_date ON profiles(last_mock_date);
CREATE INDEX IF NOT EXISTS idx_scores_user_id ON scores(user_id);
CREATE INDEX IF NOT EXISTS idx_personal_notes_user_id ON personal_notes(user_id);
CREATE INDEX IF NOT EXISTS idx_questions_subject ON questions(subject);
"""


def seed_superuser(db, username: str):
    """Create the super-user profile, or flag an existing profile with that name."""
    from portal.models import UserProfile

    existing = db.get_profile_by_username(username)
    if existing is not None:
        if not existing.is_superuser:
            db.update_profile(existing.id, {"is_superuser": True})
        logger.info("Super-user %s already present (%s)", username, existing.id)
        return existing.id
    profile = UserProfile(
        id=str(uuid4()),
        username=username,
        is_superuser=True,
        created_at=datetime.utcnow().isoformat(),
    )
    db.insert_profile(profile)
    logger.info("Seeded super-user %s (%s)", username, profile.id)
    return profile.id


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    print("Run this SQL in the Supabase SQL Editor (Supabase > SQL Editor > New Query):")
    print(SCHEMA_SQL)
    if "--seed" in sys.argv:
        from db import get_database_uncached, superuser_name

        seed_superuser(get_database_uncached(), superuser_name())
