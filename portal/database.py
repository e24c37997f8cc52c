"""
Database operations for the Brain Portal.
Handles Supabase CRUD for profiles, scores, personal notes, invite codes and questions.
"""
import logging
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional

from supabase import Client

from portal.datemath import local_midnight
from portal.errors import DependentDeleteFailed, ProfileNotFound, StoreUnavailable
from portal.models import UserProfile

logger = logging.getLogger(__name__)

PROFILES = "profiles"
SCORES = "scores"
PERSONAL_NOTES = "personal_notes"
INVITE_CODES = "invite_codes"
QUESTIONS = "questions"

# Tables holding rows keyed by profiles.id; cleared before the profile row itself.
DEPENDENT_TABLES = (SCORES, PERSONAL_NOTES)


class DatabaseClient:
    """Wrapper around a Supabase client with portal-specific operations."""

    def __init__(self, client: Client):
        self.client = client

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except Exception as e:
            logger.error("Error %s: %s", action, e)
            raise StoreUnavailable(f"Error {action}: {e}") from e

    # ============= Profiles =============

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        response = self._execute(
            self.client.table(PROFILES).select("*").eq("id", str(user_id)).limit(1),
            f"fetching profile {user_id}",
        )
        return UserProfile.from_row(response.data[0]) if response.data else None

    def get_profile_by_username(self, username: str) -> Optional[UserProfile]:
        """
        Case-insensitive exact match (ilike with LIKE wildcards escaped).

        PostgREST reads ``*`` as ``%`` in like patterns and has no escape for it,
        so a name containing ``*`` can never match a stored profile.
        """
        name = username.strip()
        if "*" in name:
            return None
        pattern = name.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        response = self._execute(
            self.client.table(PROFILES).select("*").ilike("username", pattern).limit(1),
            f"fetching profile {username!r}",
        )
        return UserProfile.from_row(response.data[0]) if response.data else None

    def iter_profiles(self, page_size: int = 1000) -> Iterator[UserProfile]:
        """Page through every profile (Supabase caps a select at 1000 rows by default)."""
        offset = 0
        while True:
            response = self._execute(
                self.client.table(PROFILES)
                .select("*")
                .order("id")
                .range(offset, offset + page_size - 1),
                "scanning profiles",
            )
            data = response.data or []
            for row in data:
                yield UserProfile.from_row(row)
            if len(data) < page_size:
                break
            offset += page_size

    def insert_profile(self, profile: UserProfile) -> UserProfile:
        response = self._execute(
            self.client.table(PROFILES).insert(profile.to_row()),
            f"creating profile {profile.username!r}",
        )
        return UserProfile.from_row(response.data[0]) if response.data else profile

    def update_profile(self, user_id: str, patch: Dict) -> UserProfile:
        """Partial update. Raises ProfileNotFound when no row matched."""
        response = self._execute(
            self.client.table(PROFILES).update(patch).eq("id", str(user_id)),
            f"updating profile {user_id}",
        )
        if not response.data:
            raise ProfileNotFound(f"Profile {user_id} not found")
        return UserProfile.from_row(response.data[0])

    def delete_profile(self, user_id: str):
        self._execute(
            self.client.table(PROFILES).delete().eq("id", str(user_id)),
            f"deleting profile {user_id}",
        )

    def delete_dependents(self, user_id: str):
        """Delete every row keyed by this user in the dependent tables."""
        for table in DEPENDENT_TABLES:
            try:
                self.client.table(table).delete().eq("user_id", str(user_id)).execute()
            except Exception as e:
                logger.error("Error deleting %s rows for %s: %s", table, user_id, e)
                raise DependentDeleteFailed(str(user_id), table) from e

    def delete_user_cascade(self, user_id: str):
        """Dependents first, then the profile row."""
        self.delete_dependents(user_id)
        self.delete_profile(user_id)

    # ============= Scores =============

    def insert_score(self, row: Dict) -> Dict:
        response = self._execute(self.client.table(SCORES).insert(row), "saving score")
        return response.data[0] if response.data else row

    def delete_score(self, score_id: str):
        self._execute(self.client.table(SCORES).delete().eq("id", str(score_id)), f"deleting score {score_id}")

    def get_scores(self, user_id: str, limit: Optional[int] = None) -> List[Dict]:
        query = (
            self.client.table(SCORES)
            .select("*")
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
        )
        if limit:
            query = query.limit(limit)
        return self._execute(query, f"fetching scores for {user_id}").data or []

    def count_scores_since(self, user_id: str, since: date) -> int:
        response = self._execute(
            self.client.table(SCORES)
            .select("id")
            .eq("user_id", str(user_id))
            .gte("created_at", local_midnight(since).isoformat()),
            f"counting scores for {user_id}",
        )
        return len(response.data or [])

    # ============= Personal notes =============

    def get_notes(self, user_id: str) -> List[Dict]:
        return self._execute(
            self.client.table(PERSONAL_NOTES)
            .select("*")
            .eq("user_id", str(user_id))
            .order("updated_at", desc=True),
            f"fetching notes for {user_id}",
        ).data or []

    def save_note(self, user_id: str, subject: str, content: str) -> Dict:
        row = {
            "user_id": str(user_id),
            "subject": subject,
            "content": content,
            "updated_at": datetime.utcnow().isoformat(),
        }
        response = self._execute(
            self.client.table(PERSONAL_NOTES).upsert(row, on_conflict="user_id,subject"),
            f"saving note {subject!r}",
        )
        return response.data[0] if response.data else row

    def delete_note(self, user_id: str, note_id: str):
        self._execute(
            self.client.table(PERSONAL_NOTES).delete().eq("id", str(note_id)).eq("user_id", str(user_id)),
            f"deleting note {note_id}",
        )

    # ============= Invite codes =============

    def insert_invite_codes(self, codes: List[str], created_by: str) -> List[Dict]:
        rows = [{"code": c, "created_by": str(created_by), "used_by": None} for c in codes]
        return self._execute(self.client.table(INVITE_CODES).insert(rows), "creating invite codes").data or []

    def claim_invite_code(self, code: str, user_id: str) -> bool:
        """
        Mark an unused code as used by user_id.

        The used_by IS NULL filter makes the claim a single conditional update, so
        of two concurrent redemptions only one gets a row back.
        """
        response = self._execute(
            self.client.table(INVITE_CODES)
            .update({"used_by": str(user_id), "used_at": datetime.utcnow().isoformat()})
            .eq("code", code)
            .is_("used_by", "null"),
            "claiming invite code",
        )
        return bool(response.data)

    def release_invite_code(self, code: str, user_id: str):
        self._execute(
            self.client.table(INVITE_CODES)
            .update({"used_by": None, "used_at": None})
            .eq("code", code)
            .eq("used_by", str(user_id)),
            "releasing invite code",
        )

    # ============= Questions =============

    def get_questions(self, subject: Optional[str] = None, limit: Optional[int] = None) -> List[Dict]:
        query = self.client.table(QUESTIONS).select("*")
        if subject:
            query = query.eq("subject", subject)
        if limit:
            query = query.limit(limit)
        return self._execute(query, "fetching questions").data or []

    def upsert_questions_batch(self, questions: List[Dict], chunk_size: int = 200) -> int:
        """
        Batch upsert questions with chunking. Dedupes by id so no chunk has
        duplicates (avoids Postgres ON CONFLICT error).

        Returns:
            Total number of questions upserted
        """
        by_id = {q["id"]: q for q in questions}
        rows = list(by_id.values())
        if len(rows) < len(questions):
            logger.info("Deduped questions by id: %d -> %d", len(questions), len(rows))
        n_chunks = (len(rows) + chunk_size - 1) // chunk_size
        total = 0
        for i in range(0, len(rows), chunk_size):
            chunk = rows[i : i + chunk_size]
            logger.info("Upserting chunk %d/%d (%d rows)", i // chunk_size + 1, n_chunks, len(chunk))
            self._execute(self.client.table(QUESTIONS).upsert(chunk, on_conflict="id"), "upserting questions")
            total += len(chunk)
        logger.info("Total questions upserted: %d", total)
        return total
