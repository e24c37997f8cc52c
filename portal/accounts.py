"""
Accounts: invite-code redemption, login, role changes and admin wipes.
"""
import logging
import secrets
import string
from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import uuid4

from portal.errors import (
    InviteCodeInvalid,
    PermissionDenied,
    PortalError,
    ProfileNotFound,
    UsernameTaken,
)
from portal.models import Role, UserProfile
from portal.reaper import run_reaper_sweep
from portal.streaks import evaluate_streak_on_login

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 32
INVITE_CHARSET = string.ascii_uppercase + string.digits
INVITE_LENGTH = 8


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CHARSET) for _ in range(INVITE_LENGTH))


def normalize_username(username: str) -> str:
    name = (username or "").strip()
    if not name:
        raise ValueError("Username is required")
    if len(name) > USERNAME_MAX_LENGTH:
        raise ValueError(f"Username must be at most {USERNAME_MAX_LENGTH} characters")
    if "*" in name:
        raise ValueError("Username cannot contain '*'")
    return name


def redeem_invite(db, code: str, username: str) -> UserProfile:
    """
    Create a profile from a single-use invite code.

    The code is claimed first (conditional update); if the profile insert then
    fails the claim is released so the code is not burnt.
    """
    name = normalize_username(username)
    code = (code or "").strip().upper()
    if not code:
        raise InviteCodeInvalid("Invite code is required")
    if db.get_profile_by_username(name) is not None:
        raise UsernameTaken(f"Username {name!r} is already taken")

    user_id = str(uuid4())
    if not db.claim_invite_code(code, user_id):
        raise InviteCodeInvalid("Invite code is unknown or already used")

    profile = UserProfile(id=user_id, username=name, created_at=datetime.now(timezone.utc).isoformat())
    try:
        created = db.insert_profile(profile)
    except PortalError as e:
        db.release_invite_code(code, user_id)
        # Another signup took the name between the check and the insert
        if db.get_profile_by_username(name) is not None:
            raise UsernameTaken(f"Username {name!r} is already taken") from e
        raise
    logger.info("Invite code redeemed: created profile %s (%s)", name, user_id)
    return created


def login(db, username: str, today: Optional[date] = None) -> UserProfile:
    """Resolve a username, run the login streak check, and sweep if the super-user."""
    profile = db.get_profile_by_username(normalize_username(username))
    if profile is None:
        raise ProfileNotFound(f"No profile named {username!r}; redeem an invite code first")

    profile = evaluate_streak_on_login(db, profile, today)
    if profile.is_superuser:
        result = run_reaper_sweep(db, caller_is_privileged=True, today=today)
        if result.purged or result.errors:
            logger.info("Login sweep by %s: %d purged, %d errors", profile.username, result.purged, result.errors)
    return profile


def set_role(db, actor: UserProfile, target_id: str, role: Role) -> UserProfile:
    """
    Change a profile's tier.

    The super-user may set any tier below itself; an Elite Moderator may only
    move students and moderators between Student and Moderator.
    """
    if role is Role.SUPERUSER:
        raise PermissionDenied("The super-user role cannot be granted")
    target = db.get_profile(target_id)
    if target is None:
        raise ProfileNotFound(f"Profile {target_id} not found")
    if target.is_superuser:
        raise PermissionDenied("The super-user's role cannot be changed")

    if actor.role is Role.SUPERUSER:
        pass
    elif actor.role is Role.ELITE_MODERATOR:
        if role > Role.MODERATOR or target.role > Role.MODERATOR:
            raise PermissionDenied("Elite moderators can only manage students and moderators")
    else:
        raise PermissionDenied(f"{actor.username} cannot change roles")

    patch = {
        "is_moderator": role >= Role.MODERATOR,
        "is_elite_mod": role >= Role.ELITE_MODERATOR,
    }
    updated = db.update_profile(target.id, patch)
    logger.info("%s set %s to %s", actor.username, target.username, role.name)
    return updated


def set_daily_goal(db, profile: UserProfile, goal: int) -> UserProfile:
    """Set how many mocks a day the dashboard counts towards."""
    if goal < 1:
        raise ValueError("Daily goal must be at least 1")
    updated = db.update_profile(profile.id, {"daily_goal": int(goal)})
    logger.info("%s set daily goal to %d", profile.username, goal)
    return updated


def wipe_user(db, actor: UserProfile, target_id: str):
    """Super-user only: delete a profile and everything keyed by it."""
    if actor.role is not Role.SUPERUSER:
        raise PermissionDenied("Only the super-user can wipe accounts")
    target = db.get_profile(target_id)
    if target is None:
        raise ProfileNotFound(f"Profile {target_id} not found")
    if target.is_superuser:
        raise PermissionDenied("The super-user account cannot be wiped")
    db.delete_user_cascade(target.id)
    logger.info("%s wiped account %s (%s)", actor.username, target.username, target.id)


def create_invite_codes(db, actor: UserProfile, count: int = 1) -> List[str]:
    if actor.role < Role.MODERATOR:
        raise PermissionDenied("Only moderators can create invite codes")
    if count < 1:
        raise ValueError("count must be at least 1")
    codes = [generate_invite_code() for _ in range(count)]
    db.insert_invite_codes(codes, created_by=actor.id)
    logger.info("%s created %d invite code(s)", actor.username, count)
    return codes
