"""Portal error taxonomy."""


class PortalError(Exception):
    """Base class for errors surfaced to portal callers."""


class PermissionDenied(PortalError):
    """Caller's role does not allow the operation. Nothing was changed."""


class ProfileNotFound(PortalError):
    """A profile id or username no longer resolves."""


class DependentDeleteFailed(PortalError):
    """Cascade delete of a profile's scores/notes failed part way."""

    def __init__(self, user_id: str, table: str):
        super().__init__(f"Could not delete {table} rows for user {user_id}")
        self.user_id = user_id
        self.table = table


class StoreUnavailable(PortalError):
    """The remote store could not be reached or rejected the call."""


class InviteCodeInvalid(PortalError):
    """Invite code is unknown or already redeemed."""


class UsernameTaken(PortalError):
    """Another profile already uses this username (case-insensitive)."""
