from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from app.workflow.errors import PermissionDenied
from app.workflow.status import Role


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionContext:
    """Who is acting, with what token, until when.

    Expiry is plain data. Nothing logs a session out on its own; callers ask
    `is_expired()` (or `ensure_active()`) before acting on behalf of the user.
    """

    user_id: str
    role: Role
    token: Optional[str] = None
    expires_at: Optional[datetime] = None
    username: Optional[str] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or utcnow()
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now >= expires_at

    def ensure_active(self, now: Optional[datetime] = None) -> "SessionContext":
        if self.is_expired(now):
            raise PermissionDenied("Session expired, please log in again")
        return self

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin

    @property
    def actor(self) -> str:
        return self.username or self.user_id

    def require_role(self, role: Role, now: Optional[datetime] = None) -> "SessionContext":
        self.ensure_active(now)
        if self.role != role:
            raise PermissionDenied(f"This action requires the {role.value} role")
        return self

    def require_owner(self, student_id: str, now: Optional[datetime] = None) -> "SessionContext":
        self.require_role(Role.student, now)
        if self.user_id != student_id:
            raise PermissionDenied("Students may only act on their own documents")
        return self
