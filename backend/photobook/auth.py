"""
Photobook Backend — Auth Context
==================================

What:  The claims a handler acts on, passed explicitly to every service call.
Why:   Services decide capability from an AuthContext argument instead of
       reading cookies or comparing emails, so they stay testable and
       agnostic of how identity was established.
How:   An upstream gateway verifies the caller's token and forwards the
       verified identity as `X-User-Id` and `X-User-Role`. This module only
       reads those headers; it performs no verification of its own.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from photobook.config import settings
from photobook.exceptions import PermissionDeniedError

ADMIN_ROLE = "admin"
PHOTOGRAPHER_ROLE = "photographer"


@dataclass(frozen=True)
class AuthContext:
    user_id: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def actor_id(self) -> str:
        """Identifier recorded on writes; admins act as the shared admin inbox."""
        if self.is_admin:
            return settings.admin_user_id
        return self.user_id or "anonymous"

    def require_authenticated(self) -> None:
        if not self.is_authenticated:
            raise PermissionDeniedError(message="Authentication is required")

    def require_admin(self) -> None:
        if not self.is_admin:
            raise PermissionDeniedError(message="Admin access is required")

    def require_owner_or_admin(self, owner_id: str) -> None:
        if self.is_admin:
            return
        if not self.is_authenticated or self.user_id != owner_id:
            raise PermissionDeniedError(
                message="Only the owner or an admin can perform this action",
                context={"owner_id": owner_id, "user_id": self.user_id},
            )


ANONYMOUS = AuthContext()


def admin_context() -> AuthContext:
    return AuthContext(user_id=settings.admin_user_id, role=ADMIN_ROLE)


async def get_auth_context(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> AuthContext:
    """FastAPI dependency building the AuthContext from gateway headers."""
    if not x_user_id:
        return ANONYMOUS
    role = x_user_role.strip().lower() if x_user_role else None
    return AuthContext(user_id=x_user_id.strip(), role=role)
