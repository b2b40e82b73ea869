"""Request-scoped identity passed explicitly into every operation.

Services never read the signed-in user from a global; routers resolve a
``RequestContext`` from the bearer token and hand it down.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ROLE_ADMIN = "admin"
ROLE_USER = "user"


@dataclass(frozen=True)
class RequestContext:
    """Represents the signed-in user resolved for a request."""

    user_id: str
    role: str = ROLE_USER
    email: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        """Return ``True`` if the user holds the admin role."""
        return self.role == ROLE_ADMIN
