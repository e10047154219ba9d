from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class UserProfile:
    """Display profile of a user (read-only, owned by the user service)."""

    user_id: int
    username: str
    fullname: Optional[str] = None
    email: Optional[str] = None
    role: Optional[Role] = None

    @property
    def display_name(self) -> str:
        return self.fullname or self.username or ""

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "fullname": self.fullname,
            "username": self.username,
            "email": self.email,
            "role": self.role.value if self.role else None,
        }
