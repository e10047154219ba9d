from __future__ import annotations

from typing import Dict, Optional, Protocol, Sequence

from .model import UserProfile


class UserRepository(Protocol):
    """Read-only access to user profiles.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[UserProfile]:
        raise NotImplementedError

    def get_many(self, user_ids: Sequence[int]) -> Dict[int, UserProfile]:
        raise NotImplementedError
