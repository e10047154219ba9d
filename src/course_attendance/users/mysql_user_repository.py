from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import UserProfile
from .repository import UserRepository


def _to_profile(row: Dict[str, Any]) -> UserProfile:
    return UserProfile(
        user_id=int(row["user_id"]),
        username=row["username"],
        fullname=row.get("fullname"),
        email=row.get("email"),
        role=Role(row["role"]) if row.get("role") else None,
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[UserProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, fullname, username, email, role
                FROM users
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return _to_profile(row) if row else None

    def get_many(self, user_ids: Sequence[int]) -> Dict[int, UserProfile]:
        unique_ids = list(dict.fromkeys(int(u) for u in user_ids))
        if not unique_ids:
            return {}

        ids_sql, params = in_clause("user_id", unique_ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT user_id, fullname, username, email, role FROM users WHERE {ids_sql}",
                tuple(params),
            )
            return {int(r["user_id"]): _to_profile(r) for r in fetchall(cur)}
