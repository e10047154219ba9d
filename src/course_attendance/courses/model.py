from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class Course:
    """Course as seen by the attendance core (read-only).

    ``start_date``/``end_date`` bound the days on which attendance can exist.
    """

    course_id: int
    title: str
    start_date: date
    end_date: date
    teacher_ids: FrozenSet[int] = field(default_factory=frozenset)
    code: Optional[str] = None

    def has_teacher(self, user_id: int) -> bool:
        return int(user_id) in self.teacher_ids
