from __future__ import annotations

from typing import Protocol, Sequence, Set


class EnrollmentRepository(Protocol):
    def list_approved_student_ids(self, *, course_id: int, student_ids: Sequence[int]) -> Set[int]:
        """Return the subset of ``student_ids`` approved in the course."""

        raise NotImplementedError
