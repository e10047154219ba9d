from __future__ import annotations

from datetime import date
from typing import Dict, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceEntry, AttendanceFilter, AttendanceRecord, AttendanceView, SortSpec, UpsertOutcome


class AttendanceRepository(Protocol):
    def find(
        self,
        filter: AttendanceFilter,
        *,
        sort: SortSpec,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceView]:
        """Populated read path (student, course and marker joined in)."""

        raise NotImplementedError

    def count(self, filter: AttendanceFilter) -> int:
        raise NotImplementedError

    def count_by_status(self, filter: AttendanceFilter) -> Dict[AttendanceStatus, int]:
        """Status distribution without materializing records."""

        raise NotImplementedError

    def list_records(self, filter: AttendanceFilter, *, sort: SortSpec) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_by_ids(self, attendance_ids: Sequence[int]) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def upsert_many(
        self,
        *,
        course_id: int,
        attendance_date: date,
        entries: Sequence[AttendanceEntry],
        marked_by: int,
    ) -> Sequence[UpsertOutcome]:
        """Upsert each entry on (course, student, date) independently of the others."""

        raise NotImplementedError

    def update_status(
        self,
        *,
        attendance_id: int,
        status: AttendanceStatus,
        marked_by: int,
    ) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def delete_one(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def delete_many(self, attendance_ids: Sequence[int]) -> int:
        raise NotImplementedError

    def count_absences(self, *, course_id: int, student_id: int) -> int:
        raise NotImplementedError
