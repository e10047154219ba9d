"""Typed request parameters for attendance operations.

``from_mapping`` builders accept raw query/JSON mappings (strings allowed) so
the controller stays thin; services receive already-typed values.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Optional, Tuple

from ..common.datetime_utils import normalize_date_only
from ..common.validators import parse_bool, parse_id, parse_optional_id, require, require_int_range
from ..core.constants import (
    DEFAULT_ABSENCE_THRESHOLD,
    DEFAULT_PAGE,
    DEFAULT_PAGE_LIMIT,
    MAX_ABSENCE_THRESHOLD,
    MAX_PAGE,
    MAX_PAGE_LIMIT,
    MIN_ABSENCE_THRESHOLD,
)
from ..core.enums import AttendanceStatus, ExportFormat, SortOrder
from ..core.exceptions import ValidationError
from .model import AttendanceEntry


def parse_status(value: Any) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value!r}")


def _opt_status(value: Any) -> Optional[AttendanceStatus]:
    return parse_status(value) if value not in (None, "") else None


def _opt_date(value: Any) -> Optional[date]:
    return normalize_date_only(value) if value not in (None, "") else None


def _check_range(from_date: Optional[date], to_date: Optional[date]) -> None:
    if from_date and to_date:
        require(from_date <= to_date, ValidationError, "from must be before to")


def _check_paging(page: int, limit: int) -> None:
    require_int_range(page, "page", minimum=1, maximum=MAX_PAGE)
    require_int_range(limit, "limit", minimum=1, maximum=MAX_PAGE_LIMIT)


@dataclass(frozen=True)
class ListAttendanceParams:
    course_id: Optional[int] = None
    student_id: Optional[int] = None
    teacher_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT
    sort_by: Optional[str] = None
    sort_order: Optional[SortOrder] = None

    def __post_init__(self):
        _check_range(self.from_date, self.to_date)
        _check_paging(self.page, self.limit)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @staticmethod
    def _common_kwargs(args: Mapping[str, Any]) -> dict:
        sort_order = args.get("sort_order")
        if sort_order not in (None, ""):
            try:
                sort_order = SortOrder(sort_order)
            except ValueError:
                raise ValidationError(f"Invalid sort_order: {sort_order!r}")
        else:
            sort_order = None
        return {
            "course_id": parse_optional_id(args.get("course_id"), "course_id"),
            "student_id": parse_optional_id(args.get("student_id"), "student_id"),
            "teacher_id": parse_optional_id(args.get("teacher_id"), "teacher_id"),
            "status": _opt_status(args.get("status")),
            "from_date": _opt_date(args.get("from")),
            "to_date": _opt_date(args.get("to")),
            "page": require_int_range(args.get("page") or DEFAULT_PAGE, "page", minimum=1, maximum=MAX_PAGE),
            "limit": require_int_range(
                args.get("limit") or DEFAULT_PAGE_LIMIT, "limit", minimum=1, maximum=MAX_PAGE_LIMIT
            ),
            "sort_by": args.get("sort_by") or None,
            "sort_order": sort_order,
        }

    @classmethod
    def from_mapping(cls, args: Mapping[str, Any]) -> "ListAttendanceParams":
        return cls(**cls._common_kwargs(args))


@dataclass(frozen=True)
class ExportAttendanceParams(ListAttendanceParams):
    format: ExportFormat = ExportFormat.CSV

    @classmethod
    def from_mapping(cls, args: Mapping[str, Any]) -> "ExportAttendanceParams":
        raw_format = args.get("format") or ExportFormat.CSV.value
        try:
            fmt = ExportFormat(raw_format)
        except ValueError:
            raise ValidationError(f"Invalid format: {raw_format!r}")
        return cls(format=fmt, **cls._common_kwargs(args))


@dataclass(frozen=True)
class StudentHistoryParams:
    course_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT

    def __post_init__(self):
        _check_range(self.from_date, self.to_date)
        _check_paging(self.page, self.limit)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_mapping(cls, args: Mapping[str, Any]) -> "StudentHistoryParams":
        return cls(
            course_id=parse_optional_id(args.get("course_id"), "course_id"),
            status=_opt_status(args.get("status")),
            from_date=_opt_date(args.get("from")),
            to_date=_opt_date(args.get("to")),
            page=require_int_range(args.get("page") or DEFAULT_PAGE, "page", minimum=1, maximum=MAX_PAGE),
            limit=require_int_range(
                args.get("limit") or DEFAULT_PAGE_LIMIT, "limit", minimum=1, maximum=MAX_PAGE_LIMIT
            ),
        )


@dataclass(frozen=True)
class StatsParams:
    threshold: int = DEFAULT_ABSENCE_THRESHOLD
    from_date: Optional[date] = None
    to_date: Optional[date] = None

    def __post_init__(self):
        require_int_range(
            self.threshold, "threshold", minimum=MIN_ABSENCE_THRESHOLD, maximum=MAX_ABSENCE_THRESHOLD
        )
        _check_range(self.from_date, self.to_date)

    @classmethod
    def from_mapping(cls, args: Mapping[str, Any]) -> "StatsParams":
        threshold = args.get("threshold")
        if threshold in (None, ""):
            threshold = DEFAULT_ABSENCE_THRESHOLD
        return cls(
            threshold=require_int_range(
                threshold, "threshold", minimum=MIN_ABSENCE_THRESHOLD, maximum=MAX_ABSENCE_THRESHOLD
            ),
            from_date=_opt_date(args.get("from")),
            to_date=_opt_date(args.get("to")),
        )


@dataclass(frozen=True)
class MarkAttendancePayload:
    course_id: int
    date: date
    entries: Tuple[AttendanceEntry, ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, body: Mapping[str, Any]) -> "MarkAttendancePayload":
        raw_entries = body.get("entries") or []
        require(isinstance(raw_entries, list) and raw_entries, ValidationError, "entries must be a non-empty list")
        require(all(isinstance(e, Mapping) for e in raw_entries), ValidationError, "Invalid attendance entry")
        require(body.get("date"), ValidationError, "date is required")
        return cls(
            course_id=parse_id(body.get("course_id"), "course_id"),
            date=normalize_date_only(body["date"]),
            entries=tuple(
                AttendanceEntry(
                    student_id=parse_id(e.get("student_id"), "student_id"),
                    status=parse_status(e.get("status")),
                )
                for e in raw_entries
            ),
        )


@dataclass(frozen=True)
class UpdateAttendancePayload:
    status: Optional[AttendanceStatus] = None
    return_ids_only: bool = False

    @classmethod
    def from_mapping(cls, body: Mapping[str, Any]) -> "UpdateAttendancePayload":
        return cls(
            status=_opt_status(body.get("status")),
            return_ids_only=parse_bool(body.get("return_ids_only"), "return_ids_only"),
        )
