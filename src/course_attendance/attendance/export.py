from __future__ import annotations

import csv
import io
from datetime import date, datetime
from typing import Any, Sequence

from ..common.datetime_utils import format_iso_date
from .model import AttendanceView

CSV_HEADER = (
    "studentName",
    "studentEmail",
    "course",
    "date",
    "status",
    "markedBy",
    "markedByRole",
)


def format_csv_value(value: Any) -> str:
    """Cell text before quoting; missing values become empty cells."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return format_iso_date(value)
    return str(value)


def to_csv_row(view: AttendanceView) -> list[str]:
    student = view.student
    marker = view.marker
    return [
        format_csv_value((student.fullname or student.username) if student else None),
        format_csv_value(student.email if student else None),
        format_csv_value(view.course.title if view.course else None),
        format_csv_value(view.record.date),
        format_csv_value(view.record.status.value),
        format_csv_value((marker.fullname or marker.email) if marker else None),
        format_csv_value(marker.role.value if marker and marker.role else None),
    ]


def render_csv(views: Sequence[AttendanceView]) -> str:
    """Header plus one row per record.

    QUOTE_MINIMAL quotes cells holding a comma, quote or line break and
    doubles inner quotes.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for view in views:
        writer.writerow(to_csv_row(view))
    return output.getvalue().rstrip("\n")


def render_json(views: Sequence[AttendanceView]) -> list[dict]:
    return [v.to_dict() for v in views]
