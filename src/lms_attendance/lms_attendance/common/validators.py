from __future__ import annotations

from typing import Iterable

from ..core.enums import AttendanceStatus, LectureStatus
from ..core.exceptions import ValidationError


def require_positive_id(value, field_name: str) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is not a valid id")
    if parsed <= 0:
        raise ValidationError(f"{field_name} is not a valid id")
    return parsed


def parse_attendance_status(value) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown attendance status: {value!r}")


def parse_lecture_status(value) -> LectureStatus:
    if isinstance(value, LectureStatus):
        return value
    try:
        return LectureStatus(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown lecture status: {value!r}")


def parse_id_list(values: Iterable, field_name: str) -> list[int]:
    return [require_positive_id(v, field_name) for v in values]
