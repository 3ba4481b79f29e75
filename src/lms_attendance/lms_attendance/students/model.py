from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import StudentStatus


@dataclass(frozen=True)
class Student:
    """Domain entity: Student (read-only reference data for attendance)."""

    student_id: int
    first_name: str
    last_name: str
    roll_number: str
    status: StudentStatus = StudentStatus.ACTIVE
    department_id: Optional[int] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == StudentStatus.ACTIVE

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on first name, last name or roll number."""
        q = (query or "").strip().lower()
        if not q:
            return True
        return (
            q in (self.first_name or "").lower()
            or q in (self.last_name or "").lower()
            or q in (self.roll_number or "").lower()
        )
