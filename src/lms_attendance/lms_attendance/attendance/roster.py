from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..offerings.model import CourseOffering
from ..students.model import Student


def index_by_id(students: Iterable[Student]) -> dict[int, Student]:
    """Build the id -> Student lookup once per batch instead of scanning per row."""
    return {s.student_id: s for s in students}


class RosterResolver:
    """Decide which students a course offering tracks attendance for."""

    def resolve(self, offering: Optional[CourseOffering], all_students: Sequence[Student]) -> list[Student]:
        """Explicit enrollments when the offering has any, else every active student.

        Source order is kept. An unknown offering (``None``) gives an empty roster.
        """
        if offering is None:
            return []

        enrolled = offering.enrolled_students
        if enrolled:
            return [s for s in all_students if s.student_id in enrolled]
        return [s for s in all_students if s.is_active]
