from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CourseOffering:
    """A course as taught in a term; the roster source for its lectures.

    ``enrolled_students`` empty means the offering covers every active student.
    """

    offering_id: int
    course_id: int
    enrolled_students: frozenset[int] = field(default_factory=frozenset)
    course_code: str = ""
    course_name: str = ""
    status: str = "active"

    @property
    def label(self) -> str:
        if self.course_code and self.course_name:
            return f"{self.course_code} - {self.course_name}"
        return self.course_code or self.course_name or f"Course {self.course_id}"
