from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import CourseOffering


class OfferingRepository(Protocol):
    def get_by_id(self, offering_id: int) -> Optional[CourseOffering]:
        raise NotImplementedError

    def list_active(self) -> Sequence[CourseOffering]:
        raise NotImplementedError
