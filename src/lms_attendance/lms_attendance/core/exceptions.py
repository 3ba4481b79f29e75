class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a lecture, offering or record id has no backing row."""


class LockedError(DomainError):
    """Raised when attendance is mutated on a locked lecture."""

    def __init__(self, lecture_id: int):
        super().__init__(f"Attendance for lecture {lecture_id} is locked")
        self.lecture_id = lecture_id


class PersistenceError(DomainError):
    """Raised when the entity store rejects a create/update."""
