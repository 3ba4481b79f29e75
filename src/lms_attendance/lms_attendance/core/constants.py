"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import AttendanceStatus

# Statuses that count as attended in every percentage.
ATTENDED_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE})

# Status shown for a roster student with no mark yet (display only, never written).
DEFAULT_DISPLAY_STATUS = AttendanceStatus.ABSENT

DEFAULT_HISTORY_LIMIT = 100
DEFAULT_COMMIT_MAX_WORKERS = 4
DEFAULT_TREND_MONTHS = 6
DEFAULT_COURSE_PROGRESS_LIMIT = 8

GOOD_ATTENDANCE_THRESHOLD = 75
WARNING_ATTENDANCE_THRESHOLD = 50
