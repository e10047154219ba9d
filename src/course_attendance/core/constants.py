"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_EDIT_HOURS_FOR_TEACHER = 12
MAX_BULK_IDS = 100

DEFAULT_ABSENCE_THRESHOLD = 20
MIN_ABSENCE_THRESHOLD = 5
MAX_ABSENCE_THRESHOLD = 100

DEFAULT_PAGE = 1
MAX_PAGE = 1000
DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 200

DEFAULT_ESCALATION_ABSENCES = 3
