"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import Collection

COLLECTIONS = tuple(c.value for c in Collection)

# Presence of any of these at the archive root selects structured-archive mode.
STRUCTURED_ARCHIVE_PROBES = ("students.json", "faculty.json", "classes.json", "attendance.json")

# Individual-file archives: candidates per collection, in priority order.
INDIVIDUAL_FILE_CANDIDATES = {
    "students": ("students.json", "students.csv"),
    "faculty": ("faculty.json", "faculty.csv"),
    "classes": ("classes.json", "classes.csv"),
    "attendance": ("attendance.json", "attendance.csv"),
    "academic_years": ("academic_years.json", "years.json"),
    "settings": ("settings.json",),
}

PROGRESS_START = 10
PROGRESS_APPLY_BASE = 60
PROGRESS_APPLY_SPAN = 30
PROGRESS_DONE = 100

EXPORT_VERSION = "1.0"

MYSQL_RECORDS_TABLE = "records"
