from __future__ import annotations

from enum import Enum


class Collection(str, Enum):
    """Known collections, in import order."""

    STUDENTS = "students"
    FACULTY = "faculty"
    CLASSES = "classes"
    ATTENDANCE = "attendance"
    ACADEMIC_YEARS = "academic_years"
    SETTINGS = "settings"


class StoreBackend(str, Enum):
    """Record store implementation selected at construction time."""

    FIREBASE = "firebase"
    MYSQL = "mysql"


class PayloadKind(str, Enum):
    """Where the records of an import come from."""

    STRUCTURED_ARCHIVE = "structured_archive"
    INDIVIDUAL_FILES = "individual_files"
    STRUCTURED_JSON = "structured_json"
    LEGACY_JSON = "legacy_json"
    STORE_SNAPSHOT = "store_snapshot"
    UNSUPPORTED = "unsupported"


class ImportMode(str, Enum):
    """REPLACE clears a collection before inserting; MERGE upserts by id."""

    REPLACE = "replace"
    MERGE = "merge"


class ImportStatus(str, Enum):
    OK = "OK"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"
