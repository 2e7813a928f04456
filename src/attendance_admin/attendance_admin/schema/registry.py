"""Whitelisted field names per collection.

Fields outside these lists are dropped on import; see ``sanitizer.sanitize``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

SCHEMA_REGISTRY: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "students": ("id", "rollNo", "firstName", "lastName", "email", "department", "year", "semester"),
        "faculty": ("id", "facultyId", "firstName", "lastName", "email", "department", "specialization", "password"),
        "classes": ("id", "code", "name", "department", "semester", "faculty", "year", "credits"),
        "attendance": ("id", "classId", "studentId", "date", "session", "status", "notes"),
        "academic_years": ("id", "year", "startDate", "endDate", "type"),
        "settings": ("id", "key", "value"),
    }
)


def allowed_fields(collection: str) -> Tuple[str, ...]:
    """Return the whitelist for ``collection`` (empty for unknown collections)."""
    return SCHEMA_REGISTRY.get(collection, ())
