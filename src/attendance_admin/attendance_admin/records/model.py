from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

# Fields owned by the store; callers cannot set them through add/update.
SYSTEM_FIELDS = ("id", "createdAt", "updatedAt")


def strip_system_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(k): v for k, v in data.items() if k not in SYSTEM_FIELDS}


def matches(record: Mapping[str, Any], field: str, value: Any) -> bool:
    return field in record and record[field] == value


def filter_records(records: Iterable[Mapping[str, Any]], field: str | None, value: Any) -> List[dict]:
    if field is None:
        return [dict(r) for r in records]
    return [dict(r) for r in records if matches(r, field, value)]
