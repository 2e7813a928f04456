from __future__ import annotations

from typing import Any, Mapping

from ..core.exceptions import ValidationError


def require_collection_name(value: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Collection name is required")
    name = value.strip()
    if "/" in name or "." in name:
        raise ValidationError(f"Invalid collection name: {value!r}")
    return name


def require_record_data(data: Any, *, context: str = "Record") -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(f"{context} must be an object, got {type(data).__name__}")
    return data


def require_record_id(data: Mapping[str, Any], *, context: str = "Record") -> str:
    record_id = data.get("id") if isinstance(data, Mapping) else None
    if record_id is None or str(record_id).strip() == "":
        raise ValidationError(f"{context} must have an 'id' property")
    record_id = str(record_id)
    if "/" in record_id or "." in record_id:
        raise ValidationError(f"Invalid record id: {record_id!r}")
    return record_id
