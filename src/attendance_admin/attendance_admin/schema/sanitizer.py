from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple, Union

from .registry import allowed_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sanitized:
    """Record reduced to the collection's whitelisted fields."""

    record: dict
    dropped: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def filtered(self) -> bool:
        return True


@dataclass(frozen=True)
class PassthroughUnfiltered:
    """Whitelist filtering produced nothing, so the input is kept as-is.

    Keeping the raw record avoids destroying data from an unexpected layout,
    but it also lets non-whitelisted fields through. Callers that care can
    count these results.
    """

    record: Any

    @property
    def filtered(self) -> bool:
        return False


SanitizeResult = Union[Sanitized, PassthroughUnfiltered]


def sanitize(collection: str, record: Any) -> SanitizeResult:
    """Filter ``record`` through the schema whitelist of ``collection``.

    Never raises.
    """

    if not isinstance(record, Mapping):
        logger.warning("Passing through non-object %s record of type %s", collection, type(record).__name__)
        return PassthroughUnfiltered(record)

    columns = allowed_fields(collection)
    cleaned = {column: record[column] for column in columns if column in record}

    if not cleaned:
        logger.warning(
            "No whitelisted fields in %s record (keys=%s); keeping it unfiltered",
            collection,
            sorted(str(k) for k in record.keys()),
        )
        return PassthroughUnfiltered(record)

    dropped = tuple(str(k) for k in record.keys() if k not in cleaned)
    return Sanitized(record=cleaned, dropped=dropped)
