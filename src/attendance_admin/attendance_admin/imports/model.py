from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.enums import ImportStatus, PayloadKind


@dataclass(frozen=True)
class CollectionOutcome:
    """Per-collection result of an import or migration."""

    collection: str
    status: ImportStatus
    count: int = 0
    passthrough: int = 0
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != ImportStatus.FAILED

    @classmethod
    def imported(cls, collection: str, count: int, *, passthrough: int = 0) -> "CollectionOutcome":
        return cls(collection=collection, status=ImportStatus.OK, count=count, passthrough=passthrough)

    @classmethod
    def skipped(cls, collection: str) -> "CollectionOutcome":
        return cls(collection=collection, status=ImportStatus.SKIPPED)

    @classmethod
    def failed(cls, collection: str, reason: str, *, count: int = 0) -> "CollectionOutcome":
        return cls(collection=collection, status=ImportStatus.FAILED, count=count, reason=reason)


@dataclass
class ImportReport:
    """Result of one import run, returned instead of only being logged."""

    kind: PayloadKind
    outcomes: List[CollectionOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failed(self) -> List[CollectionOutcome]:
        return [o for o in self.outcomes if o.status == ImportStatus.FAILED]

    @property
    def total_imported(self) -> int:
        return sum(o.count for o in self.outcomes if o.status == ImportStatus.OK)

    def outcome_for(self, collection: str) -> Optional[CollectionOutcome]:
        for outcome in self.outcomes:
            if outcome.collection == collection:
                return outcome
        return None

    def __str__(self) -> str:
        parts = [f"Imported {self.total_imported} records ({self.kind.value})"]
        if self.failed:
            parts.append("failed: " + ", ".join(o.collection for o in self.failed))
        return " | ".join(parts)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "ok": self.ok,
            "total_imported": self.total_imported,
            "collections": [
                {
                    "collection": o.collection,
                    "status": o.status.value,
                    "count": o.count,
                    "passthrough": o.passthrough,
                    "reason": o.reason,
                }
                for o in self.outcomes
            ],
        }
