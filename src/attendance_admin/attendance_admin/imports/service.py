from __future__ import annotations

import logging
import math
from typing import Any, Callable, List, Optional, Sequence

from ..common.validators import require_record_data
from ..core.constants import (
    COLLECTIONS,
    PROGRESS_APPLY_BASE,
    PROGRESS_APPLY_SPAN,
    PROGRESS_DONE,
    PROGRESS_START,
)
from ..core.enums import ImportMode
from ..core.exceptions import UnsupportedFormatError
from ..records.repository import RecordStore
from ..schema.sanitizer import PassthroughUnfiltered, sanitize
from .detector import ImportPayload, UnsupportedFormat, UploadedFile, detect_payload
from .model import CollectionOutcome, ImportReport

logger = logging.getLogger(__name__)

ProgressSink = Callable[[int], None]


def apply_progress(completed: int, total: int, *, base: int, span: int) -> int:
    """``base + round(completed / total * span)``, halves rounded up."""

    if total <= 0:
        return base + span
    return base + int(math.floor(completed / total * span + 0.5))


class ImportService:
    """Best-effort bulk import into a record store.

    Collections are applied one after another in a fixed order. A failure in
    one collection is logged and recorded in the report; the remaining
    collections are still imported. Nothing here is transactional: a failure
    after ``clear_store`` leaves the collection with only the records that
    were inserted before the failure.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        collections: Sequence[str] = COLLECTIONS,
        progress_base: int = PROGRESS_APPLY_BASE,
        progress_span: int = PROGRESS_APPLY_SPAN,
    ):
        self._store = store
        self._collections = tuple(collections)
        self._progress_base = int(progress_base)
        self._progress_span = int(progress_span)

    def run(
        self,
        upload: UploadedFile,
        *,
        progress: Optional[ProgressSink] = None,
        mode: ImportMode = ImportMode.REPLACE,
    ) -> ImportReport:
        """Detect the upload format and apply it. Reports 10 → 60..90 → 100."""

        self._report(progress, PROGRESS_START)
        payload = detect_payload(upload)
        if isinstance(payload, UnsupportedFormat):
            raise UnsupportedFormatError(f"Unsupported file type: {upload.filename!r} (expected .zip or .json)")

        report = self.apply(payload, progress=progress, mode=mode)
        self._report(progress, PROGRESS_DONE)
        logger.info("Import of %s finished: %s", upload.filename, report)
        return report

    def apply(
        self,
        payload: ImportPayload,
        *,
        progress: Optional[ProgressSink] = None,
        mode: ImportMode = ImportMode.REPLACE,
    ) -> ImportReport:
        report = ImportReport(kind=payload.kind)
        total = len(self._collections)

        for index, collection in enumerate(self._collections, start=1):
            report.outcomes.append(self._import_collection(payload, collection, mode))
            self._report(
                progress,
                apply_progress(index, total, base=self._progress_base, span=self._progress_span),
            )

        return report

    def _import_collection(self, payload: ImportPayload, collection: str, mode: ImportMode) -> CollectionOutcome:
        written = 0
        try:
            items = payload.records_for(collection)
            if not items:
                return CollectionOutcome.skipped(collection)

            cleaned, passthrough = self._sanitize_all(collection, items)
            for item in cleaned:
                require_record_data(item, context=f"Every {collection} record")

            if mode == ImportMode.MERGE:
                written = self._store.batch_upsert(collection, cleaned)
            else:
                self._store.clear_store(collection)
                for item in cleaned:
                    self._store.add_record(collection, item)
                    written += 1

            logger.info("Imported %d records to %s", written, collection)
            return CollectionOutcome.imported(collection, written, passthrough=passthrough)
        except UnsupportedFormatError:
            raise
        except Exception as e:
            logger.exception("Error importing %s", collection)
            return CollectionOutcome.failed(collection, str(e) or type(e).__name__, count=written)

    @staticmethod
    def _sanitize_all(collection: str, items: List[Any]) -> tuple[list, int]:
        cleaned = []
        passthrough = 0
        for item in items:
            result = sanitize(collection, item)
            if isinstance(result, PassthroughUnfiltered):
                passthrough += 1
            cleaned.append(result.record)
        return cleaned, passthrough

    @staticmethod
    def _report(progress: Optional[ProgressSink], percent: int) -> None:
        if progress is None:
            return
        try:
            progress(max(0, min(100, int(percent))))
        except Exception:
            logger.exception("Progress sink failed at %d%%", percent)
