from __future__ import annotations

import io
import json
import logging
import zipfile
from typing import IO, Dict, List, Sequence

from ..common.datetime_utils import iso_now
from ..core.constants import COLLECTIONS, EXPORT_VERSION
from ..records.repository import RecordStore

logger = logging.getLogger(__name__)


class ExportService:
    """Snapshots of the whole store, in formats the importer reads back.

    ``export_structured`` matches the structured-JSON import layout and
    ``write_archive`` the structured-archive layout.
    """

    def __init__(self, store: RecordStore, *, collections: Sequence[str] = COLLECTIONS):
        self._store = store
        self._collections = tuple(collections)

    def snapshot(self) -> Dict[str, List[dict]]:
        return {collection: self._store.get_all(collection) for collection in self._collections}

    def export_structured(self) -> dict:
        data = self.snapshot()
        logger.info(
            "Exported %d records across %d collections",
            sum(len(v) for v in data.values()),
            len(data),
        )
        return {"version": EXPORT_VERSION, "exportedAt": iso_now(), "data": data}

    def write_json(self, fp: IO[str]) -> dict:
        document = self.export_structured()
        json.dump(document, fp, ensure_ascii=False, indent=2, default=str)
        return document

    def write_archive(self, fp: IO[bytes]) -> Dict[str, int]:
        """Write ``<collection>.json`` per collection; returns record counts."""

        data = self.snapshot()
        with zipfile.ZipFile(fp, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for collection, records in data.items():
                zf.writestr(f"{collection}.json", json.dumps(records, ensure_ascii=False, indent=2, default=str))
        return {collection: len(records) for collection, records in data.items()}

    def archive_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.write_archive(buf)
        return buf.getvalue()

    def collection_stats(self) -> Dict[str, int]:
        return {collection: self._store.count(collection) for collection in self._collections}

    def clear_all(self) -> None:
        """Delete every record of every known collection."""

        for collection in self._collections:
            self._store.clear_store(collection)
        logger.warning("Cleared all collections: %s", ", ".join(self._collections))
