from __future__ import annotations

import logging
from typing import Sequence

from ..core.constants import COLLECTIONS
from ..core.enums import PayloadKind
from ..imports.model import CollectionOutcome, ImportReport
from ..records.repository import RecordStore

logger = logging.getLogger(__name__)


def migrate_store(
    source: RecordStore,
    target: RecordStore,
    *,
    collections: Sequence[str] = COLLECTIONS,
    clear_target: bool = False,
) -> ImportReport:
    """Copy every collection from ``source`` to ``target`` keeping record ids.

    Each collection is one ``batch_upsert``; failures are recorded per
    collection and the copy continues with the next one.
    """

    report = ImportReport(kind=PayloadKind.STORE_SNAPSHOT)
    for collection in collections:
        report.outcomes.append(_migrate_collection(source, target, collection, clear_target=clear_target))
    logger.info("Migration finished: %s", report)
    return report


def _migrate_collection(
    source: RecordStore,
    target: RecordStore,
    collection: str,
    *,
    clear_target: bool,
) -> CollectionOutcome:
    try:
        records = source.get_all(collection)
        if not records:
            return CollectionOutcome.skipped(collection)
        if clear_target:
            target.clear_store(collection)
        written = target.batch_upsert(collection, records)
        logger.info("Migrated %d records in %s", written, collection)
        return CollectionOutcome.imported(collection, written)
    except Exception as e:
        logger.exception("Error migrating %s", collection)
        return CollectionOutcome.failed(collection, str(e) or type(e).__name__)


def verify_migration(source: RecordStore, target: RecordStore, *, collections: Sequence[str] = COLLECTIONS) -> dict:
    """Per-collection record counts on both sides, plus a ``match`` flag."""

    result = {}
    for collection in collections:
        expected = source.count(collection)
        actual = target.count(collection)
        result[collection] = {"source": expected, "target": actual, "match": expected == actual}
    return result


def missing_ids(source: RecordStore, target: RecordStore, collection: str) -> set:
    source_ids = {r["id"] for r in source.get_all(collection)}
    target_ids = {r["id"] for r in target.get_all(collection)}
    return source_ids - target_ids
