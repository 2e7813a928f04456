"""Classify an uploaded file and extract per-collection record arrays.

Detection is an ordered list of rules; the first rule that recognizes the
upload returns a payload variant. Every variant answers ``records_for`` with a
plain list, so the import pipeline never branches on the format.
"""

from __future__ import annotations

import io
import json
import logging
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..core.constants import INDIVIDUAL_FILE_CANDIDATES, STRUCTURED_ARCHIVE_PROBES
from ..core.enums import PayloadKind
from ..core.exceptions import UnsupportedFormatError, ValidationError
from .csv_parser import parse_csv_to_objects

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content: bytes

    @classmethod
    def from_path(cls, path: str | Path) -> "UploadedFile":
        path = Path(path)
        return cls(filename=path.name, content=path.read_bytes())

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower()


def _load_json(raw: bytes, source: str) -> Any:
    try:
        return json.loads(raw.decode("utf-8-sig"))
    except ValueError as e:
        raise ValidationError(f"Invalid JSON in {source}: {e}") from e


class ImportPayload(ABC):
    kind: PayloadKind

    @abstractmethod
    def records_for(self, collection: str) -> List[Any]:
        """Raw records for ``collection``; empty when the payload has none."""

        raise NotImplementedError


@dataclass(frozen=True)
class StructuredArchive(ImportPayload):
    """Zip with one ``<collection>.json`` array per collection at the root."""

    files: Mapping[str, bytes] = field(repr=False)
    kind: PayloadKind = PayloadKind.STRUCTURED_ARCHIVE

    def records_for(self, collection: str) -> List[Any]:
        name = f"{collection}.json"
        if name not in self.files:
            return []
        data = _load_json(self.files[name], name)
        if not isinstance(data, list):
            raise ValidationError(f"{name} must contain a JSON array")
        return data


@dataclass(frozen=True)
class IndividualFiles(ImportPayload):
    """Zip with loose per-collection files; first non-empty candidate wins."""

    files: Mapping[str, bytes] = field(repr=False)
    candidates: Mapping[str, Sequence[str]] = field(default_factory=lambda: INDIVIDUAL_FILE_CANDIDATES)
    kind: PayloadKind = PayloadKind.INDIVIDUAL_FILES

    def records_for(self, collection: str) -> List[Any]:
        for name in self.candidates.get(collection, ()):
            if name not in self.files:
                continue
            try:
                data = self._parse(name, self.files[name])
            except (ValueError, ValidationError) as e:
                logger.warning("Skipping %s for %s: %s", name, collection, e)
                continue
            if isinstance(data, list) and data:
                logger.info("Using %s for %s (%d rows)", name, collection, len(data))
                return data
        return []

    @staticmethod
    def _parse(name: str, raw: bytes) -> Any:
        if name.endswith(".json"):
            return _load_json(raw, name)
        if name.endswith(".csv"):
            return parse_csv_to_objects(raw.decode("utf-8-sig"))
        return None


@dataclass(frozen=True)
class StructuredJson(ImportPayload):
    """``{"data": {"<collection>": [...]}}`` (the export format)."""

    document: Mapping[str, Any] = field(repr=False)
    kind: PayloadKind = PayloadKind.STRUCTURED_JSON

    def records_for(self, collection: str) -> List[Any]:
        data = self.document["data"].get(collection)
        return data if isinstance(data, list) else []


@dataclass(frozen=True)
class LegacyJson(ImportPayload):
    """``{"<collection>": [...]}`` at the top level."""

    document: Mapping[str, Any] = field(repr=False)
    kind: PayloadKind = PayloadKind.LEGACY_JSON

    def records_for(self, collection: str) -> List[Any]:
        data = self.document.get(collection)
        return data if isinstance(data, list) else []


@dataclass(frozen=True)
class UnsupportedFormat(ImportPayload):
    filename: str
    kind: PayloadKind = PayloadKind.UNSUPPORTED

    def records_for(self, collection: str) -> List[Any]:
        raise UnsupportedFormatError(f"Unsupported file type: {self.filename!r} (expected .zip or .json)")


def _archive_root_files(content: bytes) -> Dict[str, bytes]:
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            return {
                info.filename: zf.read(info)
                for info in zf.infolist()
                if not info.is_dir() and "/" not in info.filename
            }
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise ValidationError(f"Invalid zip archive: {e}") from e


def _detect_archive(upload: UploadedFile) -> Optional[ImportPayload]:
    if upload.extension != ".zip":
        return None
    files = _archive_root_files(upload.content)
    if any(name in files for name in STRUCTURED_ARCHIVE_PROBES):
        return StructuredArchive(files=files)
    return IndividualFiles(files=files)


def _detect_json(upload: UploadedFile) -> Optional[ImportPayload]:
    if upload.extension != ".json":
        return None
    document = _load_json(upload.content, upload.filename)
    if not isinstance(document, dict):
        raise ValidationError(f"{upload.filename} must contain a JSON object")
    if isinstance(document.get("data"), dict):
        return StructuredJson(document=document)
    return LegacyJson(document=document)


DetectionRule = Callable[[UploadedFile], Optional[ImportPayload]]

DETECTION_RULES: Sequence[DetectionRule] = (_detect_archive, _detect_json)


def detect_payload(upload: UploadedFile, rules: Sequence[DetectionRule] = DETECTION_RULES) -> ImportPayload:
    for rule in rules:
        payload = rule(upload)
        if payload is not None:
            logger.info("Detected %s for %s", payload.kind.value, upload.filename)
            return payload
    logger.warning("Unsupported upload: %s", upload.filename)
    return UnsupportedFormat(filename=upload.filename)
