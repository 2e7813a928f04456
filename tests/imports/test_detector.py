from __future__ import annotations

import json

import pytest

from src.attendance_admin.attendance_admin.core.enums import PayloadKind
from src.attendance_admin.attendance_admin.core.exceptions import UnsupportedFormatError, ValidationError
from src.attendance_admin.attendance_admin.imports.detector import (
    IndividualFiles,
    LegacyJson,
    StructuredArchive,
    StructuredJson,
    UnsupportedFormat,
    UploadedFile,
    detect_payload,
)


def _json_upload(document, name="backup.json") -> UploadedFile:
    return UploadedFile(filename=name, content=json.dumps(document).encode("utf-8"))


def test_structured_archive_when_any_probe_file_present(zip_factory):
    content = zip_factory(
        {
            "faculty.json": [{"facultyId": "F1"}],
            "years.json": [{"year": "2024"}],
            "settings.json": [{"key": "k", "value": "v"}],
        }
    )

    payload = detect_payload(UploadedFile("backup.zip", content))

    assert isinstance(payload, StructuredArchive)
    assert payload.kind == PayloadKind.STRUCTURED_ARCHIVE
    assert payload.records_for("faculty") == [{"facultyId": "F1"}]
    assert payload.records_for("settings") == [{"key": "k", "value": "v"}]
    # aliases only apply to individual-file archives
    assert payload.records_for("academic_years") == []
    assert payload.records_for("students") == []


def test_structured_archive_rejects_non_array_file(zip_factory):
    payload = detect_payload(UploadedFile("b.zip", zip_factory({"students.json": {"rollNo": "S1"}})))

    with pytest.raises(ValidationError):
        payload.records_for("students")


def test_individual_files_prefers_first_non_empty_candidate(zip_factory):
    content = zip_factory(
        {
            "students.csv": "rollNo,firstName\nS1,A\nS2,B",
            "years.json": [{"year": "2024-25"}],
            "academic_years.json": [],
        }
    )

    payload = detect_payload(UploadedFile("export.ZIP", content))

    assert isinstance(payload, IndividualFiles)
    assert payload.records_for("students") == [
        {"rollNo": "S1", "firstName": "A"},
        {"rollNo": "S2", "firstName": "B"},
    ]
    # academic_years.json is empty so the years.json alias wins
    assert payload.records_for("academic_years") == [{"year": "2024-25"}]
    assert payload.records_for("faculty") == []


def test_individual_files_skips_unreadable_candidate(zip_factory):
    content = zip_factory({"academic_years.json": "{not json", "years.json": [{"year": "2024-25"}]})

    payload = detect_payload(UploadedFile("b.zip", content))

    assert isinstance(payload, IndividualFiles)
    assert payload.records_for("academic_years") == [{"year": "2024-25"}]


def test_nested_archive_entries_are_ignored(zip_factory):
    content = zip_factory({"backup/students.json": [{"rollNo": "S1"}]})

    payload = detect_payload(UploadedFile("b.zip", content))

    assert isinstance(payload, IndividualFiles)
    assert payload.records_for("students") == []


def test_structured_json_uses_data_object():
    payload = detect_payload(_json_upload({"version": "1.0", "data": {"students": [{"rollNo": "S1"}], "faculty": "x"}}))

    assert isinstance(payload, StructuredJson)
    assert payload.records_for("students") == [{"rollNo": "S1"}]
    assert payload.records_for("faculty") == []
    assert payload.records_for("classes") == []


def test_legacy_json_uses_top_level_keys():
    payload = detect_payload(_json_upload({"students": [{"rollNo": "S1"}], "attendance": []}))

    assert isinstance(payload, LegacyJson)
    assert payload.kind == PayloadKind.LEGACY_JSON
    assert payload.records_for("students") == [{"rollNo": "S1"}]
    assert payload.records_for("attendance") == []


def test_json_with_non_object_data_key_is_legacy():
    payload = detect_payload(_json_upload({"data": [1, 2], "students": [{"rollNo": "S1"}]}))

    assert isinstance(payload, LegacyJson)


def test_json_must_be_an_object():
    with pytest.raises(ValidationError):
        detect_payload(_json_upload([{"rollNo": "S1"}]))


def test_invalid_json_raises_validation_error():
    with pytest.raises(ValidationError):
        detect_payload(UploadedFile("b.json", b"{oops"))


def test_bad_zip_raises_validation_error():
    with pytest.raises(ValidationError):
        detect_payload(UploadedFile("b.zip", b"not a zip"))


def test_json_with_bom_is_accepted():
    content = "\ufeff" + json.dumps({"students": [{"rollNo": "S1"}]})

    payload = detect_payload(UploadedFile("b.json", content.encode("utf-8")))

    assert payload.records_for("students") == [{"rollNo": "S1"}]


def test_other_extensions_are_unsupported():
    payload = detect_payload(UploadedFile("students.csv", b"rollNo\nS1"))

    assert isinstance(payload, UnsupportedFormat)
    with pytest.raises(UnsupportedFormatError):
        payload.records_for("students")
