from __future__ import annotations

import json

import pytest

from src.attendance_admin.attendance_admin.core.enums import ImportMode, ImportStatus, PayloadKind
from src.attendance_admin.attendance_admin.core.exceptions import BackendError, UnsupportedFormatError
from src.attendance_admin.attendance_admin.imports.detector import LegacyJson, UploadedFile
from src.attendance_admin.attendance_admin.imports.service import ImportService, apply_progress
from src.attendance_admin.attendance_admin.records.firebase_record_store import FirebaseRecordStore


def _upload(document, name="backup.json") -> UploadedFile:
    return UploadedFile(filename=name, content=json.dumps(document).encode("utf-8"))


FULL_DOCUMENT = {
    "students": [{"rollNo": "S1", "firstName": "A"}, {"rollNo": "S2", "firstName": "B"}],
    "faculty": [{"facultyId": "F1", "firstName": "T"}],
    "classes": [{"code": "C1", "name": "Math"}],
    "attendance": [{"classId": "C1", "studentId": "S1", "status": "present"}],
    "academic_years": [{"year": "2024-25"}],
    "settings": [{"key": "theme", "value": "dark"}],
}


class FailingStore(FirebaseRecordStore):
    def __init__(self, root, fail_collection: str):
        super().__init__(root)
        self._fail_collection = fail_collection

    def add_record(self, collection, data):
        if collection == self._fail_collection:
            raise BackendError("write rejected")
        return super().add_record(collection, data)


def test_legacy_json_import_replaces_students_and_leaves_attendance(store):
    existing = store.add_record("attendance", {"classId": "C0", "studentId": "S0"})
    store.add_record("students", {"rollNo": "OLD"})

    report = ImportService(store).run(
        _upload({"students": [{"rollNo": "S1", "firstName": "A"}], "attendance": []})
    )

    students = store.get_all("students")
    assert len(students) == 1
    assert students[0]["rollNo"] == "S1"
    assert [r["id"] for r in store.get_all("attendance")] == [existing]
    assert report.kind == PayloadKind.LEGACY_JSON
    assert report.outcome_for("students").status == ImportStatus.OK
    assert report.outcome_for("attendance").status == ImportStatus.SKIPPED


def test_progress_is_monotonic_and_reaches_100(store):
    steps = []

    ImportService(store).run(_upload(FULL_DOCUMENT), progress=steps.append)

    assert steps == [10, 65, 70, 75, 80, 85, 90, 100]


def test_failure_in_one_collection_does_not_stop_the_rest(fake_db):
    store = FailingStore(fake_db.reference(), fail_collection="classes")
    steps = []

    report = ImportService(store).run(_upload(FULL_DOCUMENT), progress=steps.append)

    statuses = {o.collection: o.status for o in report.outcomes}
    assert statuses == {
        "students": ImportStatus.OK,
        "faculty": ImportStatus.OK,
        "classes": ImportStatus.FAILED,
        "attendance": ImportStatus.OK,
        "academic_years": ImportStatus.OK,
        "settings": ImportStatus.OK,
    }
    assert report.outcome_for("classes").reason == "write rejected"
    assert not report.ok
    assert len(store.get_all("settings")) == 1
    # cleared before the failing insert: not transactional
    assert store.get_all("classes") == []
    assert steps[-1] == 100


def test_imported_records_are_sanitized(store):
    document = {"students": [{"rollNo": "S1", "firstName": "A", "password": "x", "extra": 1}]}

    ImportService(store).run(_upload(document))

    student = store.get_all("students")[0]
    assert "extra" not in student
    assert "password" not in student
    assert student["rollNo"] == "S1"


def test_passthrough_records_are_counted(store):
    report = ImportService(store).run(_upload({"settings": [{"name": "legacy"}, {"key": "k"}]}))

    outcome = report.outcome_for("settings")
    assert outcome.count == 2
    assert outcome.passthrough == 1


def test_imported_ids_are_assigned_by_store(store):
    ImportService(store).run(_upload({"students": [{"id": "old-1", "rollNo": "S1"}]}))

    student = store.get_all("students")[0]
    assert student["id"] != "old-1"
    assert store.get_record("students", "old-1") is None


def test_merge_mode_upserts_and_keeps_ids(store):
    store.batch_upsert("students", [{"id": "s1", "rollNo": "S1"}, {"id": "s2", "rollNo": "S2"}])

    report = ImportService(store).run(
        _upload({"students": [{"id": "s1", "rollNo": "S1", "firstName": "Updated"}]}),
        mode=ImportMode.MERGE,
    )

    assert report.outcome_for("students").count == 1
    assert store.get_record("students", "s1")["firstName"] == "Updated"
    assert store.get_record("students", "s2") is not None


def test_merge_mode_rejects_records_without_id(store):
    report = ImportService(store).run(
        _upload({"students": [{"id": "s1", "rollNo": "S1"}, {"rollNo": "S2"}]}),
        mode=ImportMode.MERGE,
    )

    assert report.outcome_for("students").status == ImportStatus.FAILED
    assert store.get_all("students") == []


def test_structured_archive_import(store, zip_factory):
    content = zip_factory({"students.json": [{"rollNo": "S1"}], "settings.json": [{"key": "k", "value": 1}]})

    report = ImportService(store).run(UploadedFile("backup.zip", content))

    assert report.kind == PayloadKind.STRUCTURED_ARCHIVE
    assert report.total_imported == 2
    assert store.get_all("settings")[0]["value"] == 1


def test_unsupported_upload_raises(store):
    with pytest.raises(UnsupportedFormatError):
        ImportService(store).run(UploadedFile("students.xlsx", b"..."))


def test_apply_accepts_detected_payload(store):
    report = ImportService(store).apply(LegacyJson(document={"faculty": [{"facultyId": "F1"}]}))

    assert report.outcome_for("faculty").count == 1
    assert [o.status for o in report.outcomes].count(ImportStatus.SKIPPED) == 5


def test_progress_sink_errors_do_not_abort_import(store):
    def broken(_):
        raise RuntimeError("ui gone")

    report = ImportService(store).run(_upload({"students": [{"rollNo": "S1"}]}), progress=broken)

    assert report.ok


def test_apply_progress_rounds_half_up():
    assert apply_progress(1, 12, base=60, span=30) == 63
    assert apply_progress(6, 6, base=60, span=30) == 90
    assert apply_progress(0, 0, base=60, span=30) == 90


def test_merge_import_keeps_created_at_of_existing_records(store):
    store.batch_upsert("students", [{"id": "s1", "rollNo": "S1", "createdAt": "2024-01-01T00:00:00.000Z"}])
    before = store.get_record("students", "s1")

    ImportService(store).run(
        _upload({"students": [{"id": "s1", "rollNo": "S1", "firstName": "Later"}]}),
        mode=ImportMode.MERGE,
    )

    after = store.get_record("students", "s1")
    assert after["createdAt"] == "2024-01-01T00:00:00.000Z"
    assert after["updatedAt"] >= before["updatedAt"]
    assert after["firstName"] == "Later"


def test_non_object_records_fail_without_clearing_collection(store):
    existing = store.add_record("students", {"rollNo": "OLD"})

    report = ImportService(store).run(_upload({"students": ["S1", "S2"], "classes": [{"code": "C1"}]}))

    outcome = report.outcome_for("students")
    assert outcome.status == ImportStatus.FAILED
    assert "must be an object" in outcome.reason
    assert [r["id"] for r in store.get_all("students")] == [existing]
    assert report.outcome_for("classes").status == ImportStatus.OK
