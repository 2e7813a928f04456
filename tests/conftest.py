from __future__ import annotations

import copy
import itertools
import io
import json
import zipfile
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import pytest

from src.attendance_admin.attendance_admin.records.firebase_record_store import FirebaseRecordStore


# Shared across fake databases so ids never collide between stores.
_PUSH_IDS = itertools.count(1)


@dataclass
class Event:
    event_type: str
    path: str
    data: Any


def _split(path: str) -> List[str]:
    return [p for p in str(path).split("/") if p]


class FakeRegistration:
    def __init__(self, db: "FakeDatabase", listener):
        self._db = db
        self._listener = listener
        self.closed = 0

    def close(self):
        self.closed += 1
        if self._listener in self._db.listeners:
            self._db.listeners.remove(self._listener)


class FakeQuery:
    def __init__(self, ref: "FakeReference", field: str):
        self._ref = ref
        self._field = field
        self._value = None

    def equal_to(self, value):
        self._value = value
        return self

    def get(self):
        self._ref.db.check()
        node = self._ref.get()
        if not isinstance(node, dict):
            return {}
        return {k: v for k, v in node.items() if isinstance(v, dict) and v.get(self._field) == self._value}


class FakeReference:
    """Subset of ``firebase_admin.db.Reference`` over an in-memory tree."""

    def __init__(self, db: "FakeDatabase", parts: List[str]):
        self.db = db
        self.parts = parts

    @property
    def key(self) -> Optional[str]:
        return self.parts[-1] if self.parts else None

    def child(self, path: str) -> "FakeReference":
        return FakeReference(self.db, self.parts + _split(path))

    def get(self, shallow: bool = False):
        self.db.check()
        value = copy.deepcopy(self.db.read(self.parts))
        if shallow and isinstance(value, dict):
            return {k: True for k in value}
        return value

    def set(self, value):
        self.db.check_write()
        self.db.write(self.parts, value)

    def push(self, value=""):
        self.db.check_write()
        ref = self.child(f"-N{next(_PUSH_IDS):08d}")
        self.db.write(ref.parts, value)
        return ref

    def update(self, value: dict):
        self.db.check_write()
        for key, item in value.items():
            self.db.write(self.parts + _split(key), item)

    def delete(self):
        self.db.check_write()
        self.db.write(self.parts, None)

    def order_by_child(self, field: str) -> FakeQuery:
        return FakeQuery(self, field)

    def listen(self, callback: Callable):
        if self.db.fail_listen is not None:
            raise self.db.fail_listen
        listener = (tuple(self.parts), callback)
        self.db.listeners.append(listener)
        callback(Event("put", "/", copy.deepcopy(self.db.read(self.parts))))
        return FakeRegistration(self.db, listener)


class FakeDatabase:
    def __init__(self):
        self.tree: dict = {}
        self.listeners: list = []
        self.fail_reads = None
        self.fail_writes = None
        self.fail_listen = None

    def reference(self, path: str = "/") -> FakeReference:
        return FakeReference(self, _split(path))

    def check(self):
        if self.fail_reads is not None:
            raise self.fail_reads

    def check_write(self):
        if self.fail_writes is not None:
            raise self.fail_writes

    def read(self, parts: List[str]):
        node: Any = self.tree
        for key in parts:
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return node

    def write(self, parts: List[str], value):
        value = copy.deepcopy(value)
        if not parts:
            self.tree = value if isinstance(value, dict) else {}
        else:
            node = self.tree
            for key in parts[:-1]:
                if not isinstance(node.get(key), dict):
                    if value is None:
                        break
                    node[key] = {}
                node = node[key]
            else:
                if value is None:
                    node.pop(parts[-1], None)
                else:
                    node[parts[-1]] = value
        self._notify(parts, value)

    def _notify(self, parts: List[str], value):
        for listener_parts, callback in list(self.listeners):
            lp = list(listener_parts)
            if parts[: len(lp)] == lp:
                rel = "/" + "/".join(parts[len(lp):])
                callback(Event("put", rel, copy.deepcopy(value)))
            elif lp[: len(parts)] == parts:
                callback(Event("put", "/", copy.deepcopy(self.read(lp))))


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def store(fake_db) -> FirebaseRecordStore:
    return FirebaseRecordStore(fake_db.reference())


def make_zip(files: dict) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in files.items():
            if not isinstance(content, (str, bytes)):
                content = json.dumps(content)
            zf.writestr(name, content)
    return buf.getvalue()


@pytest.fixture
def zip_factory():
    return make_zip


@pytest.fixture
def store_factory():
    """Independent stores, each over its own in-memory tree."""

    def make(cls=FirebaseRecordStore) -> FirebaseRecordStore:
        return cls(FakeDatabase().reference())

    return make
