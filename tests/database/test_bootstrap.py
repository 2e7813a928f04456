from __future__ import annotations

from src.attendance_admin.attendance_admin.database import bootstrap


class _Cursor:
    def __init__(self, log):
        self._log = log

    def execute(self, sql):
        self._log.append(sql)

    def fetchall(self):
        return [("records",)]


class _Conn:
    def __init__(self, log, kwargs):
        self._log = log
        self.kwargs = kwargs

    def cursor(self):
        return _Cursor(self._log)

    def commit(self):
        self._log.append("COMMIT")

    def close(self):
        pass


def test_sql_splitter_ignores_semicolons_in_quotes():
    sql = "INSERT INTO t VALUES ('a;b');\nINSERT INTO t VALUES (\"c;d\");\nSELECT 1"

    assert list(bootstrap._iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b')",
        'INSERT INTO t VALUES ("c;d")',
        "SELECT 1",
    ]


def test_create_database_and_use_are_stripped():
    sql = "CREATE DATABASE foo;\nUSE foo;\nCREATE TABLE x (id INT);"

    assert list(bootstrap._iter_sql_statements(bootstrap._strip_create_db_and_use(sql))) == [
        "CREATE TABLE x (id INT)"
    ]


def test_apply_schema_creates_database_then_records_table(monkeypatch):
    log = []
    connections = []

    def fake_connect(**kwargs):
        conn = _Conn(log, kwargs)
        connections.append(conn)
        return conn

    monkeypatch.setattr(bootstrap.mysql.connector, "connect", fake_connect)

    bootstrap.apply_schema({"host": "db", "database": "admin"})

    assert "database" not in connections[0].kwargs
    assert connections[1].kwargs["database"] == "admin"
    assert log[0].startswith("CREATE DATABASE IF NOT EXISTS `admin`")
    assert any(stmt.startswith("CREATE TABLE IF NOT EXISTS `records`") for stmt in log)
    assert bootstrap.list_tables({"database": "admin"}) == ["records"]
