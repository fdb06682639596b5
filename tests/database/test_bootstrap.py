from __future__ import annotations

from pathlib import Path

from src.attendance_sync.attendance_sync.database.bootstrap import iter_sql_statements, prepare_schema_sql

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_split_ignores_semicolons_inside_literals():
    sql = "INSERT INTO t VALUES('a;b');\nINSERT INTO t VALUES(\"c;\\\"d\");  ;\nSELECT 1"

    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES('a;b')",
        'INSERT INTO t VALUES("c;\\"d")',
        "SELECT 1",
    ]


def test_prepare_drops_database_selection_and_comments():
    sql = "-- header\nCREATE DATABASE IF NOT EXISTS x;\nUSE x;\nCREATE TABLE a (id INT);"

    assert list(iter_sql_statements(prepare_schema_sql(sql))) == ["CREATE TABLE a (id INT)"]


def test_bundled_schema_creates_expected_tables():
    statements = list(iter_sql_statements(prepare_schema_sql(SCHEMA.read_text(encoding="utf-8"))))

    assert all(s.upper().startswith("CREATE TABLE IF NOT EXISTS") for s in statements)
    joined = " ".join(statements)
    for table in ("punch_records", "attendance_settings", "attendance_settings_current"):
        assert f"CREATE TABLE IF NOT EXISTS {table} " in joined
    assert "uq_punch_dedupe" in joined


def test_dedupe_key_columns_compare_case_sensitively():
    statements = iter_sql_statements(prepare_schema_sql(SCHEMA.read_text(encoding="utf-8")))
    [punches] = [s for s in statements if "punch_records" in s.split("(", 1)[0]]
    columns = {line.split()[0]: line for line in punches.splitlines()[1:] if line.strip()}

    for name in ("device_address", "employee_device_id", "company_id"):
        assert "COLLATE utf8mb4_bin" in columns[name]
