import sqlite3
from pathlib import Path

import pytest

from linkdrip.adapters.sqlite.migrator import SQLiteMigrator

MIGRATIONS_DIR = str(Path(__file__).resolve().parents[2] / "migrations")

TABLES = [
    "users",
    "websites",
    "website_profiles",
    "discovered_opportunities",
    "opportunity_matches",
    "daily_drips",
    "splash_usage",
    "crawler_jobs",
    "outreach_emails",
    "contact_activities",
    "drip_assignments",
]


@pytest.fixture
def temp_db_path(tmp_path):
    return str(tmp_path / "schema.sqlite")


def test_migrator_creates_all_tables(temp_db_path):
    applied = SQLiteMigrator(temp_db_path, MIGRATIONS_DIR).run_migrations()
    assert applied == ["0001_initial.sql", "0002_drip_assignments.sql"]

    conn = sqlite3.connect(temp_db_path)
    try:
        names = {
            row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    finally:
        conn.close()

    assert "_migrations" in names
    for table in TABLES:
        assert table in names


def test_migrator_is_idempotent(temp_db_path):
    migrator = SQLiteMigrator(temp_db_path, MIGRATIONS_DIR)
    migrator.run_migrations()
    assert migrator.run_migrations() == []


def test_broken_migration_is_rolled_back(temp_db_path, tmp_path):
    migrations = tmp_path / "migrations"
    migrations.mkdir()
    (migrations / "0001_broken.sql").write_text("CREATE TABLE ok (id TEXT);\nNOT SQL;")

    with pytest.raises(RuntimeError, match="0001_broken.sql"):
        SQLiteMigrator(temp_db_path, str(migrations)).run_migrations()

    conn = sqlite3.connect(temp_db_path)
    try:
        recorded = conn.execute("SELECT filename FROM _migrations").fetchall()
    finally:
        conn.close()
    assert recorded == []
