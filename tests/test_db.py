# tests/test_db.py
from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from command_vault import config, db


@pytest.fixture
def vault_data_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data = tmp_path / "vault_data_home"
    data.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("COMMAND_VAULT_DATA_HOME", str(data))
    return data


def _cols(db_path: Path, table: str) -> set[str]:
    conn = sqlite3.connect(str(db_path))
    try:
        cur = conn.cursor()
        cur.execute(f"PRAGMA table_info({table})")
        return {row[1] for row in cur.fetchall()}
    finally:
        conn.close()


def _tables(db_path: Path) -> set[str]:
    conn = sqlite3.connect(str(db_path))
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        return {r[0] for r in rows}
    finally:
        conn.close()


def test_ensure_schema_creates_required_tables(vault_data_home: Path) -> None:
    """
    db.ensure_schema must create required tables for a fresh DB.
    """
    path = config.db_path(config.get_data_root())

    db.ensure_schema(path)

    assert path.exists()
    tables = _tables(path)
    assert {"commands", "tags", "command_tags"} <= tables
    assert _cols(path, "commands") == {
        "id",
        "command",
        "timestamp",
        "directory",
        "exit_code",
        "parameters",
    }


def test_ensure_schema_is_idempotent(vault_data_home: Path) -> None:
    path = config.db_path(config.get_data_root())

    db.ensure_schema(path)
    db.ensure_schema(path)

    assert "exit_code" in _cols(path, "commands")


def test_migration_adds_exit_code_column(tmp_path: Path) -> None:
    """
    A commands table created before exit codes were recorded gains the
    column without losing rows.
    """
    path = tmp_path / "legacy.db"
    conn = sqlite3.connect(str(path))
    try:
        conn.execute(
            """
            CREATE TABLE commands (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                command TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                directory TEXT NOT NULL,
                parameters TEXT NOT NULL DEFAULT '[]'
            )
            """
        )
        conn.execute(
            "INSERT INTO commands (command, timestamp, directory) "
            "VALUES ('ls', '2024-01-01T00:00:00+00:00', '/')"
        )
        conn.commit()
    finally:
        conn.close()

    db.ensure_schema(path)

    assert "exit_code" in _cols(path, "commands")
    conn = sqlite3.connect(str(path))
    try:
        assert conn.execute("SELECT command, exit_code FROM commands").fetchall() == [
            ("ls", None)
        ]
    finally:
        conn.close()


def test_ensure_schema_creates_parent_directory(tmp_path: Path) -> None:
    path = tmp_path / "deep" / "er" / "commands.db"

    db.ensure_schema(path)

    assert path.exists()
