# tests/test_store.py
"""
Tests for SQLite implementation of CommandStore Protocol.

IMPORTANT ARCHITECTURE RULE (enforced here):
- command_vault.db is the *only* entry point that creates/ensures schema.
- command_vault.store (SQLiteStore) must NOT create schema. It assumes the
  schema exists and only performs CRUD against existing tables.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from command_vault import db as vault_db
from command_vault.errors import CommandNotFound
from command_vault.models import Command
from command_vault.params import Parameter
from command_vault.store import SQLiteStore


@pytest.fixture
def tmp_db(tmp_path: Path) -> Path:
    return tmp_path / "commands.db"


@pytest.fixture
def store(tmp_db: Path) -> SQLiteStore:
    vault_db.ensure_schema(tmp_db)
    return SQLiteStore(tmp_db)


def _cmd(text: str, ts: str, tags=None, directory: str = "/work") -> Command:
    cmd = Command.new(text, directory, tags=tags)
    cmd.timestamp = ts
    return cmd


# ----------------------------------------------------------------
# Schema authority
# ----------------------------------------------------------------


def test_store_does_not_create_schema_on_init(tmp_db: Path) -> None:
    SQLiteStore(tmp_db)

    conn = sqlite3.connect(str(tmp_db))
    try:
        rows = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ).fetchall()
    finally:
        conn.close()
    assert rows == []


def test_store_fails_without_schema(tmp_db: Path) -> None:
    with pytest.raises(sqlite3.OperationalError):
        SQLiteStore(tmp_db).list_commands(10)


# ----------------------------------------------------------------
# Commands
# ----------------------------------------------------------------


def test_add_and_get_command_round_trips_fields(store: SQLiteStore) -> None:
    cmd = Command.new("git push @remote:name @branch", "/repo", tags=["git", "vcs"])

    command_id = store.add_command(cmd)
    loaded = store.get_command(command_id)

    assert cmd.id == command_id
    assert loaded is not None
    assert loaded.command == "git push @remote:name @branch"
    assert loaded.directory == "/repo"
    assert loaded.tags == ["git", "vcs"]
    assert loaded.parameters == [Parameter("remote", "name"), Parameter("branch")]
    assert loaded.exit_code is None


def test_get_missing_command_returns_none(store: SQLiteStore) -> None:
    assert store.get_command(999) is None


def test_save_records_final_command_with_exit_code(store: SQLiteStore) -> None:
    command_id = store.save("make test", 2, "/proj", ["ci"])
    loaded = store.get_command(command_id)

    assert loaded is not None
    assert loaded.command == "make test"
    assert loaded.exit_code == 2
    assert loaded.directory == "/proj"
    assert loaded.tags == ["ci"]
    assert loaded.parameters == []


def test_save_does_not_parse_final_command(store: SQLiteStore) -> None:
    # A final command is plain text; a trailing "@x:" is not a template error
    command_id = store.save("echo user@x:", 0, "/", [])

    assert store.get_command(command_id).command == "echo user@x:"


def test_list_commands_newest_first_with_limit(store: SQLiteStore) -> None:
    store.add_command(_cmd("one", "2025-01-01T00:00:00+00:00"))
    store.add_command(_cmd("two", "2025-01-02T00:00:00+00:00"))
    store.add_command(_cmd("three", "2025-01-03T00:00:00+00:00"))

    assert [c.command for c in store.list_commands(2)] == ["three", "two"]
    assert [c.command for c in store.list_commands(0, ascending=True)] == [
        "one",
        "two",
        "three",
    ]


def test_list_commands_filtered_by_tag(store: SQLiteStore) -> None:
    store.add_command(_cmd("a", "2025-01-01T00:00:00+00:00", tags=["x"]))
    store.add_command(_cmd("b", "2025-01-02T00:00:00+00:00", tags=["y"]))
    store.add_command(_cmd("c", "2025-01-03T00:00:00+00:00", tags=["x", "y"]))

    listed = store.list_commands(0, tag="x")

    assert [c.command for c in listed] == ["c", "a"]
    assert listed[0].tags == ["x", "y"]


def test_delete_command_removes_orphan_tags(store: SQLiteStore) -> None:
    keep = store.add_command(_cmd("keep", "2025-01-01T00:00:00+00:00", tags=["shared"]))
    gone = store.add_command(
        _cmd("gone", "2025-01-02T00:00:00+00:00", tags=["shared", "only"])
    )

    store.delete_command(gone)

    assert store.get_command(gone) is None
    assert store.get_command(keep) is not None
    assert store.list_tags() == [("shared", 1)]


def test_delete_missing_command_raises(store: SQLiteStore) -> None:
    with pytest.raises(CommandNotFound) as exc:
        store.delete_command(42)

    assert exc.value.command_id == 42


# ----------------------------------------------------------------
# Tags
# ----------------------------------------------------------------


def test_add_tags_ignores_duplicates_and_blank(store: SQLiteStore) -> None:
    command_id = store.add_command(_cmd("ls", "2025-01-01T00:00:00+00:00", tags=["a"]))

    store.add_tags(command_id, ["a", "b", "  ", "c"])

    assert store.get_command(command_id).tags == ["a", "b", "c"]


def test_add_tags_to_missing_command_raises(store: SQLiteStore) -> None:
    with pytest.raises(CommandNotFound):
        store.add_tags(7, ["x"])


def test_remove_tag(store: SQLiteStore) -> None:
    command_id = store.add_command(
        _cmd("ls", "2025-01-01T00:00:00+00:00", tags=["a", "b"])
    )

    store.remove_tag(command_id, "a")

    assert store.get_command(command_id).tags == ["b"]


def test_list_tags_counts_usage(store: SQLiteStore) -> None:
    store.add_command(_cmd("1", "2025-01-01T00:00:00+00:00", tags=["git", "ops"]))
    store.add_command(_cmd("2", "2025-01-02T00:00:00+00:00", tags=["git"]))

    assert store.list_tags() == [("git", 2), ("ops", 1)]


def test_list_tags_empty(store: SQLiteStore) -> None:
    assert store.list_tags() == []
