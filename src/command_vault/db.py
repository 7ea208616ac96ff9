# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Database schema for command-vault.

This is the only module that issues DDL. SQLiteStore assumes the schema
already exists.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path


def ensure_schema(db_path: Path) -> None:
    """Create or migrate database schema.

    Creates required tables if they don't exist:
    - commands: stored command templates and executed commands
    - tags: unique tag names
    - command_tags: many-to-many link between commands and tags

    Adds the ``exit_code`` column to databases created before it existed.

    This function is idempotent - safe to call multiple times.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS commands (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                command TEXT NOT NULL,
                timestamp TEXT NOT NULL,
                directory TEXT NOT NULL,
                exit_code INTEGER,
                parameters TEXT NOT NULL DEFAULT '[]'
            )
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tags (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE
            )
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS command_tags (
                command_id INTEGER NOT NULL,
                tag_id INTEGER NOT NULL,
                PRIMARY KEY (command_id, tag_id),
                FOREIGN KEY (command_id) REFERENCES commands(id)
                    ON DELETE CASCADE,
                FOREIGN KEY (tag_id) REFERENCES tags(id)
                    ON DELETE CASCADE
            )
            """
        )

        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_commands_timestamp "
            "ON commands(timestamp)"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_tags_name ON tags(name)"
        )

        # Migration: exit_code column on older databases
        cur = conn.execute("PRAGMA table_info(commands)")
        cols = {row[1] for row in cur.fetchall()}
        if "exit_code" not in cols:
            conn.execute("ALTER TABLE commands ADD COLUMN exit_code INTEGER")

        conn.commit()
    finally:
        conn.close()
