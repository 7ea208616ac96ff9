# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
SQLite-backed storage implementation for command-vault.

Handles commands, tags and the recorder hand-off from the execution flow.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from .errors import CommandNotFound
from .models import Command, parameters_from_json, parameters_to_json, utc_now

_COMMAND_COLUMNS = "c.id, c.command, c.timestamp, c.directory, c.exit_code, c.parameters"


class SQLiteStore:
    """SQLite implementation of CommandStore protocol."""

    def __init__(self, db_path: Path):
        """Initialize store with database path.

        Args:
            db_path: Path to SQLite database file (must have schema)

        Note:
            Store does NOT create schema. Schema must be created by
            db.ensure_schema() before constructing SQLiteStore.
        """
        self.db_path = db_path

        # Ensure parent directory exists
        db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    # ----------------------------------------------------------------
    # Command operations
    # ----------------------------------------------------------------

    def add_command(self, command: Command) -> int:
        """Insert a command with its tags and return the new id."""
        conn = self._connect()
        try:
            cur = conn.execute(
                """
                INSERT INTO commands
                (command, timestamp, directory, exit_code, parameters)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    command.command,
                    command.timestamp,
                    command.directory,
                    command.exit_code,
                    parameters_to_json(command.parameters),
                ),
            )
            command_id = int(cur.lastrowid)
            self._link_tags(conn, command_id, command.tags)
            conn.commit()
        finally:
            conn.close()

        command.id = command_id
        return command_id

    def save(
        self,
        final_command: str,
        exit_code: int | None,
        working_directory: str,
        tags: list[str],
    ) -> int:
        """Record an executed command (recorder hand-off)."""
        return self.add_command(
            Command(
                command=final_command,
                directory=working_directory,
                timestamp=utc_now(),
                tags=list(tags),
                exit_code=exit_code,
            )
        )

    def get_command(self, command_id: int) -> Command | None:
        """Return a command by id, or None if not found."""
        conn = self._connect()
        try:
            cur = conn.execute(
                f"SELECT {_COMMAND_COLUMNS} FROM commands c WHERE c.id = ?",
                (command_id,),
            )
            row = cur.fetchone()
            if row is None:
                return None
            return self._row_to_command(conn, row)
        finally:
            conn.close()

    def list_commands(
        self, limit: int, ascending: bool = False, tag: str | None = None
    ) -> list[Command]:
        """List commands by timestamp, newest first unless ascending.

        A limit of 0 returns every command.
        """
        order = "ASC" if ascending else "DESC"
        params: list = []
        query = f"SELECT {_COMMAND_COLUMNS} FROM commands c"
        if tag is not None:
            query += (
                " JOIN command_tags ct ON ct.command_id = c.id"
                " JOIN tags t ON t.id = ct.tag_id"
                " WHERE t.name = ?"
            )
            params.append(tag)
        query += f" ORDER BY c.timestamp {order}, c.id {order}"
        if limit > 0:
            query += " LIMIT ?"
            params.append(limit)

        conn = self._connect()
        try:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_command(conn, row) for row in rows]
        finally:
            conn.close()

    def delete_command(self, command_id: int) -> None:
        """Delete a command and any tags left unused."""
        conn = self._connect()
        try:
            conn.execute(
                "DELETE FROM command_tags WHERE command_id = ?",
                (command_id,),
            )
            cur = conn.execute(
                "DELETE FROM commands WHERE id = ?",
                (command_id,),
            )
            if cur.rowcount == 0:
                conn.rollback()
                raise CommandNotFound(command_id)
            conn.execute(
                """
                DELETE FROM tags
                WHERE id NOT IN (SELECT DISTINCT tag_id FROM command_tags)
                """
            )
            conn.commit()
        finally:
            conn.close()

    # ----------------------------------------------------------------
    # Tag operations
    # ----------------------------------------------------------------

    def add_tags(self, command_id: int, tags: list[str]) -> None:
        """Attach tags to an existing command (duplicates are ignored)."""
        conn = self._connect()
        try:
            cur = conn.execute(
                "SELECT 1 FROM commands WHERE id = ?", (command_id,)
            )
            if cur.fetchone() is None:
                raise CommandNotFound(command_id)
            self._link_tags(conn, command_id, tags)
            conn.commit()
        finally:
            conn.close()

    def remove_tag(self, command_id: int, tag: str) -> None:
        """Detach one tag from a command."""
        conn = self._connect()
        try:
            conn.execute(
                """
                DELETE FROM command_tags
                WHERE command_id = ?
                AND tag_id = (SELECT id FROM tags WHERE name = ?)
                """,
                (command_id, tag),
            )
            conn.commit()
        finally:
            conn.close()

    def list_tags(self) -> list[tuple[str, int]]:
        """Return (tag, usage count) pairs, most used first."""
        conn = self._connect()
        try:
            cur = conn.execute(
                """
                SELECT t.name, COUNT(ct.command_id) AS count
                FROM tags t
                LEFT JOIN command_tags ct ON ct.tag_id = t.id
                GROUP BY t.id, t.name
                ORDER BY count DESC, t.name
                """
            )
            return [(name, int(count)) for name, count in cur.fetchall()]
        finally:
            conn.close()

    # ----------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------

    def _link_tags(
        self, conn: sqlite3.Connection, command_id: int, tags: list[str]
    ) -> None:
        for name in tags:
            name = name.strip()
            if not name:
                continue
            conn.execute("INSERT OR IGNORE INTO tags (name) VALUES (?)", (name,))
            tag_id = conn.execute(
                "SELECT id FROM tags WHERE name = ?", (name,)
            ).fetchone()[0]
            conn.execute(
                """
                INSERT OR IGNORE INTO command_tags (command_id, tag_id)
                VALUES (?, ?)
                """,
                (command_id, tag_id),
            )

    def _tags_for(self, conn: sqlite3.Connection, command_id: int) -> list[str]:
        cur = conn.execute(
            """
            SELECT t.name FROM tags t
            JOIN command_tags ct ON ct.tag_id = t.id
            WHERE ct.command_id = ?
            ORDER BY t.name
            """,
            (command_id,),
        )
        return [row[0] for row in cur.fetchall()]

    def _row_to_command(self, conn: sqlite3.Connection, row: tuple) -> Command:
        command_id, command, timestamp, directory, exit_code, parameters = row
        return Command(
            id=command_id,
            command=command,
            timestamp=timestamp,
            directory=directory,
            exit_code=exit_code,
            tags=self._tags_for(conn, command_id),
            parameters=parameters_from_json(parameters),
        )
