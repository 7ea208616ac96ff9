# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Protocol definitions for dependency injection.

These interfaces separate the templating/execution flow from storage,
value collection, process spawning and the terminal front end.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .executor import ExecutionResult  # pragma: no cover
    from .models import Command  # pragma: no cover
    from .params import Binding, ParameterSet  # pragma: no cover


class CommandStore(Protocol):
    """Protocol for persistent storage of commands and tags."""

    def save(
        self,
        final_command: str,
        exit_code: int | None,
        working_directory: str,
        tags: list[str],
    ) -> int:
        """Record an executed command and return its id."""
        ...

    def add_command(self, command: Command) -> int:
        """Insert a command and return its id."""
        ...

    def get_command(self, command_id: int) -> Command | None:
        """Return a command by id, or None if not found."""
        ...

    def list_commands(
        self, limit: int, ascending: bool = False, tag: str | None = None
    ) -> list[Command]:
        """List commands by timestamp (0 = no limit)."""
        ...

    def delete_command(self, command_id: int) -> None:
        """Delete a command; raises CommandNotFound if missing."""
        ...

    def add_tags(self, command_id: int, tags: list[str]) -> None:
        """Attach tags to an existing command."""
        ...

    def remove_tag(self, command_id: int, tag: str) -> None:
        """Detach one tag from a command."""
        ...

    def list_tags(self) -> list[tuple[str, int]]:
        """Return (tag, usage count) pairs, most used first."""
        ...


class BindingSource(Protocol):
    """Protocol for obtaining parameter values.

    Interactive implementations must prompt in ParameterSet order and raise
    CollectionAborted when the user cancels.
    """

    def collect(self, parameters: ParameterSet) -> Binding:
        """Return a value for each parameter this source can supply."""
        ...


class Executor(Protocol):
    """Protocol for command execution."""

    def run(self, command: str, cwd: str | None = None) -> ExecutionResult:
        """Run a shell command with inherited standard streams."""
        ...

    def run_capture(
        self, command: str, cwd: str | None = None
    ) -> ExecutionResult:
        """Run a shell command and capture stdout/stderr."""
        ...


class TerminalUI(Protocol):
    """Protocol for a front end that owns the terminal."""

    def suspend(self) -> None:
        """Release the terminal before a child process runs."""
        ...

    def resume(self) -> None:
        """Reclaim the terminal after the child process exits."""
        ...


class ConfigModel(Protocol):
    """Protocol for configuration access."""

    @property
    def execution(self) -> dict[str, Any]:
        """Execution configuration."""
        ...

    @property
    def templates(self) -> dict[str, Any]:
        """Template configuration."""
        ...

    @property
    def ui(self) -> dict[str, Any]:
        """UI configuration."""
        ...

    def get_path(self, path: str, default: Any = None) -> Any:
        """Nested lookup using a dot-separated path."""
        ...
