# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
command-vault kernel.

Routes CLI verbs to the store and to the templating/execution flow:
- add / ls / show / delete
- tag add / tag remove / tag list
- exec (stored template) and run (ad-hoc template)

Important boundary:
- Kernel does not load YAML or discover defaults.
- Kernel consumes the injected ConfigModel.

Every verb returns a process exit code. Typed errors from the runner are
turned into tagged messages here; ``exec``/``run`` return the child's own
exit code when it ran.
"""

from __future__ import annotations

import os
import sys
import traceback
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from . import config as cfg_module
from .bindings import ChainedBindingSource, MappingBindingSource
from .errors import (
    CollectionAborted,
    CommandNotFound,
    SpawnFailed,
    TemplateSyntaxError,
    UnboundParameterError,
)
from .interfaces import BindingSource, CommandStore, ConfigModel, Executor
from .models import Command
from .params import CommandTemplate
from .runner import RunOutcome, run_template
from .utils import format_table, format_timestamp


def write_crash_log(
    error: Exception,
    verb: str = "",
    raw_command: str = "",
    resolved_command: str = "",
    db_path: Path | None = None,
) -> None:
    """Write an entry to the crash log.

    Logs unhandled exceptions or critical failures.
    Only creates the log directory when actually needed.
    Appends to crash.log (never overwrites).
    """
    try:
        logs_dir = cfg_module.logs_dir(cfg_module.get_data_root())

        # Create logs directory only when we need to write
        logs_dir.mkdir(parents=True, exist_ok=True)

        crash_log_path = logs_dir / "crash.log"

        timestamp = datetime.now().isoformat()
        lines = [
            f"{timestamp}",
            f"verb={verb}",
        ]

        if raw_command:
            lines.append(f"raw={raw_command}")
        if resolved_command:
            lines.append(f"resolved={resolved_command}")
        if db_path:
            lines.append(f"db_path={db_path}")

        lines.append(f"error={type(error).__name__}: {error}")
        lines.append("traceback:")
        lines.append(traceback.format_exc())
        lines.append("----")

        with crash_log_path.open("a", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    except Exception:
        # If we can't write the crash log, fail silently
        # (we're already in an error state)
        pass


class _GuardedRecorder:
    """Recorder that reports storage failures instead of raising.

    The command has already run by the time ``save`` is called, so a
    failed insert must not hide its exit code.
    """

    def __init__(self, store: CommandStore, on_error: Callable[[Exception], None]):
        self.store = store
        self.on_error = on_error

    def save(self, final_command, exit_code, working_directory, tags):
        try:
            return self.store.save(final_command, exit_code, working_directory, tags)
        except Exception as e:
            self.on_error(e)
            return None


@dataclass
class Kernel:
    """command-vault session engine."""

    store: CommandStore
    executor: Executor
    config: ConfigModel
    bindings: BindingSource | None = None
    ui: Any = None

    color: bool = True

    # Output hooks (wired by CLI); default to stdout/stderr
    output_fn: Callable[[str], None] | None = None
    error_fn: Callable[[str], None] | None = None

    # Derived from config
    record: bool = True
    use_stored_directory: bool = True
    quote_values: bool = False
    confirm: bool = False
    debug: bool = False
    list_limit: int = 10

    def __post_init__(self) -> None:
        get = self.config.get_path
        self.record = bool(get("execution.record", True))
        self.use_stored_directory = bool(
            get("execution.use_stored_directory", True)
        )
        self.quote_values = bool(get("templates.quote_values", False))
        self.confirm = bool(get("templates.confirm", False))
        self.debug = cfg_module.debug_enabled()
        self.list_limit = int(get("list.limit", 10) or 0)

    # -----------------------
    # Output
    # -----------------------

    def _emit(self, text: str = "") -> None:
        line = text + "\n"
        if self.output_fn is not None:
            self.output_fn(line)
        else:
            sys.stdout.write(line)
            sys.stdout.flush()

    def _error(self, text: str) -> None:
        line = f"{cfg_module.tag('ERR', self.color)} {text}\n"
        if self.error_fn is not None:
            self.error_fn(line)
        else:
            sys.stderr.write(line)
            sys.stderr.flush()

    def _tagged(self, name: str, text: str) -> None:
        self._emit(f"{cfg_module.tag(name, self.color)} {text}")

    def _report_storage_error(self, error: Exception) -> None:
        write_crash_log(
            error,
            verb="record",
            db_path=getattr(self.store, "db_path", None),
        )
        self._error(f"failed to record command: {error}")

    # -----------------------
    # Stored commands
    # -----------------------

    def add(
        self,
        command: str,
        tags: list[str] | None = None,
        exit_code: int | None = None,
        directory: str | None = None,
    ) -> int:
        """Store a command template; parameters are derived from it."""
        command = command.strip()
        if not command:
            self._error("Cannot add an empty command.")
            return 1

        try:
            record = Command.new(
                command,
                directory or os.getcwd(),
                tags=tags,
                exit_code=exit_code,
            )
        except TemplateSyntaxError as e:
            self._syntax_error(e)
            return 1

        command_id = self.store.add_command(record)
        self._emit(f"Command added to history with ID: {command_id}")
        if record.parameters:
            names = ", ".join(p.name for p in record.parameters)
            self._emit(f"Parameters: {names}")
        return 0

    def list_commands(
        self,
        limit: int | None = None,
        ascending: bool = False,
        tag: str | None = None,
    ) -> int:
        limit = self.list_limit if limit is None else limit
        commands = self.store.list_commands(limit, ascending=ascending, tag=tag)
        if not commands:
            self._emit("No commands found.")
            return 0

        rows = [
            [
                cmd.id,
                format_timestamp(cmd.timestamp),
                ",".join(cmd.tags),
                cmd.command,
            ]
            for cmd in commands
        ]
        self._emit(format_table(["ID", "Time", "Tags", "Command"], rows))
        return 0

    def show(self, command_id: int) -> int:
        cmd = self.store.get_command(command_id)
        if cmd is None:
            self._error(str(CommandNotFound(command_id)))
            return 1

        self._emit(f"({cmd.id}) [{format_timestamp(cmd.timestamp)}] {cmd.command}")
        self._emit(f"    Directory: {cmd.directory}")
        if cmd.exit_code is not None:
            self._emit(f"    Exit Code: {cmd.exit_code}")
        if cmd.tags:
            self._emit(f"    Tags: {', '.join(cmd.tags)}")
        for param in cmd.parameters:
            desc = f" ({param.description})" if param.description else ""
            self._emit(f"    @{param.name}{desc}")
        return 0

    def delete(self, command_id: int) -> int:
        try:
            self.store.delete_command(command_id)
        except CommandNotFound as e:
            self._error(str(e))
            return 1
        self._emit(f"Command {command_id} deleted.")
        return 0

    # -----------------------
    # Tags
    # -----------------------

    def tag_add(self, command_id: int, tags: list[str]) -> int:
        try:
            self.store.add_tags(command_id, tags)
        except CommandNotFound as e:
            self._error(str(e))
            return 1
        self._emit("Tags added successfully")
        return 0

    def tag_remove(self, command_id: int, tag: str) -> int:
        self.store.remove_tag(command_id, tag)
        self._emit("Tag removed successfully")
        return 0

    def tag_list(self) -> int:
        tags = self.store.list_tags()
        if not tags:
            self._emit("No tags found")
            return 0

        self._tagged("TAGS", "Tags and their usage:")
        for name, count in tags:
            plural = "" if count == 1 else "s"
            self._emit(f"  {name}: {count} command{plural}")
        return 0

    # -----------------------
    # Execution
    # -----------------------

    def execute(
        self,
        command_id: int,
        params: Mapping[str, str] | None = None,
        *,
        capture: bool = False,
        quote: bool | None = None,
        debug: bool | None = None,
        record: bool | None = None,
        here: bool = False,
    ) -> int:
        """Run a stored template; return the child's exit code."""
        cmd = self.store.get_command(command_id)
        if cmd is None:
            self._error(str(CommandNotFound(command_id)))
            return 1

        cwd = None
        if self.use_stored_directory and not here:
            if os.path.isdir(cmd.directory):
                cwd = cmd.directory
            else:
                self._error(
                    f"Stored directory {cmd.directory} does not exist; "
                    f"running in {os.getcwd()}"
                )

        return self._run(
            cmd.command,
            params,
            cwd=cwd,
            capture=capture,
            quote=quote,
            debug=debug,
            record=self.record if record is None else record,
            tags=list(cmd.tags),
        )

    def run(
        self,
        template: str,
        params: Mapping[str, str] | None = None,
        *,
        capture: bool = False,
        quote: bool | None = None,
        debug: bool | None = None,
        record: bool = False,
        tags: list[str] | None = None,
    ) -> int:
        """Run an ad-hoc template; return the child's exit code."""
        return self._run(
            template,
            params,
            cwd=None,
            capture=capture,
            quote=quote,
            debug=debug,
            record=record,
            tags=list(tags or []),
        )

    def _binding_source(
        self, template: CommandTemplate, params: Mapping[str, str] | None, cwd
    ) -> BindingSource | None:
        interactive = self.bindings
        if interactive is not None and hasattr(interactive, "for_template"):
            interactive = interactive.for_template(template, cwd=cwd)

        sources = []
        if params:
            sources.append(MappingBindingSource(params))
        if interactive is not None:
            sources.append(interactive)

        if not sources:
            return None
        if len(sources) == 1:
            return sources[0]
        return ChainedBindingSource(*sources)

    def _before_run(
        self, debug: bool, confirm: bool, cwd: str | None
    ) -> Callable[[str], bool]:
        def _hook(final_command: str) -> bool:
            if debug:
                self._tagged("DEBUG", f"final command: {final_command}")
            if confirm:
                self._tagged("RUN", final_command)
                self._emit(f"    Directory: {cwd or os.getcwd()}")
                if hasattr(self.ui, "confirm"):
                    return self.ui.confirm("Run this command?")
            return True

        return _hook

    def _run(
        self,
        template: str,
        params: Mapping[str, str] | None,
        *,
        cwd: str | None,
        capture: bool,
        quote: bool | None,
        debug: bool | None,
        record: bool,
        tags: list[str],
    ) -> int:
        debug = self.debug if debug is None else debug
        quote = self.quote_values if quote is None else quote

        try:
            tpl = CommandTemplate.parse(template)
        except TemplateSyntaxError as e:
            self._syntax_error(e)
            return 1

        recorder = (
            _GuardedRecorder(self.store, self._report_storage_error)
            if record
            else None
        )

        try:
            outcome = run_template(
                tpl,
                self._binding_source(tpl, params, cwd),
                self.executor,
                ui=self.ui,
                cwd=cwd,
                capture=capture,
                quote_values=quote,
                recorder=recorder,
                tags=tags,
                before_run=self._before_run(
                    debug, self.confirm and tpl.has_parameters, cwd
                ),
            )
        except CollectionAborted:
            self._emit("Cancelled.")
            return 0
        except UnboundParameterError as e:
            self._error(str(e))
            return 1
        except SpawnFailed as e:
            self._error(str(e))
            return 1

        self._report_outcome(outcome, capture=capture, debug=debug)
        return outcome.exit_code

    def _report_outcome(
        self, outcome: RunOutcome, capture: bool, debug: bool
    ) -> None:
        result = outcome.result
        if capture:
            if result.stdout:
                self._write_raw(result.stdout, self.output_fn, sys.stdout)
            if result.stderr:
                self._write_raw(result.stderr, self.error_fn, sys.stderr)
            if result.truncated:
                self._error("output not fully captured")
        if capture or debug:
            detail = ""
            if result.signal is not None:
                detail = f" (signal {result.signal})"
            self._tagged("EXIT", f"{result.exit_code}{detail}")

    @staticmethod
    def _write_raw(text: str, fn: Callable[[str], None] | None, stream) -> None:
        if fn is not None:
            fn(text)
        else:
            stream.write(text)
            stream.flush()

    def _syntax_error(self, error: TemplateSyntaxError) -> None:
        self._error(f"Invalid template: {error}")
        pointer = error.pointer()
        if pointer:
            for line in pointer.splitlines():
                self._emit(f"    {line}")
