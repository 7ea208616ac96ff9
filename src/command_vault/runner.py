# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
The templating-and-execution flow.

One synchronous pass per invocation:
    parse -> collect bindings -> substitute -> execute -> hand off

Every error aborts at the point of failure; nothing downstream runs:
- TemplateSyntaxError is raised before any prompting.
- CollectionAborted / UnboundParameterError stop before substitution, so
  no partial command is ever executed.
- SpawnFailed produces no ExecutionResult and nothing is recorded.

No state survives between calls.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from .bindings import check_binding, quote_binding
from .errors import CollectionAborted
from .executor import ExecutionResult
from .interfaces import BindingSource, CommandStore, Executor, TerminalUI
from .params import Binding, CommandTemplate


@dataclass(frozen=True)
class Recording:
    """What the storage collaborator receives after an execution."""

    final_command: str
    exit_code: int
    working_directory: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class RunOutcome:
    template: CommandTemplate
    final_command: str
    result: ExecutionResult
    command_id: int | None = None

    @property
    def exit_code(self) -> int:
        return self.result.exit_code


@contextmanager
def terminal_handoff(ui: TerminalUI | None) -> Iterator[None]:
    """Give the terminal to a child process for the duration of the block.

    ``ui.resume()`` runs on every exit path, including spawn failures.
    """
    if ui is None:
        yield
        return
    ui.suspend()
    try:
        yield
    finally:
        ui.resume()


def as_template(template: CommandTemplate | str) -> CommandTemplate:
    if isinstance(template, CommandTemplate):
        return template
    return CommandTemplate.parse(template)


def collect_binding(
    template: CommandTemplate, bindings: BindingSource | None
) -> Binding:
    """Collect and validate values for every parameter of ``template``.

    The source is not consulted at all when the template has no
    parameters.
    """
    parameters = template.parameters
    if not parameters:
        return {}
    binding = bindings.collect(parameters) if bindings is not None else {}
    check_binding(parameters, binding)
    return binding


def prepare_command(
    template: CommandTemplate | str,
    bindings: BindingSource | None,
    quote_values: bool = False,
) -> tuple[CommandTemplate, str]:
    """Parse, collect and substitute; return (template, final command)."""
    tpl = as_template(template)
    binding = collect_binding(tpl, bindings)
    if quote_values:
        binding = quote_binding(binding)
    return tpl, tpl.substitute(binding)


def execute(
    final_command: str,
    executor: Executor,
    *,
    ui: TerminalUI | None = None,
    cwd: str | None = None,
    capture: bool = False,
    on_stdout: Callable[[str], None] | None = None,
    on_stderr: Callable[[str], None] | None = None,
) -> ExecutionResult:
    """Run a final command string inside the terminal hand-off scope."""
    with terminal_handoff(ui):
        if capture and (on_stdout or on_stderr) and hasattr(executor, "run_stream"):
            return executor.run_stream(
                final_command, on_stdout=on_stdout, on_stderr=on_stderr, cwd=cwd
            )
        if capture:
            return executor.run_capture(final_command, cwd=cwd)
        return executor.run(final_command, cwd=cwd)


def record(
    recorder: CommandStore, recording: Recording
) -> int:
    return recorder.save(
        recording.final_command,
        recording.exit_code,
        recording.working_directory,
        list(recording.tags),
    )


def run_template(
    template: CommandTemplate | str,
    bindings: BindingSource | None,
    executor: Executor,
    *,
    ui: TerminalUI | None = None,
    cwd: str | None = None,
    capture: bool = False,
    quote_values: bool = False,
    recorder: CommandStore | None = None,
    tags: tuple[str, ...] | list[str] = (),
    before_run: Callable[[str], bool | None] | None = None,
    on_stdout: Callable[[str], None] | None = None,
    on_stderr: Callable[[str], None] | None = None,
) -> RunOutcome:
    """Turn a template into a finished execution.

    Args:
        template: template text or a parsed CommandTemplate
        bindings: source of parameter values (None: template must have
            no parameters)
        executor: runs the final command through the shell
        ui: front end to suspend/resume around the child process
        cwd: working directory for the child (default: current directory)
        capture: capture stdout/stderr instead of inheriting the terminal
        quote_values: shell-quote bound values before substitution
        recorder: storage collaborator; ``save`` is called once the
            command has run, whatever its exit code
        tags: tags passed to the recorder
        before_run: called with the final command before it is spawned;
            returning False cancels the run (CollectionAborted)
        on_stdout / on_stderr: line callbacks when capturing

    Raises:
        TemplateSyntaxError, CollectionAborted, UnboundParameterError,
        SpawnFailed
    """
    tpl, final_command = prepare_command(template, bindings, quote_values)

    if before_run is not None and before_run(final_command) is False:
        raise CollectionAborted()

    result = execute(
        final_command,
        executor,
        ui=ui,
        cwd=cwd,
        capture=capture,
        on_stdout=on_stdout,
        on_stderr=on_stderr,
    )

    command_id = None
    if recorder is not None:
        command_id = record(
            recorder,
            Recording(
                final_command=final_command,
                exit_code=result.exit_code,
                working_directory=cwd or os.getcwd(),
                tags=tuple(tags),
            ),
        )

    return RunOutcome(
        template=tpl,
        final_command=final_command,
        result=result,
        command_id=command_id,
    )
