# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Subprocess-backed executor for final command strings.

This module provides:
- run(): inherit stdin/stdout/stderr so the child owns the terminal
  (pagers, editors, prompts)
- run_capture(): buffered execution with captured stdout/stderr
- run_stream(): stream stdout/stderr line by line while capturing

The command string is handed to the shell as a single ``-c`` argument.
The executor never re-tokenizes or re-quotes it: shell syntax in the
template (pipes, redirects, quoting) is the shell's to interpret.

A non-zero exit status is an ordinary result. Only a failure to start the
process raises (SpawnFailed). There is no timeout: once the child is
running, the executor waits for it to exit.
"""

from __future__ import annotations

import os
import subprocess
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from .errors import SpawnFailed

DEFAULT_SHELL = "/bin/sh"

# Exit code reported for a signal-terminated child: 128 + signal number,
# matching what POSIX shells report in $?.
SIGNAL_EXIT_BASE = 128


class ExecutionState(Enum):
    COMPLETED = "completed"
    SIGNALED = "signaled"


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one execution.

    ``stdout``/``stderr`` are None when the child inherited the terminal.
    """

    exit_code: int
    state: ExecutionState
    started_at: str
    duration_ms: int
    stdout: str | None = None
    stderr: str | None = None
    signal: int | None = None
    truncated: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


def _exit_status(returncode: int) -> tuple[int, ExecutionState, int | None]:
    """Map a Popen returncode to (exit_code, state, signal)."""
    if returncode < 0:
        signum = -returncode
        return SIGNAL_EXIT_BASE + signum, ExecutionState.SIGNALED, signum
    return returncode, ExecutionState.COMPLETED, None


class SubprocessExecutor:
    """Subprocess implementation of Executor protocol."""

    def __init__(
        self,
        shell: str = DEFAULT_SHELL,
        force_color: bool = False,
        max_capture_bytes: int = 256_000,
    ):
        """Initialize executor with configuration.

        Args:
            shell: Interpreter used as ``[shell, "-c", command]``
            force_color: If True, set color-forcing env variables
            max_capture_bytes: Max bytes to keep in captured
                stdout/stderr buffers
        """
        self.shell = shell
        self.force_color = force_color
        self.max_capture_bytes = max_capture_bytes

    def _build_env(self) -> dict:
        env = os.environ.copy()
        if self.force_color:
            env["PY_COLORS"] = "1"
            env["FORCE_COLOR"] = "1"
            env["CLICOLOR_FORCE"] = "1"
        return env

    def _argv(self, command: str) -> list[str]:
        return [self.shell, "-c", command]

    def _spawn(self, command: str, cwd: str | None, **kwargs) -> subprocess.Popen:
        try:
            proc = subprocess.Popen(
                self._argv(command),
                env=self._build_env(),
                cwd=cwd,
                **kwargs,
            )
        except OSError as e:
            raise SpawnFailed(command, e) from e
        return proc

    def run(self, command: str, cwd: str | None = None) -> ExecutionResult:
        """Run a command with full terminal control (no output capture).

        The child inherits stdin/stdout/stderr from this process, so
        interactive programs behave as if started from the shell.

        Raises:
            SpawnFailed: if the shell cannot be started.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        start_ts = time.monotonic()

        proc = self._spawn(command, cwd, stdin=None, stdout=None, stderr=None)
        returncode = proc.wait()

        duration_ms = int((time.monotonic() - start_ts) * 1000)
        exit_code, state, signum = _exit_status(returncode)
        return ExecutionResult(
            exit_code=exit_code,
            state=state,
            started_at=started_at,
            duration_ms=duration_ms,
            signal=signum,
        )

    def run_capture(
        self, command: str, cwd: str | None = None
    ) -> ExecutionResult:
        """Run a command and return its buffered stdout/stderr.

        Raises:
            SpawnFailed: if the shell cannot be started.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        start_ts = time.monotonic()

        proc = self._spawn(
            command,
            cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        stdout, stderr = proc.communicate()

        duration_ms = int((time.monotonic() - start_ts) * 1000)
        exit_code, state, signum = _exit_status(proc.returncode)

        stdout, cut_out = self._cap(stdout or "")
        stderr, cut_err = self._cap(stderr or "")
        truncated = cut_out or cut_err

        return ExecutionResult(
            exit_code=exit_code,
            state=state,
            started_at=started_at,
            duration_ms=duration_ms,
            stdout=stdout,
            stderr=stderr,
            signal=signum,
            truncated=truncated,
        )

    def _cap(self, s: str) -> tuple[str, bool]:
        max_bytes = max(0, int(self.max_capture_bytes))
        raw = s.encode("utf-8", errors="replace")
        if len(raw) <= max_bytes:
            return s, False
        return raw[:max_bytes].decode("utf-8", errors="ignore"), True

    def run_stream(
        self,
        command: str,
        on_stdout: Callable[[str], None] | None = None,
        on_stderr: Callable[[str], None] | None = None,
        cwd: str | None = None,
    ) -> ExecutionResult:
        """Run a command and stream output line-by-line in real time.

        Args:
            command: final command string
            on_stdout: called with each stdout line (including newline
                if present)
            on_stderr: called with each stderr line
            cwd: working directory for the command

        Returns:
            ExecutionResult (includes captured output up to
            max_capture_bytes)

        Raises:
            SpawnFailed: if the shell cannot be started.
        """
        started_at = datetime.now(timezone.utc).isoformat()
        start_ts = time.monotonic()

        cap_out: list[str] = []
        cap_err: list[str] = []
        out_bytes = 0
        err_bytes = 0
        truncated = False
        max_bytes = max(0, int(self.max_capture_bytes))
        lock = threading.Lock()

        def _append_capped(buf: list[str], s: str, current_bytes: int) -> int:
            nonlocal truncated
            b = len(s.encode("utf-8", errors="replace"))
            if current_bytes >= max_bytes:
                truncated = True
                return current_bytes + b
            remaining = max_bytes - current_bytes
            if b > remaining:
                raw = s.encode("utf-8", errors="replace")[:remaining]
                buf.append(raw.decode("utf-8", errors="ignore"))
                truncated = True
                return current_bytes + b
            buf.append(s)
            return current_bytes + b

        proc = self._spawn(
            command,
            cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,  # line-buffered (best effort)
        )

        assert proc.stdout is not None
        assert proc.stderr is not None

        def _reader(pipe, is_err: bool) -> None:
            nonlocal out_bytes, err_bytes
            with pipe:
                for line in iter(pipe.readline, ""):
                    with lock:
                        if is_err:
                            if on_stderr:
                                on_stderr(line)
                            err_bytes = _append_capped(cap_err, line, err_bytes)
                        else:
                            if on_stdout:
                                on_stdout(line)
                            out_bytes = _append_capped(cap_out, line, out_bytes)

        t_out = threading.Thread(
            target=_reader, args=(proc.stdout, False), daemon=True
        )
        t_err = threading.Thread(
            target=_reader, args=(proc.stderr, True), daemon=True
        )
        t_out.start()
        t_err.start()

        returncode = proc.wait()
        # Pipes hit EOF once the child and its descendants close them.
        t_out.join()
        t_err.join()

        duration_ms = int((time.monotonic() - start_ts) * 1000)
        exit_code, state, signum = _exit_status(returncode)

        return ExecutionResult(
            exit_code=exit_code,
            state=state,
            started_at=started_at,
            duration_ms=duration_ms,
            stdout="".join(cap_out),
            stderr="".join(cap_err),
            signal=signum,
            truncated=truncated,
        )
