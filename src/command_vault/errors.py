# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Error taxonomy for templating and execution.

Every error carries the structured fields a caller needs to build its own
message; ``str(err)`` is only a sensible default.
"""

from __future__ import annotations


class VaultError(RuntimeError):
    """Base class for command-vault errors."""


class TemplateSyntaxError(VaultError):
    """A placeholder in a template is malformed."""

    def __init__(self, message: str, position: int, template: str = ""):
        self.message = message
        self.position = position
        self.template = template
        super().__init__(f"{message} (at position {position})")

    def pointer(self) -> str:
        """Return the template with a caret line under the bad position."""
        if not self.template:
            return ""
        return f"{self.template}\n{' ' * self.position}^"


class UnboundParameterError(VaultError):
    """One or more template parameters received no value."""

    def __init__(self, missing: list[str] | tuple[str, ...]):
        self.missing = tuple(missing)
        self.name = self.missing[0] if self.missing else ""
        names = ", ".join(self.missing)
        super().__init__(f"No value supplied for parameter(s): {names}")


class CollectionAborted(VaultError):
    """The user cancelled while values were being collected."""

    def __init__(self, parameter: str | None = None):
        self.parameter = parameter
        msg = "Parameter collection cancelled"
        if parameter:
            msg += f" at '{parameter}'"
        super().__init__(msg)


class SpawnFailed(VaultError):
    """The shell process for a command could not be started."""

    def __init__(self, command: str, cause: BaseException):
        self.command = command
        self.cause = cause
        super().__init__(f"Failed to start command: {cause}")


class CommandNotFound(VaultError):
    """No stored command has the requested id."""

    def __init__(self, command_id: int):
        self.command_id = command_id
        super().__init__(f"Command not found: {command_id}")
