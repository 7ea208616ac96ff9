# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Stored command records.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .params import Parameter, parse_parameters


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Command:
    """A stored command template and its metadata."""

    command: str
    directory: str
    timestamp: str = field(default_factory=utc_now)
    tags: list[str] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)
    exit_code: int | None = None
    id: int | None = None

    @classmethod
    def new(
        cls,
        command: str,
        directory: str,
        tags: list[str] | None = None,
        exit_code: int | None = None,
    ) -> Command:
        """Build a record, deriving its parameters from the template.

        Raises:
            TemplateSyntaxError: if the template has a malformed placeholder.
        """
        return cls(
            command=command,
            directory=directory,
            tags=list(tags or []),
            parameters=list(parse_parameters(command)),
            exit_code=exit_code,
        )


def parameters_to_json(parameters: list[Parameter]) -> str:
    return json.dumps(
        [{"name": p.name, "description": p.description} for p in parameters]
    )


def parameters_from_json(raw: str | None) -> list[Parameter]:
    if not raw:
        return []
    return [
        Parameter(name=item["name"], description=item.get("description"))
        for item in json.loads(raw)
    ]
