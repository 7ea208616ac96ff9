# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Utility functions for command-vault.
"""

import re
import shlex
from datetime import datetime
from typing import Any

_ASSIGNMENT = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)=(.*)$", re.DOTALL)


def format_table(
    headers: list[str],
    rows: list[list[Any]],
    title: str = ""
) -> str:
    """
    Format data as a simple text table without external dependencies.

    Args:
        headers: List of column header names
        rows: List of rows, where each row is a list of values
        title: Optional title to display above the table

    Returns:
        Formatted table as a string
    """
    if not rows:
        return ""

    str_headers = [str(h) for h in headers]
    str_rows = [[str(val) for val in row] for row in rows]

    col_widths = []
    for i, header in enumerate(str_headers):
        max_width = len(header)
        for row in str_rows:
            if i < len(row):
                max_width = max(max_width, len(row[i]))
        col_widths.append(max_width)

    lines = []
    if title:
        lines.append(title)

    lines.append(
        "  ".join(h.ljust(col_widths[i]) for i, h in enumerate(str_headers)).rstrip()
    )
    for row in str_rows:
        lines.append(
            "  ".join(val.ljust(col_widths[i]) for i, val in enumerate(row)).rstrip()
        )

    return "\n".join(lines)


def shell_quote(s: str) -> str:
    """Shell-escape string so the shell treats it as one literal word.

    Args:
        s: String to escape

    Returns:
        Shell-safe quoted string
    """
    return shlex.quote(s)


def parse_assignments(args: list[str]) -> dict[str, str]:
    """Parse ``name=value`` arguments into a dict.

    Later assignments to the same name win. The value may be empty or
    contain further ``=`` characters.

    Raises:
        ValueError: if an argument is not of the form ``name=value``.
    """
    values: dict[str, str] = {}
    for arg in args:
        match = _ASSIGNMENT.match(arg)
        if not match:
            raise ValueError(
                f"Invalid parameter assignment '{arg}' (expected name=value)"
            )
        values[match.group(1)] = match.group(2)
    return values


def format_timestamp(iso: str) -> str:
    """Render an ISO-8601 timestamp in local time as YYYY-MM-DD HH:MM:SS."""
    try:
        dt = datetime.fromisoformat(iso)
    except ValueError:
        return iso
    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt.strftime("%Y-%m-%d %H:%M:%S")
