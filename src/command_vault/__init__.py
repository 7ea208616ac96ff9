# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
command-vault core package.

Stored shell commands with ``@name[:description]`` placeholders, filled in
at run time and executed through the shell.
"""

__version__ = "0.3.0"

from .kernel import Kernel as Kernel  # noqa: F401,E402 (re-export)
from .params import CommandTemplate as CommandTemplate  # noqa: F401,E402
from .runner import run_template as run_template  # noqa: F401,E402
