# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
command-vault CLI entry point.

Design:
- CLI owns process startup, config loading and DB resolution.
- Kernel is the session engine (config+store+executor+bindings injected).
- The prompt_toolkit front end is used only when stdin is a terminal;
  otherwise parameters are read line by line from stdin.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__, config
from .bindings import StdIOBindingSource
from .db import ensure_schema
from .executor import SubprocessExecutor
from .kernel import Kernel, write_crash_log
from .store import SQLiteStore
from .utils import parse_assignments


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="command-vault",
        description="Store shell commands with @parameters and run them later.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--no-color", action="store_true", help="Disable ANSI colors."
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    p_add = sub.add_parser("add", help="Store a command template.")
    p_add.add_argument(
        "--exit-code", type=int, default=None, help="Exit code to record."
    )
    p_add.add_argument(
        "-t", "--tag", dest="tags", action="append", default=[],
        help="Tag the command (repeatable).",
    )
    p_add.add_argument(
        "words", nargs=argparse.REMAINDER, metavar="COMMAND",
        help="Command text; options must come before it.",
    )

    p_ls = sub.add_parser("ls", help="List stored commands.")
    p_ls.add_argument(
        "-l", "--limit", type=int, default=None,
        help="Number of commands to show (0 for all).",
    )
    p_ls.add_argument(
        "-a", "--asc", action="store_true", help="Oldest first."
    )
    p_ls.add_argument("--tag", default=None, help="Only commands with TAG.")

    p_show = sub.add_parser("show", help="Show one stored command.")
    p_show.add_argument("id", type=int)

    p_exec = sub.add_parser("exec", help="Run a stored command.")
    p_exec.add_argument("id", type=int)
    _add_run_options(p_exec)
    p_exec.add_argument(
        "--no-record", action="store_true",
        help="Do not record the executed command.",
    )
    p_exec.add_argument(
        "--here", action="store_true",
        help="Run in the current directory instead of the stored one.",
    )

    p_run = sub.add_parser("run", help="Run an ad-hoc template.")
    _add_run_options(p_run)
    p_run.add_argument(
        "--record", action="store_true", help="Record the executed command."
    )
    p_run.add_argument(
        "-t", "--tag", dest="tags", action="append", default=[],
        help="Tag the recorded command (repeatable).",
    )
    p_run.add_argument(
        "words", nargs=argparse.REMAINDER, metavar="TEMPLATE",
        help="Template text; options must come before it.",
    )

    p_delete = sub.add_parser("delete", help="Delete a stored command.")
    p_delete.add_argument("id", type=int)

    p_tag = sub.add_parser("tag", help="Manage tags.")
    tag_sub = p_tag.add_subparsers(dest="tag_command", metavar="ACTION")
    tag_sub.required = True

    p_tag_add = tag_sub.add_parser("add", help="Add tags to a command.")
    p_tag_add.add_argument("id", type=int)
    p_tag_add.add_argument("tags", nargs="+")

    p_tag_remove = tag_sub.add_parser("remove", help="Remove a tag.")
    p_tag_remove.add_argument("id", type=int)
    p_tag_remove.add_argument("tag")

    tag_sub.add_parser("list", help="List tags and their usage.")

    return parser


def _add_run_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-p", "--param", dest="params", action="append", default=[],
        metavar="NAME=VALUE", help="Pre-supply a parameter value.",
    )
    p.add_argument(
        "--capture", action="store_true",
        help="Capture output instead of handing over the terminal.",
    )
    p.add_argument(
        "--quote", action="store_true",
        help="Shell-quote parameter values before substitution.",
    )
    p.add_argument(
        "--debug", action="store_true", help="Print the final command."
    )


def _interactive(cfg: config.YAMLConfig) -> bool:
    return bool(cfg.get_path("ui.interactive", True)) and sys.stdin.isatty()


def build_kernel(
    cfg: config.YAMLConfig,
    db_path: Path,
    interactive: bool = False,
    color: bool = True,
) -> Kernel:
    """Explicit wiring: config + store + executor + bindings into kernel."""
    ensure_schema(db_path)
    store = SQLiteStore(db_path)
    executor = SubprocessExecutor(
        shell=cfg.get_path("execution.shell", "/bin/sh"),
        force_color=bool(cfg.get_path("execution.force_color", False)),
        max_capture_bytes=int(
            cfg.get_path("execution.max_capture_bytes", 256_000)
        ),
    )

    if interactive:
        # prompt_toolkit is only imported when a terminal is attached
        from .ui import PromptToolkitBindingSource, PromptToolkitUI

        ui = PromptToolkitUI(cfg)
        kernel = Kernel(
            store=store,
            executor=executor,
            config=cfg,
            bindings=PromptToolkitBindingSource(cfg),
            ui=ui,
            color=color,
        )
        kernel.output_fn = ui.write
        return kernel

    return Kernel(
        store=store,
        executor=executor,
        config=cfg,
        bindings=StdIOBindingSource(),
        color=color,
    )


def dispatch(kernel: Kernel, args: argparse.Namespace) -> int:
    """Route parsed arguments to the kernel; return the exit code."""
    cmd = args.command

    if cmd == "add":
        return kernel.add(
            " ".join(args.words), tags=args.tags, exit_code=args.exit_code
        )
    if cmd == "ls":
        return kernel.list_commands(
            limit=args.limit, ascending=args.asc, tag=args.tag
        )
    if cmd == "show":
        return kernel.show(args.id)
    if cmd == "delete":
        return kernel.delete(args.id)
    if cmd == "tag":
        if args.tag_command == "add":
            return kernel.tag_add(args.id, args.tags)
        if args.tag_command == "remove":
            return kernel.tag_remove(args.id, args.tag)
        return kernel.tag_list()

    params = parse_assignments(args.params)
    if cmd == "exec":
        return kernel.execute(
            args.id,
            params,
            capture=args.capture,
            quote=True if args.quote else None,
            debug=True if args.debug else None,
            record=False if args.no_record else None,
            here=args.here,
        )
    if cmd == "run":
        return kernel.run(
            " ".join(args.words),
            params,
            capture=args.capture,
            quote=True if args.quote else None,
            debug=True if args.debug else None,
            record=args.record,
            tags=args.tags,
        )

    raise ValueError(f"Unknown command: {cmd}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for command-vault CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command in ("add", "run") and not args.words:
        parser.error(f"{args.command}: missing command text")

    for raw in getattr(args, "params", []):
        try:
            parse_assignments([raw])
        except ValueError as e:
            parser.error(str(e))

    data_root = config.get_data_root()
    db_path = config.db_path(data_root)
    cfg = config.load_system_config(data_root)
    color = not args.no_color and sys.stdout.isatty()

    kernel = build_kernel(
        cfg, db_path, interactive=_interactive(cfg), color=color
    )

    try:
        return dispatch(kernel, args)
    except KeyboardInterrupt:
        sys.stderr.write("\n")
        return 130
    except Exception as e:
        # Unhandled exception - write crash log
        write_crash_log(
            e,
            verb=args.command,
            raw_command=" ".join(getattr(args, "words", []) or []),
            db_path=db_path,
        )
        sys.stderr.write(
            f"{config.tag('ERR', color)} Unhandled exception: "
            f"{type(e).__name__}: {e}\n"
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
