# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import confirm as pt_confirm
from prompt_toolkit.shortcuts import print_formatted_text
from prompt_toolkit.styles import Style

from .bindings import prompt_label
from .errors import CollectionAborted
from .params import MARKER, Binding, CommandTemplate, Parameter, ParameterSet

if TYPE_CHECKING:
    from .interfaces import ConfigModel  # pragma: no cover


# ----------------------------
# Config helpers (values come from config.py via ConfigModel.get_path)
# ----------------------------


def _cfg_get_path(config: ConfigModel | None, path: str, default):
    if config is None or not hasattr(config, "get_path"):
        return default
    return config.get_path(path, default)


def _cfg_dict(config: ConfigModel | None, path: str, default: dict) -> dict:
    val = _cfg_get_path(config, path, default)
    return val if isinstance(val, dict) else default


# ----------------------------
# Theme / Style
# ----------------------------


def _default_style_dict() -> dict[str, str]:
    return {
        "bottom-toolbar": "bg:#0b0b0b #d0d0d0",
        "vault.toolbar": "bg:#0b0b0b #d0d0d0",
        "vault.toolbar.label": "bg:#0b0b0b #808080",
        "vault.toolbar.command": "bg:#0b0b0b #ffd75f bold",
        "vault.toolbar.description": "bg:#0b0b0b #87afff",
        "vault.prompt.name": "#5fd787 bold",
    }


def _build_style(config: ConfigModel | None) -> Style:
    base = _default_style_dict()
    overrides = _cfg_dict(config, "ui.style", {})
    # only keep string->string
    for k, v in list(overrides.items()):
        if isinstance(k, str) and isinstance(v, str):
            base[k] = v
    return Style.from_dict(base)


# ----------------------------
# Parameter prompts
# ----------------------------


class PromptToolkitBindingSource:
    """Interactive BindingSource backed by a prompt_toolkit session.

    Prompts once per parameter, in ParameterSet order. The bottom toolbar
    shows the command as it is being built (already-bound values plus the
    text currently typed), the description of the parameter being asked
    for and the working directory the command will run in.

    Ctrl+C / Ctrl+D abort the whole collection (CollectionAborted).
    """

    def __init__(
        self,
        config: ConfigModel | None = None,
        template: CommandTemplate | str | None = None,
        cwd: str | None = None,
    ) -> None:
        self.config = config
        self.template = (
            CommandTemplate.parse(template)
            if isinstance(template, str)
            else template
        )
        self.cwd = cwd
        self._style = _build_style(config)
        self.session: Any = None

        self._binding: Binding = {}
        self._current: Parameter | None = None

    def for_template(
        self, template: CommandTemplate | str, cwd: str | None = None
    ) -> PromptToolkitBindingSource:
        """Return a source whose toolbar previews ``template``."""
        return PromptToolkitBindingSource(
            config=self.config,
            template=template,
            cwd=cwd if cwd is not None else self.cwd,
        )

    # ---------- toolbar ----------

    def _live_binding(self) -> Binding:
        binding = dict(self._binding)
        if self._current is not None and self.session is not None:
            typed = self.session.default_buffer.text
            if typed:
                binding[self._current.name] = typed
        return binding

    def _bottom_toolbar(self):
        out: list[tuple[str, str]] = []

        if self.template is not None:
            out.append(("class:vault.toolbar.label", " command: "))
            out.append(
                (
                    "class:vault.toolbar.command",
                    self.template.preview(self._live_binding()),
                )
            )

        if self._current is not None and self._current.description:
            if out:
                out.append(("class:vault.toolbar", "\n"))
            out.append(
                ("class:vault.toolbar.label", f" {MARKER}{self._current.name}: ")
            )
            out.append(
                ("class:vault.toolbar.description", self._current.description)
            )

        if out:
            out.append(("class:vault.toolbar", "\n"))
        out.append(("class:vault.toolbar.label", " cwd: "))
        out.append(("class:vault.toolbar", self.cwd or os.getcwd()))
        return out

    # ---------- session ----------

    def _ensure_session(self) -> None:
        if self.session is not None:
            return
        self.session = PromptSession(
            style=self._style,
            bottom_toolbar=self._bottom_toolbar,
        )

    # ---------- BindingSource ----------

    def collect(self, parameters: ParameterSet) -> Binding:
        self._binding = {}
        if not parameters:
            return {}

        self._ensure_session()
        assert self.session is not None

        for param in parameters:
            self._current = param
            try:
                with patch_stdout():
                    value = self.session.prompt(
                        [("class:vault.prompt.name", f"{prompt_label(param)}: ")]
                    )
            except (KeyboardInterrupt, EOFError):
                raise CollectionAborted(param.name) from None
            finally:
                self._current = None
            self._binding[param.name] = value

        return dict(self._binding)


# ----------------------------
# Terminal front end
# ----------------------------


class PromptToolkitUI:
    """Output and terminal hand-off for the CLI."""

    def __init__(self, config: ConfigModel | None = None) -> None:
        self.config = config
        self._style = _build_style(config)
        self._needs_newline = False
        self.suspended = False

    def write(self, text: str) -> None:
        """Write EXACTLY what we receive (no extra newline)."""
        if not text:
            return
        print_formatted_text(ANSI(text), style=self._style, end="")
        self._needs_newline = not text.endswith("\n")

    def confirm(self, question: str) -> bool:
        """Yes/no question; Ctrl+C / Ctrl+D count as no."""
        try:
            return bool(pt_confirm(question))
        except (KeyboardInterrupt, EOFError):
            return False

    # ---------- terminal hand-off ----------

    def suspend(self) -> None:
        """Release the terminal before a child process runs.

        Ends any half-written line so the child starts on a fresh one.
        """
        if self._needs_newline:
            print_formatted_text(ANSI("\n"), style=self._style, end="")
            self._needs_newline = False
        self.suspended = True

    def resume(self) -> None:
        """Reclaim the terminal after the child exits.

        The child owned the cursor; assume nothing about where it left it.
        """
        self._needs_newline = False
        self.suspended = False
