# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Binding sources: where parameter values come from.

A source receives the ParameterSet in first-occurrence order and returns a
name -> value mapping. Interactive sources prompt in that order and raise
CollectionAborted when the user cancels. The prompt_toolkit source lives in
``command_vault.ui``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping

from .errors import CollectionAborted, UnboundParameterError
from .params import Binding, Parameter, ParameterSet, missing_names
from .utils import shell_quote


def prompt_label(param: Parameter) -> str:
    if param.description:
        return f"{param.name} ({param.description})"
    return param.name


class MappingBindingSource:
    """Non-interactive source backed by pre-supplied values."""

    def __init__(self, values: Mapping[str, str] | None = None):
        self.values = dict(values or {})

    def collect(self, parameters: ParameterSet) -> Binding:
        return {
            p.name: self.values[p.name]
            for p in parameters
            if p.name in self.values
        }


class StdIOBindingSource:
    """Plain line prompts through input()/print().

    End of input stops collection and returns what was read so far, so a
    script without enough input lines fails with UnboundParameterError.
    Ctrl+C cancels the whole collection.
    """

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self.input_fn = input_fn
        self.output_fn = output_fn

    def collect(self, parameters: ParameterSet) -> Binding:
        binding: Binding = {}
        if parameters:
            self.output_fn("Enter parameters for command:")
        for param in parameters:
            try:
                binding[param.name] = self.input_fn(f"{prompt_label(param)}: ")
            except EOFError:
                break
            except KeyboardInterrupt:
                raise CollectionAborted(param.name) from None
        return binding


class ChainedBindingSource:
    """Ask each source in turn for the names still unbound.

    Put pre-supplied values first and the interactive source last, so the
    user is only prompted for what is missing, still in set order.
    """

    def __init__(self, *sources):
        self.sources = sources

    def collect(self, parameters: ParameterSet) -> Binding:
        binding: Binding = {}
        for source in self.sources:
            remaining = ParameterSet(p for p in parameters if p.name not in binding)
            if not remaining:
                break
            for name, value in source.collect(remaining).items():
                if name in remaining and name not in binding:
                    binding[name] = value
        return {p.name: binding[p.name] for p in parameters if p.name in binding}


def check_binding(parameters: ParameterSet, binding: Mapping[str, str]) -> None:
    """Raise UnboundParameterError unless every parameter has a value."""
    missing = missing_names(parameters, binding)
    if missing:
        raise UnboundParameterError(missing)


def quote_binding(binding: Mapping[str, str]) -> Binding:
    """Shell-quote every value for literal-value semantics."""
    return {name: shell_quote(value) for name, value in binding.items()}
