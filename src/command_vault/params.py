# command-vault — Parameterized Shell Command Vault
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
Parameter templates for stored commands.

Template syntax:
- ``@name`` is a placeholder. The name starts with a letter or underscore
  and continues with letters, digits or underscores.
- ``@name:description`` annotates the placeholder. The description runs to
  the next whitespace character or the end of the string and is removed
  together with the placeholder on substitution.
  A multi-word description such as ``@msg:Commit message`` therefore
  keeps only ``Commit``; the following `` message`` stays in the command
  as literal text. Join words with ``_`` or ``-`` to keep them together.
- ``\\@name`` (backslash before the marker) is literal text.
- ``@`` not followed by a name start is literal text.

The scanner produces token spans once, up front. Substitution rebuilds the
string from the original text and that span list, so replacement lengths
never disturb later offsets.
"""

from __future__ import annotations

import string
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum, auto

from .errors import TemplateSyntaxError, UnboundParameterError

MARKER = "@"
DESCRIPTION_SEP = ":"
ESCAPE_CHAR = "\\"

_NAME_START = frozenset(string.ascii_letters + "_")
_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")

Binding = dict[str, str]


class ScanState(Enum):
    """States for the placeholder scanner."""
    TEXT = auto()
    ESCAPE = auto()


@dataclass(frozen=True)
class ParameterToken:
    """One placeholder occurrence; ``start``/``end`` is a half-open span."""
    name: str
    description: str | None
    start: int
    end: int


@dataclass(frozen=True)
class Parameter:
    name: str
    description: str | None = None


class ParameterSet:
    """Parameters of a template, unique by name, in first-occurrence order.

    The first non-empty description seen for a name is the canonical one.
    Later occurrences may repeat, change or omit it without effect.
    """

    __slots__ = ("_params", "_index")

    def __init__(self, params: Iterable[Parameter] = ()):
        self._params: tuple[Parameter, ...] = tuple(params)
        self._index: dict[str, Parameter] = {p.name: p for p in self._params}
        if len(self._index) != len(self._params):
            raise ValueError("ParameterSet names must be unique")

    def __len__(self) -> int:
        return len(self._params)

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._params)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __bool__(self) -> bool:
        return bool(self._params)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterSet):
            return NotImplemented
        return self._params == other._params

    def __hash__(self) -> int:
        return hash(self._params)

    def __repr__(self) -> str:
        inner = ", ".join(
            p.name if p.description is None else f"{p.name}:{p.description}"
            for p in self._params
        )
        return f"ParameterSet([{inner}])"

    def names(self) -> list[str]:
        return [p.name for p in self._params]

    def description(self, name: str) -> str | None:
        return self._index[name].description

    def get(self, name: str) -> Parameter | None:
        return self._index.get(name)


# ----------------------------------------------------------------
# Tokenizer
# ----------------------------------------------------------------


def tokenize(text: str) -> list[ParameterToken]:
    """Scan ``text`` left to right and return its placeholder tokens.

    Raises:
        TemplateSyntaxError: if a colon after a name is followed by
            whitespace or the end of the string.
    """
    tokens: list[ParameterToken] = []
    state = ScanState.TEXT
    n = len(text)
    i = 0

    while i < n:
        ch = text[i]

        if state == ScanState.ESCAPE:
            # Escaped character is literal, whatever it is
            state = ScanState.TEXT
            i += 1
            continue

        if ch == ESCAPE_CHAR:
            state = ScanState.ESCAPE
            i += 1
            continue

        if ch != MARKER or i + 1 >= n or text[i + 1] not in _NAME_START:
            i += 1
            continue

        start = i
        j = i + 2
        while j < n and text[j] in _NAME_CHARS:
            j += 1
        name = text[i + 1:j]

        description = None
        if j < n and text[j] == DESCRIPTION_SEP:
            k = j + 1
            while k < n and not text[k].isspace():
                k += 1
            if k == j + 1:
                raise TemplateSyntaxError(
                    f"Empty description for parameter '{name}'",
                    position=j,
                    template=text,
                )
            description = text[j + 1:k]
            j = k

        tokens.append(
            ParameterToken(name=name, description=description, start=start, end=j)
        )
        i = j

    return tokens


# ----------------------------------------------------------------
# Parameter set
# ----------------------------------------------------------------


def build_parameter_set(tokens: Iterable[ParameterToken]) -> ParameterSet:
    """Fold tokens into a ParameterSet (first non-empty description wins)."""
    order: list[str] = []
    descriptions: dict[str, str | None] = {}

    for tok in tokens:
        if tok.name not in descriptions:
            order.append(tok.name)
            descriptions[tok.name] = tok.description or None
        elif descriptions[tok.name] is None and tok.description:
            descriptions[tok.name] = tok.description

    return ParameterSet(Parameter(name, descriptions[name]) for name in order)


def parse_parameters(text: str) -> ParameterSet:
    return build_parameter_set(tokenize(text))


# ----------------------------------------------------------------
# Substitution
# ----------------------------------------------------------------


def missing_names(
    parameters: Iterable[Parameter] | Iterable[ParameterToken],
    binding: Mapping[str, str],
) -> list[str]:
    """Names without a value in ``binding``, first occurrence order."""
    seen: set[str] = set()
    missing: list[str] = []
    for p in parameters:
        if p.name in seen:
            continue
        seen.add(p.name)
        if p.name not in binding or binding[p.name] is None:
            missing.append(p.name)
    return missing


def substitute(
    text: str,
    tokens: list[ParameterToken],
    binding: Mapping[str, str],
) -> str:
    """Replace every token span in ``text`` with its bound value.

    ``tokens`` must be the span list produced by ``tokenize(text)``.
    Values are inserted verbatim: no quoting, no re-scanning.

    Raises:
        UnboundParameterError: if any token name has no value. Nothing is
            substituted in that case.
    """
    missing = missing_names(tokens, binding)
    if missing:
        raise UnboundParameterError(missing)

    parts: list[str] = []
    pos = 0
    for tok in tokens:
        parts.append(text[pos:tok.start])
        parts.append(str(binding[tok.name]))
        pos = tok.end
    parts.append(text[pos:])
    return "".join(parts)


def render(text: str, binding: Mapping[str, str]) -> str:
    """Tokenize and substitute in one call."""
    return substitute(text, tokenize(text), binding)


def preview(text: str, binding: Mapping[str, str]) -> str:
    """Partially substitute ``text`` for display.

    Bound names are replaced; unbound ones are shown as ``@name`` with the
    description dropped. Never raises on missing values.
    """
    parts: list[str] = []
    pos = 0
    for tok in tokenize(text):
        parts.append(text[pos:tok.start])
        value = binding.get(tok.name)
        parts.append(MARKER + tok.name if value is None else str(value))
        pos = tok.end
    parts.append(text[pos:])
    return "".join(parts)


@dataclass(frozen=True)
class CommandTemplate:
    """A raw command string plus its token list. Immutable."""
    text: str
    tokens: tuple[ParameterToken, ...] | None = None

    def __post_init__(self) -> None:
        if self.tokens is None:
            object.__setattr__(self, "tokens", tuple(tokenize(self.text)))

    @classmethod
    def parse(cls, text: str) -> CommandTemplate:
        return cls(text=text, tokens=tuple(tokenize(text)))

    @property
    def parameters(self) -> ParameterSet:
        return build_parameter_set(self.tokens)

    @property
    def has_parameters(self) -> bool:
        return bool(self.tokens)

    def substitute(self, binding: Mapping[str, str]) -> str:
        return substitute(self.text, list(self.tokens), binding)

    def preview(self, binding: Mapping[str, str]) -> str:
        return preview(self.text, binding)
