# tests/test_params.py
"""
Tests for the placeholder scanner, ParameterSet folding and substitution.
"""

from __future__ import annotations

import pytest

from command_vault.errors import TemplateSyntaxError, UnboundParameterError
from command_vault.params import (
    CommandTemplate,
    Parameter,
    ParameterSet,
    ParameterToken,
    build_parameter_set,
    missing_names,
    parse_parameters,
    preview,
    render,
    substitute,
    tokenize,
)

# ----------------------------------------------------------------
# Tokenizer
# ----------------------------------------------------------------


def test_tokenize_plain_text_has_no_tokens():
    assert tokenize("echo hello") == []
    assert tokenize("") == []


def test_tokenize_records_name_and_span():
    tokens = tokenize("echo @name")

    assert tokens == [ParameterToken(name="name", description=None, start=5, end=10)]


def test_tokenize_description_runs_to_next_whitespace():
    text = "grep @pattern:search term file.txt"
    tokens = tokenize(text)

    assert len(tokens) == 1
    tok = tokens[0]
    assert tok.name == "pattern"
    assert tok.description == "search"
    assert text[tok.start:tok.end] == "@pattern:search"


def test_tokenize_description_at_end_of_string():
    tokens = tokenize("cat @file:Input")

    assert tokens[0].description == "Input"
    assert tokens[0].end == len("cat @file:Input")


def test_tokenize_identifier_stops_at_non_identifier_char():
    tokens = tokenize("cp @src-old @dst.bak")

    assert [t.name for t in tokens] == ["src", "dst"]


def test_tokenize_multiple_tokens_left_to_right():
    tokens = tokenize("git push @remote @branch")

    assert [t.name for t in tokens] == ["remote", "branch"]
    assert tokens[0].end <= tokens[1].start


@pytest.mark.parametrize(
    "text",
    [
        "echo @",
        "echo @ home",
        "echo @1abc",
        "echo @-x",
        "echo @@",
        "price: 5 @ 10",
    ],
)
def test_tokenize_marker_without_identifier_start_is_literal(text):
    assert tokenize(text) == []


def test_tokenize_underscore_may_start_a_name():
    tokens = tokenize("echo @_private @a1_b2")

    assert [t.name for t in tokens] == ["_private", "a1_b2"]


def test_tokenize_escaped_marker_is_literal():
    tokens = tokenize(r"echo \@home @user")

    assert [t.name for t in tokens] == ["user"]


def test_tokenize_empty_description_at_end_is_rejected():
    with pytest.raises(TemplateSyntaxError) as exc:
        tokenize("echo @name:")

    assert exc.value.position == 10
    assert exc.value.template == "echo @name:"


def test_tokenize_empty_description_before_whitespace_is_rejected():
    with pytest.raises(TemplateSyntaxError) as exc:
        tokenize("git commit -m @message: now")

    assert exc.value.position == len("git commit -m @message")
    assert "message" in exc.value.message


def test_syntax_error_pointer_marks_position():
    with pytest.raises(TemplateSyntaxError) as exc:
        tokenize("ls @dir:")

    assert exc.value.pointer() == "ls @dir:\n       ^"


# ----------------------------------------------------------------
# Parameter set
# ----------------------------------------------------------------


def test_parameter_set_empty_without_placeholders():
    params = parse_parameters("ls -la")

    assert len(params) == 0
    assert not params


def test_parameter_set_first_occurrence_order_and_unique_names():
    params = parse_parameters("@b @a @b @c @a")

    assert params.names() == ["b", "a", "c"]


def test_parameter_set_first_non_empty_description_wins():
    params = parse_parameters("@host @user:login @host:target @user:other")

    assert params.description("host") == "target"
    assert params.description("user") == "login"


def test_parameter_set_is_idempotent_over_same_tokens():
    tokens = tokenize("scp @file:local @host:remote:@path @file")

    assert build_parameter_set(tokens) == build_parameter_set(tokens)


def test_parameter_set_rejects_duplicate_names():
    with pytest.raises(ValueError):
        ParameterSet([Parameter("a"), Parameter("a")])


def test_parameter_set_lookup():
    params = parse_parameters("echo @x:first")

    assert "x" in params
    assert "y" not in params
    assert params.get("x") == Parameter("x", "first")
    assert params.get("y") is None


# ----------------------------------------------------------------
# Substitution
# ----------------------------------------------------------------


def test_substitution_is_identity_without_placeholders():
    text = "echo hello | tr a-z A-Z > out.txt"

    assert render(text, {}) == text


def test_substitution_removes_description():
    result = render("git commit -m @message:Summary", {"message": "fix bug"})

    assert result == "git commit -m fix bug"


def test_substitution_multiword_description_keeps_trailing_words():
    # Only the first word after the colon belongs to the placeholder
    result = render("git commit -m @message:Commit message", {"message": "x"})

    assert result == "git commit -m x message"


def test_substitution_repeated_name_binds_every_occurrence():
    result = render("cp @f @f.bak && ls @f:file", {"f": "notes.txt"})

    assert result == "cp notes.txt notes.txt.bak && ls notes.txt"


def test_substitution_uses_original_spans_when_lengths_change():
    text = "@a-@bb-@ccc"
    result = render(text, {"a": "LONG_VALUE", "bb": "", "ccc": "z"})

    assert result == "LONG_VALUE--z"


def test_substitution_is_single_pass():
    result = render("echo @a", {"a": "@b"})

    assert result == "echo @b"


def test_substitution_inserts_values_verbatim():
    result = render("echo @msg", {"msg": "it's $HOME; rm"})

    assert result == "echo it's $HOME; rm"


def test_substitution_keeps_escaped_marker_text():
    assert render(r"echo \@home @user", {"user": "bob"}) == r"echo \@home bob"


def test_retokenizing_output_yields_no_tokens():
    templates = [
        "docker run -it @image:name @cmd",
        "ssh @user -p @port @host:Host",
        "find @dir -name @pattern:glob -delete",
    ]
    for text in templates:
        names = parse_parameters(text).names()
        out = render(text, {n: f"v{i}" for i, n in enumerate(names)})
        assert tokenize(out) == [], out


def test_substitution_unbound_raises_without_output():
    with pytest.raises(UnboundParameterError) as exc:
        render("scp @src @host:@dst @dst", {"src": "a.txt"})

    assert exc.value.missing == ("host", "dst")
    assert exc.value.name == "host"


def test_substitution_none_value_counts_as_missing():
    with pytest.raises(UnboundParameterError):
        substitute("echo @a", tokenize("echo @a"), {"a": None})


def test_missing_names_deduplicates():
    tokens = tokenize("@a @b @a @c")

    assert missing_names(tokens, {"b": "1"}) == ["a", "c"]


# ----------------------------------------------------------------
# Preview
# ----------------------------------------------------------------


def test_preview_shows_unbound_names_without_descriptions():
    text = "git checkout -b @branch:name @base"

    assert preview(text, {}) == "git checkout -b @branch @base"
    assert preview(text, {"branch": "feat"}) == "git checkout -b feat @base"


# ----------------------------------------------------------------
# CommandTemplate
# ----------------------------------------------------------------


def test_command_template_parse_and_substitute():
    tpl = CommandTemplate.parse("kubectl logs @pod:name -n @ns")

    assert tpl.has_parameters
    assert tpl.parameters.names() == ["pod", "ns"]
    assert tpl.substitute({"pod": "web-1", "ns": "prod"}) == "kubectl logs web-1 -n prod"


def test_command_template_tokens_derived_on_construction():
    tpl = CommandTemplate("echo @x")

    assert tpl.tokens == tuple(tokenize("echo @x"))


def test_command_template_is_immutable():
    tpl = CommandTemplate.parse("echo hi")

    with pytest.raises(AttributeError):
        tpl.text = "other"  # type: ignore[misc]


def test_command_template_syntax_error_on_parse():
    with pytest.raises(TemplateSyntaxError):
        CommandTemplate.parse("rm @path:")
