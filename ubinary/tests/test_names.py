from __future__ import annotations

import pytest

from ubinary.ingest.names import is_valid_identifier, sanitize


@pytest.mark.parametrize("name", ["a", "Current_A", "_private", "x2", "unnamed1"])
def test_legal_identifiers_unchanged(name: str) -> None:
    assert sanitize(name) == name


def test_leading_digit_space_and_punctuation() -> None:
    out = sanitize("2 bad name!")
    assert out == "x2BadName"
    assert not out[0].isdigit()
    assert " " not in out and "!" not in out


def test_whitespace_runs_camel_case() -> None:
    assert sanitize("coil  current\tmain") == "coilCurrentMain"


def test_leading_whitespace_dropped() -> None:
    assert sanitize("   speed") == "speed"


def test_non_word_characters_stripped() -> None:
    assert sanitize("I(A)") == "IA"
    assert sanitize("dt [s]") == "dts"


def test_keyword_gets_prefix_and_capital() -> None:
    assert sanitize("class") == "xClass"
    assert sanitize("None") == "xNone"


def test_empty_and_all_punctuation_become_placeholder() -> None:
    assert sanitize("") == "x"
    assert sanitize("   ") == "x"
    assert sanitize("!!!") == "x"


def test_truncation() -> None:
    long_name = "a" * 100
    assert sanitize(long_name) == "a" * 63
    assert sanitize("b" * 20, max_length=8) == "b" * 8


def test_is_valid_identifier() -> None:
    assert is_valid_identifier("abc")
    assert not is_valid_identifier("for")
    assert not is_valid_identifier("a b")
