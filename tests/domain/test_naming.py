from __future__ import annotations

import pytest

from cookdex.domain.errors import InvalidArgumentError, InvalidNameError
from cookdex.domain.naming import normalize_name, normalize_names


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Tomato", "tomato"),
        ("  Brown  Sugar ", "brown  sugar"),
        ("\tCRÈME fraîche\n", "crème fraîche"),
    ],
)
def test_normalize_name_lowercases_and_trims(raw: str, expected: str) -> None:
    assert normalize_name(raw) == expected


def test_normalize_name_is_idempotent() -> None:
    once = normalize_name("  Smoked PAPRIKA ")
    assert normalize_name(once) == once


@pytest.mark.parametrize("raw", [None, "", "   ", "\t\n"])
def test_normalize_name_rejects_blank(raw: str | None) -> None:
    with pytest.raises(InvalidNameError):
        normalize_name(raw)


def test_invalid_name_is_an_invalid_argument() -> None:
    with pytest.raises(InvalidArgumentError):
        normalize_name(" ")


def test_normalize_names_collapses_duplicates() -> None:
    assert normalize_names(["Basil", " basil", "Thai Basil"]) == {"basil", "thai basil"}
