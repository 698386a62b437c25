from __future__ import annotations

from datetime import UTC, datetime

import pytest

from cookdex.domain.errors import AliasConflictError, InvalidArgumentError
from cookdex.domain.model import Ingredient


def test_ingredient_normalizes_name() -> None:
    ingredient = Ingredient(name="  Courgette ")
    assert ingredient.name == "courgette"


def test_add_alias_normalizes_and_deduplicates() -> None:
    ingredient = Ingredient(name="courgette")

    first = ingredient.add_alias("Zucchini")
    second = ingredient.add_alias(" zucchini ")

    assert first is second
    assert ingredient.aliases == frozenset({"zucchini"})
    assert ingredient.has_alias("ZUCCHINI")


def test_alias_cannot_equal_primary_name() -> None:
    ingredient = Ingredient(name="courgette")

    with pytest.raises(AliasConflictError):
        ingredient.add_alias("Courgette")


def test_rename_onto_own_alias_is_rejected() -> None:
    ingredient = Ingredient(name="courgette")
    ingredient.add_alias("zucchini")

    with pytest.raises(AliasConflictError):
        ingredient.rename("Zucchini")
    assert ingredient.name == "courgette"


def test_clear_aliases_returns_removed_names_sorted() -> None:
    ingredient = Ingredient(name="coriander")
    ingredient.add_alias("cilantro")
    ingredient.add_alias("chinese parsley")

    removed = ingredient.clear_aliases()

    assert removed == ("chinese parsley", "cilantro")
    assert ingredient.aliases == frozenset()
    assert ingredient.identity_names == frozenset({"coriander"})


def test_set_available_months_applies_diff() -> None:
    ingredient = Ingredient(name="asparagus")
    ingredient.set_available_months([4, 5, 6])
    kept = [row for row in ingredient._months if row.month == 5]

    ingredient.set_available_months([5, 6, 7])

    assert ingredient.available_months == (5, 6, 7)
    assert [row for row in ingredient._months if row.month == 5] == kept
    assert ingredient.is_available_in(7)
    assert not ingredient.is_available_in(4)


@pytest.mark.parametrize("months", [[0], [13], [1, 12, 14]])
def test_set_available_months_rejects_out_of_range(months: list[int]) -> None:
    ingredient = Ingredient(name="asparagus")

    with pytest.raises(InvalidArgumentError):
        ingredient.set_available_months(months)
    assert ingredient.available_months == ()


def test_touch_sets_created_once() -> None:
    ingredient = Ingredient(name="leek")
    first = datetime(2024, 1, 1, tzinfo=UTC)
    later = datetime(2024, 2, 1, tzinfo=UTC)

    ingredient.touch(first)
    ingredient.touch(later)

    assert ingredient.created_at == first
    assert ingredient.updated_at == later
