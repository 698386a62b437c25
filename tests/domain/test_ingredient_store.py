from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from cookdex.domain.errors import (
    AliasConflictError,
    HasReferencesError,
    InvalidArgumentError,
    InvalidNameError,
    NameConflictError,
    NotFoundError,
)
from cookdex.domain.ingredients import IngredientStore
from tests.helpers.catalog import (
    add_cookbook,
    add_ingredient,
    add_recipe,
    assert_names_disjoint,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from cookdex.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork

    UowFactory = Callable[[], SqlAlchemyCatalogUnitOfWork]

FIXED_NOW = datetime(2024, 5, 1, 12, tzinfo=UTC)


@pytest.fixture
def store(sqlite_unit_of_work: UowFactory) -> IngredientStore:
    return IngredientStore(unit_of_work_factory=sqlite_unit_of_work, clock=lambda: FIXED_NOW)


def test_create_normalizes_name_and_aliases(store: IngredientStore) -> None:
    created = store.create(
        "  Coriander ",
        aliases=["Cilantro", "cilantro "],
        available_months=[6, 7],
    )

    detail = store.detail(created.id)

    assert detail.name == "coriander"
    assert detail.aliases == ("cilantro",)
    assert detail.available_months == (6, 7)
    assert detail.recipe_count == 0
    assert detail.created_at == FIXED_NOW


def test_create_rejects_blank_name(store: IngredientStore) -> None:
    with pytest.raises(InvalidNameError):
        store.create("   ")


def test_create_rejects_name_used_as_alias(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    add_ingredient(sqlite_unit_of_work, "courgette", aliases=["zucchini"])

    with pytest.raises(NameConflictError):
        store.create("Zucchini")
    with pytest.raises(NameConflictError):
        store.create("courgette")


def test_create_rejects_alias_owned_elsewhere(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    add_ingredient(sqlite_unit_of_work, "courgette", aliases=["zucchini"])

    with pytest.raises(AliasConflictError):
        store.create("baby marrow", aliases=["zucchini"])
    with pytest.raises(AliasConflictError):
        store.create("baby marrow", aliases=["courgette"])

    assert store.find("baby marrow") is None
    assert_names_disjoint(sqlite_unit_of_work)


def test_rename_onto_alias_of_other_ingredient_conflicts(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    add_ingredient(sqlite_unit_of_work, "tomato", aliases=["love apple"])
    other = add_ingredient(sqlite_unit_of_work, "aubergine")

    with pytest.raises(NameConflictError):
        store.rename(other.id, "Love Apple")

    assert store.detail(other.id).name == "aubergine"
    assert_names_disjoint(sqlite_unit_of_work)


def test_rename_onto_own_alias_conflicts(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "aubergine", aliases=["eggplant"])

    with pytest.raises(NameConflictError):
        store.rename(ingredient.id, "eggplant")


def test_rename_to_free_name(store: IngredientStore, sqlite_unit_of_work: UowFactory) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "aubergine")

    renamed = store.rename(ingredient.id, " Brinjal ")

    assert renamed.name == "brinjal"
    assert store.find("brinjal") is not None
    assert store.find("aubergine") is None


def test_set_aliases_replaces_set(store: IngredientStore, sqlite_unit_of_work: UowFactory) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "coriander", aliases=["cilantro", "dhania"])

    store.set_aliases(ingredient.id, ["Cilantro", "chinese parsley"])

    assert store.detail(ingredient.id).aliases == ("chinese parsley", "cilantro")
    assert store.find("dhania") is None


def test_set_aliases_conflict_leaves_state_unchanged(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    add_ingredient(sqlite_unit_of_work, "courgette", aliases=["zucchini"])
    ingredient = add_ingredient(sqlite_unit_of_work, "squash", aliases=["gourd"])

    with pytest.raises(AliasConflictError):
        store.set_aliases(ingredient.id, ["pumpkin", "zucchini"])

    assert store.detail(ingredient.id).aliases == ("gourd",)


def test_update_ingredient_applies_everything_together(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "scallion", aliases=["green onion"])

    detail = store.update_ingredient(
        ingredient.id,
        name="Spring Onion",
        aliases=["Onion Greens ", "green onion"],
        available_months=[3, 4, 5],
    )

    assert detail.name == "spring onion"
    assert detail.aliases == ("green onion", "onion greens")
    assert detail.available_months == (3, 4, 5)
    assert detail.updated_at == FIXED_NOW
    assert_names_disjoint(sqlite_unit_of_work)


def test_update_ingredient_rejects_invalid_months(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "scallion", months=[4])

    with pytest.raises(InvalidArgumentError):
        store.update_ingredient(ingredient.id, name="leek", available_months=[4, 13])

    detail = store.detail(ingredient.id)
    assert detail.name == "scallion"
    assert detail.available_months == (4,)


def test_update_ingredient_rejects_alias_equal_to_new_name(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "scallion")

    with pytest.raises(AliasConflictError):
        store.update_ingredient(ingredient.id, name="leek", aliases=["Leek"])


def test_update_ingredient_cannot_promote_own_alias(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "aubergine", aliases=["eggplant"])

    with pytest.raises(NameConflictError):
        store.update_ingredient(ingredient.id, name="eggplant", aliases=["aubergine"])

    detail = store.detail(ingredient.id)
    assert detail.name == "aubergine"
    assert detail.aliases == ("eggplant",)


def test_set_available_months(store: IngredientStore, sqlite_unit_of_work: UowFactory) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "asparagus", months=[4, 5])

    store.set_available_months(ingredient.id, [5, 6])

    assert store.detail(ingredient.id).available_months == (5, 6)


def test_delete_refuses_referenced_ingredient(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "saffron")
    cookbook = add_cookbook(sqlite_unit_of_work)
    add_recipe(sqlite_unit_of_work, cookbook.id, "Paella", 88, [ingredient.id])

    with pytest.raises(HasReferencesError) as exc:
        store.delete(ingredient.id)

    assert exc.value.recipe_count == 1
    assert store.count_recipes(ingredient.id) == 1


def test_delete_unreferenced_ingredient(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "saffron", aliases=["zafferano"], months=[10])

    store.delete(ingredient.id)

    with pytest.raises(NotFoundError):
        store.detail(ingredient.id)
    assert store.find("zafferano") is None


def test_unknown_ingredient_is_not_found(store: IngredientStore) -> None:
    with pytest.raises(NotFoundError):
        store.rename(uuid4(), "anything")
    with pytest.raises(NotFoundError):
        store.delete(uuid4())


def test_detail_previews_five_recipes_with_cookbook_title(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    garlic = add_ingredient(sqlite_unit_of_work, "garlic")
    cookbook = add_cookbook(sqlite_unit_of_work, "Plenty")
    for page in range(1, 8):
        add_recipe(sqlite_unit_of_work, cookbook.id, f"Dish {page}", page, [garlic.id])

    detail = store.detail(garlic.id)

    assert detail.recipe_count == 7
    assert len(detail.recipes) == 5
    assert {recipe.cookbook_title for recipe in detail.recipes} == {"Plenty"}


def test_find_resolves_aliases(store: IngredientStore, sqlite_unit_of_work: UowFactory) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "courgette", aliases=["zucchini"])

    found = store.find(" ZUCCHINI ")

    assert found is not None
    assert found.id == ingredient.id


def test_aliases_by_prefix(store: IngredientStore, sqlite_unit_of_work: UowFactory) -> None:
    add_ingredient(sqlite_unit_of_work, "coriander", aliases=["cilantro", "chinese parsley"])
    add_ingredient(sqlite_unit_of_work, "chili", aliases=["chilli", "chile"])

    assert store.aliases_by_prefix("Chi") == ["chile", "chilli", "chinese parsley"]
    assert store.aliases_by_prefix("chi", limit=1) == ["chile"]
    assert store.aliases_by_prefix("  ") == []


def test_update_ingredient_cannot_demote_current_name_to_alias(
    store: IngredientStore, sqlite_unit_of_work: UowFactory
) -> None:
    ingredient = add_ingredient(sqlite_unit_of_work, "scallion")

    with pytest.raises(AliasConflictError):
        store.update_ingredient(ingredient.id, name="spring onion", aliases=["scallion"])

    assert store.detail(ingredient.id).name == "scallion"
