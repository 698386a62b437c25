from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import pytest

import cookdex.domain.ingest_pipeline.gate as gate_module
from cookdex.domain.errors import AlreadyRunningError, HasReferencesError
from cookdex.domain.ingest_pipeline import ConfirmedEntry, JobStatusGate, confirm_import
from cookdex.domain.ingest_pipeline.confirmation import (
    _IngredientResolver,  # type: ignore[reportPrivateUsage]
)
from cookdex.domain.ingredients import IngredientStore
from cookdex.domain.locking import IdentityLocks
from cookdex.domain.merge import MergeEngine
from cookdex.domain.model import IngestionStatus
from tests.helpers.catalog import (
    add_cookbook,
    add_ingredient,
    add_pages,
    orphan_references,
    recipe_ingredient_ids,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from cookdex.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork
    from cookdex.domain.model import Ingredient

    UowFactory = Callable[[], SqlAlchemyCatalogUnitOfWork]

BLOCKED_WAIT = 0.3


class RaceWhileResolving:
    """Run ``action`` in a thread once confirmation has resolved ``name``.

    The thread is given a short head start; ``blocked`` records whether it was
    still waiting when confirmation carried on.
    """

    def __init__(self, name: str, action: Callable[[], object]) -> None:
        self.name = name
        self.errors: list[Exception] = []
        self.blocked: bool | None = None
        self.thread = threading.Thread(target=self._run, args=(action,))

    def _run(self, action: Callable[[], object]) -> None:
        try:
            action()
        except Exception as exc:  # noqa: BLE001
            self.errors.append(exc)

    def install(self, monkeypatch: pytest.MonkeyPatch) -> None:
        original = _IngredientResolver.resolve

        def resolve(resolver: _IngredientResolver, name: str) -> Ingredient:
            ingredient = original(resolver, name)
            if name == self.name and self.blocked is None:
                self.thread.start()
                self.thread.join(timeout=BLOCKED_WAIT)
                self.blocked = self.thread.is_alive()
            return ingredient

        monkeypatch.setattr(_IngredientResolver, "resolve", resolve)

    def finish(self) -> None:
        self.thread.join(timeout=10)
        assert not self.thread.is_alive()


def _recipe_id(uow_factory: UowFactory, cookbook_id: UUID, name: str, page: int) -> UUID:
    with uow_factory() as uow:
        recipe = uow.repositories.recipes.find(cookbook_id, name, page)
        assert recipe is not None
        return recipe.id


def test_merge_waits_for_confirmation_and_moves_its_references(
    sqlite_file_unit_of_work: UowFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    uow_factory = sqlite_file_unit_of_work
    locks = IdentityLocks()
    basil = add_ingredient(uow_factory, "basil")
    thai_basil = add_ingredient(uow_factory, "thai basil")
    cookbook = add_cookbook(uow_factory)
    engine = MergeEngine(unit_of_work_factory=uow_factory, locks=locks)
    race = RaceWhileResolving("thai basil", lambda: engine.merge(basil.id, [thai_basil.id]))
    race.install(monkeypatch)

    confirm_import(
        cookbook.id,
        [ConfirmedEntry("Green Curry", 88, "thai basil")],
        unit_of_work_factory=uow_factory,
        locks=locks,
    )
    race.finish()

    assert race.blocked is True
    assert race.errors == []
    assert orphan_references(uow_factory) == 0
    recipe_id = _recipe_id(uow_factory, cookbook.id, "Green Curry", 88)
    assert recipe_ingredient_ids(uow_factory, recipe_id) == {basil.id}
    store = IngredientStore(unit_of_work_factory=uow_factory, locks=locks)
    assert "thai basil" in store.detail(basil.id).aliases


def test_delete_waits_for_confirmation_and_sees_the_new_reference(
    sqlite_file_unit_of_work: UowFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    uow_factory = sqlite_file_unit_of_work
    locks = IdentityLocks()
    sumac = add_ingredient(uow_factory, "sumac")
    cookbook = add_cookbook(uow_factory)
    store = IngredientStore(unit_of_work_factory=uow_factory, locks=locks)
    race = RaceWhileResolving("sumac", lambda: store.delete(sumac.id))
    race.install(monkeypatch)

    confirm_import(
        cookbook.id,
        [ConfirmedEntry("Fattoush", 54, "sumac")],
        unit_of_work_factory=uow_factory,
        locks=locks,
    )
    race.finish()

    assert race.blocked is True
    assert len(race.errors) == 1
    assert isinstance(race.errors[0], HasReferencesError)
    assert orphan_references(uow_factory) == 0
    recipe_id = _recipe_id(uow_factory, cookbook.id, "Fattoush", 54)
    assert recipe_ingredient_ids(uow_factory, recipe_id) == {sumac.id}


def test_run_started_during_confirmation_survives(
    sqlite_file_unit_of_work: UowFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    uow_factory = sqlite_file_unit_of_work
    cookbook = add_cookbook(uow_factory)
    add_pages(uow_factory, cookbook.id, 1)
    gate = JobStatusGate(uow_factory)
    original = gate_module.current_status
    started: list[bool] = []

    def status_then_start(
        cookbooks: object,
        cookbook_id: UUID,
    ) -> tuple[IngestionStatus, str | None]:
        state = original(cookbooks, cookbook_id)  # type: ignore[arg-type]
        if not started:
            started.append(True)
            gate.start(cookbook_id)
        return state

    monkeypatch.setattr(gate_module, "current_status", status_then_start)

    with pytest.raises(AlreadyRunningError):
        confirm_import(
            cookbook.id,
            [ConfirmedEntry("Shakshuka", 61, "egg")],
            unit_of_work_factory=uow_factory,
        )

    assert started == [True]
    assert gate.snapshot(cookbook.id).status is IngestionStatus.PROCESSING
    with uow_factory() as uow:
        assert uow.repositories.recipes.find(cookbook.id, "Shakshuka", 61) is None
        assert uow.repositories.ingredients.find_by_name("egg") is None
    with pytest.raises(AlreadyRunningError):
        gate.start(cookbook.id)
