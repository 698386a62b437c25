from __future__ import annotations

import json
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from cookdex.domain.errors import AliasConflictError
from cookdex.domain.queries import IngredientPage
from cookdex.domain.views import IngredientSummary
from cookdex.ui import cli

if TYPE_CHECKING:
    from pathlib import Path

    from cookdex.domain.ingest_pipeline import ConfirmedEntry
    from cookdex.domain.queries import IngredientFilter


class _StubStore:
    def __init__(self) -> None:
        self.criteria: list[IngredientFilter] = []

    def search(self, criteria: IngredientFilter) -> IngredientPage:
        self.criteria.append(criteria)
        summary = IngredientSummary(
            id=uuid4(),
            name="basil",
            aliases=("thai basil",),
            recipe_count=1,
            available_months=(6, 7),
        )
        return IngredientPage(items=[summary], next_cursor=None, has_more=False)

    def update_ingredient(self, *_: object, **__: object) -> None:
        raise AliasConflictError("basil")


def test_invalid_uuid_exits_with_usage_code() -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["results", "--cookbook-id", "not-a-uuid"])

    assert exc.value.code == 2


def test_unknown_image_type_exits_with_usage_code(tmp_path: Path) -> None:
    image = tmp_path / "page.unknownext"
    image.write_bytes(b"data")

    with pytest.raises(SystemExit) as exc:
        cli.main(["pages", "add", "--cookbook-id", str(uuid4()), str(image)])

    assert exc.value.code == 2


def test_search_emits_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    store = _StubStore()
    monkeypatch.setattr(cli, "build_ingredient_store", lambda: store)

    cli.main(["ingredient", "search", "--query", "bas", "--no-has-aliases", "--limit", "5"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["items"][0]["name"] == "basil"
    assert payload["has_more"] is False
    criteria = store.criteria[0]
    assert criteria.query == "bas"
    assert criteria.has_aliases is False
    assert criteria.limit == 5


def test_domain_conflicts_exit_with_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "build_ingredient_store", _StubStore)

    with pytest.raises(SystemExit) as exc:
        cli.main(["ingredient", "update", "--id", str(uuid4()), "--name", "basil"])

    assert exc.value.code == 1


def test_confirm_reads_entries_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    entries_file = tmp_path / "entries.json"
    entries_file.write_text(
        json.dumps(
            [
                {"recipeName": "Lemon Tart", "pageNumber": 12, "ingredient": "lemon"},
                {"recipeName": "Lemon Tart", "pageNumber": 12, "ingredient": "sand", "keep": False},
            ]
        )
    )
    received: list[ConfirmedEntry] = []

    def fake_confirm(cookbook_id: object, entries: list[ConfirmedEntry]) -> dict[str, int]:
        received.extend(entries)
        _ = cookbook_id
        return {"recipes_created": 1}

    monkeypatch.setattr(cli, "confirm_cookbook_import", fake_confirm)

    cli.main(["confirm", "--cookbook-id", str(uuid4()), str(entries_file)])

    assert [(e.ingredient, e.keep) for e in received] == [("lemon", True), ("sand", False)]
    assert json.loads(capsys.readouterr().out) == {"recipes_created": 1}


def test_confirm_rejects_malformed_entries(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    entries_file = tmp_path / "entries.json"
    entries_file.write_text(json.dumps([{"recipeName": "Lemon Tart"}]))
    monkeypatch.setattr(cli, "confirm_cookbook_import", lambda *_: None)

    with pytest.raises(SystemExit) as exc:
        cli.main(["confirm", "--cookbook-id", str(uuid4()), str(entries_file)])

    assert exc.value.code == 1
