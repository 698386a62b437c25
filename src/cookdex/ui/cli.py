from __future__ import annotations

import argparse
import json
import logging
import mimetypes
import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from cookdex.app import (
    add_index_page,
    build_ingredient_store,
    confirm_cookbook_import,
    create_cookbook,
    ingestion_snapshot,
    merge_ingredients,
    run_ingestion,
)
from cookdex.config import configure_logging
from cookdex.domain.errors import InvalidArgumentError
from cookdex.domain.ingest_pipeline import ConfirmedEntry
from cookdex.domain.queries import DEFAULT_PAGE_SIZE, IngredientFilter

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


class ConfirmedEntryPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    recipe_name: str = Field(alias="recipeName")
    page_number: int = Field(alias="pageNumber")
    ingredient: str
    keep: bool = True

    def to_entry(self) -> ConfirmedEntry:
        return ConfirmedEntry(
            recipe_name=self.recipe_name,
            page_number=self.page_number,
            ingredient=self.ingredient,
            keep=self.keep,
        )


_CONFIRMED_ENTRIES = TypeAdapter(list[ConfirmedEntryPayload])


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Index cookbooks by ingredient")
    subparsers = parser.add_subparsers(dest="command", required=True)

    cookbook = subparsers.add_parser("cookbook", help="Cookbook management commands")
    cookbook_sub = cookbook.add_subparsers(dest="cookbook_command", required=True)
    cookbook_create = cookbook_sub.add_parser("create", help="Create a cookbook")
    cookbook_create.add_argument("--title", type=str, required=True, help="Cookbook title")
    cookbook_create.add_argument("--author", type=str, help="Optional author")

    pages = subparsers.add_parser("pages", help="Index page commands")
    pages_sub = pages.add_subparsers(dest="pages_command", required=True)
    pages_add = pages_sub.add_parser("add", help="Upload index page images in the given order")
    pages_add.add_argument("--cookbook-id", type=str, required=True)
    pages_add.add_argument("images", nargs="+", type=Path, help="JPEG or PNG files")

    ingest = subparsers.add_parser("ingest", help="Extract recipe tuples from the index pages")
    ingest.add_argument("--cookbook-id", type=str, required=True)

    results = subparsers.add_parser("results", help="Show ingestion status and pending results")
    results.add_argument("--cookbook-id", type=str, required=True)

    confirm = subparsers.add_parser("confirm", help="Import reviewed results into the catalog")
    confirm.add_argument("--cookbook-id", type=str, required=True)
    confirm.add_argument(
        "entries",
        type=Path,
        help="JSON list of {recipeName, pageNumber, ingredient, keep} objects",
    )

    ingredient = subparsers.add_parser("ingredient", help="Ingredient identity commands")
    ingredient_sub = ingredient.add_subparsers(dest="ingredient_command", required=True)

    show = ingredient_sub.add_parser("show", help="Show an ingredient by id or name")
    show_target = show.add_mutually_exclusive_group(required=True)
    show_target.add_argument("--id", type=str)
    show_target.add_argument("--name", type=str, help="Primary name or alias")

    update = ingredient_sub.add_parser("update", help="Replace name, aliases and months")
    update.add_argument("--id", type=str, required=True)
    update.add_argument("--name", type=str, required=True)
    update.add_argument("--alias", action="append", default=[], dest="aliases")
    update.add_argument("--month", action="append", type=int, default=[], dest="months")

    merge = ingredient_sub.add_parser("merge", help="Merge sources into a target ingredient")
    merge.add_argument("--target", type=str, required=True)
    merge.add_argument("--source", action="append", required=True, dest="sources")

    delete = ingredient_sub.add_parser("delete", help="Delete an unreferenced ingredient")
    delete.add_argument("--id", type=str, required=True)

    search = ingredient_sub.add_parser("search", help="List ingredients")
    search.add_argument("--query", type=str, help="Prefix of a name or alias")
    search.add_argument("--min-recipes", type=int, dest="min_recipe_count")
    search.add_argument(
        "--has-aliases",
        action=argparse.BooleanOptionalAction,
        default=None,
    )
    search.add_argument("--month", type=int, dest="available_in_month")
    search.add_argument("--cursor", type=str)
    search.add_argument("--limit", type=int, default=DEFAULT_PAGE_SIZE)

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _guess_content_type(path: Path) -> str:
    content_type, _ = mimetypes.guess_type(path.name)
    if content_type is None:
        raise ValueError(f"Cannot determine the content type of {path}")
    return content_type


def _load_confirmed_entries(path: Path) -> list[ConfirmedEntry]:
    try:
        payloads = _CONFIRMED_ENTRIES.validate_json(path.read_bytes())
    except ValidationError as exc:
        raise ValueError(f"Invalid confirmation file {path}: {exc}") from exc
    return [payload.to_entry() for payload in payloads]


def _json_default(value: object) -> object:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Cannot serialise {type(value).__name__}")


def _emit(value: object) -> None:
    if is_dataclass(value) and not isinstance(value, type):
        value = asdict(value)
    sys.stdout.write(json.dumps(value, default=_json_default, indent=2) + "\n")


def _validate(args: argparse.Namespace) -> None:
    for name in ("cookbook_id", "id", "target", "cursor"):
        raw = getattr(args, name, None)
        if raw is not None:
            _parse_uuid(raw)
    for raw in getattr(args, "sources", None) or ():
        _parse_uuid(raw)
    for image in getattr(args, "images", None) or ():
        _guess_content_type(image)


def _run_ingredient_command(args: argparse.Namespace) -> None:
    store = build_ingredient_store()
    if args.ingredient_command == "show":
        detail = store.detail(_parse_uuid(args.id)) if args.id else store.find(args.name)
        if detail is None:
            raise LookupError(f"No ingredient named {args.name!r}")
        _emit(detail)
    elif args.ingredient_command == "update":
        _emit(
            store.update_ingredient(
                _parse_uuid(args.id),
                name=args.name,
                aliases=args.aliases,
                available_months=args.months,
            )
        )
    elif args.ingredient_command == "merge":
        target = merge_ingredients(
            _parse_uuid(args.target),
            [_parse_uuid(source) for source in args.sources],
        )
        _emit(store.detail(target.id))
    elif args.ingredient_command == "delete":
        store.delete(_parse_uuid(args.id))
        log.info("Deleted ingredient %s", args.id)
    elif args.ingredient_command == "search":
        page = store.search(
            IngredientFilter(
                query=args.query,
                min_recipe_count=args.min_recipe_count,
                has_aliases=args.has_aliases,
                available_in_month=args.available_in_month,
                cursor=_parse_uuid(args.cursor) if args.cursor else None,
                limit=args.limit,
            )
        )
        _emit(page)
    else:
        raise ValueError(f"Unsupported ingredient command: {args.ingredient_command}")


def _run_command(args: argparse.Namespace) -> None:
    if args.command == "cookbook" and args.cookbook_command == "create":
        cookbook = create_cookbook(args.title, author=args.author)
        _emit({"id": cookbook.id, "title": cookbook.title, "author": cookbook.author})
    elif args.command == "pages" and args.pages_command == "add":
        cookbook_id = _parse_uuid(args.cookbook_id)
        for image in args.images:
            page = add_index_page(cookbook_id, image.read_bytes(), _guess_content_type(image))
            log.info("Stored %s as page %s", image, page.page_order)
    elif args.command == "ingest":
        report = run_ingestion(_parse_uuid(args.cookbook_id))
        _emit(report)
    elif args.command == "results":
        _emit(ingestion_snapshot(_parse_uuid(args.cookbook_id)))
    elif args.command == "confirm":
        summary = confirm_cookbook_import(
            _parse_uuid(args.cookbook_id),
            _load_confirmed_entries(args.entries),
        )
        _emit(summary)
    elif args.command == "ingredient":
        _run_ingredient_command(args)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run_command(parsed_args)
    except InvalidArgumentError:
        log.exception("Invalid input")
        sys.exit(2)
    except Exception:
        log.exception("Command failed")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
