from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from cookdex.adapters.sqlalchemy.mappings import start_mappers
from cookdex.adapters.sqlalchemy.migrations import upgrade_head
from cookdex.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    build_engine,
    shutdown,
    startup,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = build_engine("sqlite+pysqlite:///:memory:")
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyCatalogUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyCatalogUnitOfWork:
        return SqlAlchemyCatalogUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def sqlite_file_unit_of_work(
    tmp_path: Path,
) -> Iterator[Callable[[], SqlAlchemyCatalogUnitOfWork]]:
    """Unit of work on a SQLite file, one connection per session.

    Use it where threads must run separate transactions.
    """

    startup(database_uri=f"sqlite+pysqlite:///{tmp_path / 'cookdex.db'}", force=True)

    def factory() -> SqlAlchemyCatalogUnitOfWork:
        return SqlAlchemyCatalogUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
