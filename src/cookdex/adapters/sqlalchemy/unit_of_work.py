"""SQLAlchemy-backed unit of work for the cookdex catalog."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cookdex.adapters.sqlalchemy.mappings import start_mappers
from cookdex.adapters.sqlalchemy.migrations import upgrade_head
from cookdex.adapters.sqlalchemy.repositories import (
    SqlAlchemyCookbookRepository,
    SqlAlchemyIngredientRepository,
    SqlAlchemyPageStore,
    SqlAlchemyRecipeRepository,
    SqlAlchemyResultStore,
)
from cookdex.config import get_database_config
from cookdex.domain.ports.unit_of_work import CatalogRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call cookdex.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_uri: str) -> Engine:
    """Create an engine usable from the ingestion worker threads.

    SQLite engines enforce foreign keys on every connection. An in-memory
    SQLite URI gets a ``StaticPool``: all threads then share one connection
    and one transaction, which only suits tests and single-threaded use.
    Concurrent writers need a file database or a server.
    """

    if not database_uri.startswith("sqlite"):
        return create_engine(database_uri, future=True)
    if database_uri.endswith(":memory:"):
        # one shared connection, otherwise every checkout sees an empty database
        engine = create_engine(
            database_uri,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_uri, future=True, connect_args={"check_same_thread": False})
    _enable_sqlite_foreign_keys(engine)
    return engine


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, metadata, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or build_engine(database_uri or get_database_config().uri)
    start_mappers()
    upgrade_head(engine=resolved_engine)
    _STATE.engine = resolved_engine
    log.debug("SQLAlchemy adapter started on %r", resolved_engine.url)


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyCatalogUnitOfWork(BaseSqlAlchemyUnitOfWork[CatalogRepositories]):
    """Unit of work over ingredients, recipes, cookbooks and ingestion state."""

    def _build_repositories(self, session: Session) -> CatalogRepositories:
        return CatalogRepositories(
            ingredients=SqlAlchemyIngredientRepository(session),
            recipes=SqlAlchemyRecipeRepository(session),
            cookbooks=SqlAlchemyCookbookRepository(session),
            pages=SqlAlchemyPageStore(session),
            results=SqlAlchemyResultStore(session),
        )


if TYPE_CHECKING:
    from cookdex.domain.ports.unit_of_work import CatalogUnitOfWork

    _uow_check: CatalogUnitOfWork = SqlAlchemyCatalogUnitOfWork()
