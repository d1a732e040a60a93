"""
Passerelle de persistance (SQLAlchemy).
- Database: construit une seule fois (lifespan), puis injecté dans les services.
- fetch_one / fetch_many / execute: SQL paramétré (:nom), jamais d'interpolation de chaînes.
- transaction(): unité de travail atomique exposant les mêmes trois opérations.
Toute SQLAlchemyError est convertie en PersistenceError (rollback déjà effectué).
"""
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional
import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from subsage.errors import PersistenceError
from .schema import init_schema

logger = logging.getLogger(__name__)

Params = Optional[Mapping[str, Any]]


def _make_engine(url: str, echo: bool = False) -> Engine:
    if url.startswith("sqlite"):
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Une seule connexion partagée, sinon chaque checkout voit une base vide
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine
    return create_engine(url, echo=echo, pool_pre_ping=True)


class DbTransaction:
    """Opérations de la passerelle liées à une connexion déjà en transaction."""

    def __init__(self, conn: Connection):
        self._conn = conn

    @property
    def dialect(self) -> str:
        return self._conn.dialect.name

    def fetch_one(self, query: str, params: Params = None) -> Optional[Dict[str, Any]]:
        row = self._conn.execute(text(query), dict(params or {})).mappings().first()
        return dict(row) if row is not None else None

    def fetch_many(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        rows = self._conn.execute(text(query), dict(params or {})).mappings().all()
        return [dict(r) for r in rows]

    def execute(self, query: str, params: Params = None) -> int:
        """Exécute une écriture et retourne le nombre de lignes affectées."""
        result = self._conn.execute(text(query), dict(params or {}))
        return result.rowcount

    def for_update(self) -> str:
        """Suffixe de verrou de ligne (PostgreSQL). SQLite sérialise déjà les écrivains."""
        return " FOR UPDATE" if self.dialect == "postgresql" else ""


class Database:
    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = _make_engine(url, echo=echo)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def init_schema(self) -> None:
        try:
            init_schema(self.engine)
        except SQLAlchemyError as e:
            logger.exception("infra.db.init_schema failed url=%s", self.engine.url.render_as_string(hide_password=True))
            raise PersistenceError() from e

    @contextmanager
    def transaction(self) -> Iterator[DbTransaction]:
        """
        Unité de travail atomique: commit en sortie normale, rollback sur toute exception.
        Les erreurs applicatives (AppError) sont propagées telles quelles.
        """
        try:
            with self.engine.begin() as conn:
                yield DbTransaction(conn)
        except SQLAlchemyError as e:
            logger.exception("infra.db.transaction rolled back")
            raise PersistenceError() from e

    def fetch_one(self, query: str, params: Params = None) -> Optional[Dict[str, Any]]:
        with self.transaction() as tx:
            return tx.fetch_one(query, params)

    def fetch_many(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        with self.transaction() as tx:
            return tx.fetch_many(query, params)

    def execute(self, query: str, params: Params = None) -> int:
        with self.transaction() as tx:
            return tx.execute(query, params)

    def dispose(self) -> None:
        self.engine.dispose()
