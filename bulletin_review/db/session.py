"""Backing-store initialisation.

``init_store`` is called once when the process starts (see the API
lifespan) and the resulting ``StoreHandle`` is passed by reference to
whatever needs sessions.  There is no module-level engine.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import Engine, create_engine, event, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bulletin_review.db.base import Base

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StoreHandle:
    engine: Engine
    session_factory: sessionmaker

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()


def _engine_kwargs(database_url: str, timeout: float) -> dict:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {
            "pool_pre_ping": True,
            "pool_timeout": timeout,
            "connect_args": {"connect_timeout": int(timeout)},
        }
    kwargs: dict = {"connect_args": {"check_same_thread": False, "timeout": timeout}}
    if url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


def _use_immediate_transactions(engine: Engine) -> None:
    """Have every SQLite transaction take the write lock at BEGIN.

    pysqlite otherwise defers BEGIN to the first write, and two connections
    that both read before writing can deadlock on the upgrade.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def init_store(database_url: str, timeout: float = 10.0) -> StoreHandle:
    engine = create_engine(database_url, **_engine_kwargs(database_url, timeout))
    url = engine.url
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        _use_immediate_transactions(engine)
    session_factory = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    logger.info("Store initialised: backend=%s", engine.url.get_backend_name())
    return StoreHandle(engine=engine, session_factory=session_factory)
