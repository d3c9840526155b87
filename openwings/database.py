import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


class Database:
    """Owns the engine and session factory for one application instance.

    Constructed explicitly and handed to ``create_app``; ``open`` runs at
    startup and ``close`` at shutdown.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self.engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self) -> None:
        if self.is_open:
            return

        engine_kwargs: dict = {}
        is_sqlite = self.url.startswith('sqlite')
        if is_sqlite:
            engine_kwargs['connect_args'] = {'check_same_thread': False}
            if ':memory:' in self.url or self.url in {'sqlite://', 'sqlite:///'}:
                engine_kwargs['poolclass'] = StaticPool
        else:
            engine_kwargs['pool_pre_ping'] = True

        self.engine = create_engine(self.url, **engine_kwargs)
        if is_sqlite:
            event.listen(self.engine, 'connect', _enable_sqlite_foreign_keys)

        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )
        logger.info('Database engine opened for %s', self.engine.url.render_as_string(hide_password=True))

    def create_schema(self) -> None:
        from openwings.models import challenge, observation, session, species, user  # noqa: F401

        Base.metadata.create_all(bind=self._require_engine())

    def close(self) -> None:
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self._session_factory = None
        logger.info('Database engine closed')

    def session(self) -> Session:
        self._require_engine()
        return self._session_factory()

    @contextmanager
    def scoped_session(self) -> Iterator[Session]:
        db = self.session()
        try:
            yield db
        finally:
            db.close()

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise RuntimeError('Database is not open. Call Database.open() first.')
        return self.engine


def get_db(request: Request):
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()
