from __future__ import annotations

import unicodedata
from pathlib import Path

from flask import current_app, g
from sqlalchemy import String, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import GenericFunction
from sqlalchemy.orm import sessionmaker, Session

EXTENSION_KEY = "memorial.db"


class unicode_lower(GenericFunction):
    """``lower()`` that folds non-ASCII letters too (SQLite's built-in only folds A-Z)."""

    type = String()
    inherit_cache = True


@compiles(unicode_lower, "sqlite")
def _sqlite_unicode_lower(element, compiler, **kw):
    return f"unicode_lower({compiler.process(element.clauses, **kw)})"


@compiles(unicode_lower)
def _default_unicode_lower(element, compiler, **kw):
    return f"lower({compiler.process(element.clauses, **kw)})"


def fold_case(value):
    """NFC-normalise and lower-case; registered on SQLite connections as ``unicode_lower``."""
    if value is None:
        return None
    return unicodedata.normalize("NFC", value).lower()


class Database:
    """Engine and session factory owned by one application instance."""

    def __init__(self, database_url: str, echo: bool = False) -> None:
        url = make_url(database_url)
        connect_args = {}
        if url.get_backend_name() == "sqlite":
            connect_args["check_same_thread"] = False
            if url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        self.engine: Engine = create_engine(database_url, echo=echo, connect_args=connect_args)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _configure_sqlite_connection)
            event.listen(self.engine, "begin", _begin_sqlite_transaction)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def create_all(self) -> None:
        from .models import Base
        Base.metadata.create_all(self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def dispose(self) -> None:
        self.engine.dispose()


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest properly under pysqlite.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    dbapi_connection.create_function("unicode_lower", 1, fold_case, deterministic=True)


def _begin_sqlite_transaction(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def get_database(app=None) -> Database:
    """Get the Database handle registered on the (current) app."""
    app = app or current_app
    return app.extensions[EXTENSION_KEY]


def get_engine(app=None) -> Engine:
    return get_database(app).engine


def get_session() -> Session:
    """Get a SQLAlchemy session tied to the Flask app context."""
    if "db_session" not in g:
        g.db_session = get_database().session()
    return g.db_session


def close_session(e=None) -> None:
    """Close the SQLAlchemy session at the end of the request."""
    session = g.pop("db_session", None)
    if session is not None:
        if e is not None:
            session.rollback()
        session.close()


def init_app(app) -> Database:
    """Create the Database for ``app`` and register session teardown."""
    database = Database(app.config["DATABASE_URL"])
    app.extensions[EXTENSION_KEY] = database
    app.teardown_appcontext(close_session)
    return database
