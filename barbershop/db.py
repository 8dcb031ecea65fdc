# barbershop/db.py

from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session

from .config import get_settings

settings = get_settings()


def build_engine(url: str, **kwargs):
    if url.startswith("sqlite"):
        # required for SQLite + FastAPI
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_engine(url, echo=settings.SQL_ECHO, **kwargs)

        # SQLite leaves foreign keys off unless asked per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(url, echo=settings.SQL_ECHO, pool_pre_ping=True, **kwargs)


# Engine = connection to the database
engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables(bind=None):
    # models must be imported so their tables are registered on the metadata
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
