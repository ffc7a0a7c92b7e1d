"""Database engine, per-connection SQLite settings and session dependency."""

from sqlalchemy import event
from sqlmodel import SQLModel, Session, create_engine

from evite.config import settings

# Registers the invitation and response tables on SQLModel.metadata
import evite.models  # noqa: F401

engine = create_engine(
    f"sqlite:///{settings.db_path}",
    echo=settings.debug,
    connect_args={"check_same_thread": False},
)


@event.listens_for(engine, "connect")
def _configure_connection(dbapi_connection, connection_record):
    """foreign_keys and synchronous are per-connection settings in SQLite."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def init_db() -> None:
    """Create the invitations/responses tables and switch the file to WAL.

    journal_mode is stored in the database file, so one connection is enough.
    """
    SQLModel.metadata.create_all(engine)

    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA journal_mode=WAL")
        conn.commit()


def get_session():
    """FastAPI dependency: one session per request."""
    with Session(engine) as session:
        yield session
