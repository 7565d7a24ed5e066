import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import get_settings
from .logging import get_logger

_log = get_logger(__name__)

SQLALCHEMY_DATABASE_URL = get_settings().database_url

connect_args = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # FastAPI may hand the session to a different worker thread
    connect_args = {"check_same_thread": False}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args, pool_pre_ping=True
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with foreign key enforcement turned off
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def init_db(bind=None):
    """Create all tables that do not exist yet."""
    from . import models  # noqa: F401  registers the mapped classes

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    _log.info("Database schema ready on {}", bind.url.render_as_string(hide_password=True))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
