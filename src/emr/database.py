from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings


def _normalize_database_url(url: str) -> str:
    if url.startswith("postgres://"):
        # SQLAlchemy expects postgresql+psycopg2
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


DATABASE_URL = _normalize_database_url(settings.database_url)


def make_engine(url: str, **engine_kwargs):
    # SQLite requires check_same_thread=False for FastAPI
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}

    new_engine = create_engine(
        url,
        future=True,
        pool_pre_ping=True if not url.startswith("sqlite") else False,
        connect_args=connect_args,
        **engine_kwargs,
    )

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            # SQLite leaves FK enforcement off unless asked per connection
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()
            # Unicode-aware lower(); the built-in one folds ASCII only
            dbapi_connection.create_function(
                "lower", 1, lambda value: value.lower() if isinstance(value, str) else value, deterministic=True
            )

    return new_engine


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
Base = declarative_base()


def init_db(bind=None):
    """Initialize database tables (for SQLite dev mode)."""
    from . import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
