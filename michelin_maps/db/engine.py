"""SQLite database engine and session management."""

import os
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

DEFAULT_DATABASE_PATH = "data/michelin.db"
MIGRATIONS_PATH = Path(__file__).resolve().parent / "migrations"

SQLITE_PRAGMAS = [
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA cache_size = 10000",
    "PRAGMA temp_store = MEMORY",
]


class DatabaseError(Exception):
    """Raised when the database cannot be opened or initialized."""


def get_database_url(db_path: Path | str | None = None) -> str:
    """
    Get the SQLite database URL.

    Args:
        db_path: Optional path to the database file. If None, uses
                 DATABASE_URL env var or data/michelin.db.

    Returns:
        SQLite connection URL.
    """
    if db_path is not None:
        path = Path(db_path)
    elif os.environ.get("DATABASE_URL"):
        # Support full URL or just path
        url = os.environ["DATABASE_URL"]
        if url.startswith("sqlite"):
            return url
        path = Path(url)
    else:
        path = Path(DEFAULT_DATABASE_PATH)

    path.parent.mkdir(parents=True, exist_ok=True)

    return f"sqlite:///{path}"


def _apply_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


def create_db_engine(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine for SQLite with the write-ahead log enabled.

    Args:
        db_path: Optional path to the database file.
        echo: If True, log all SQL statements.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = get_database_url(db_path)
    engine = create_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _apply_pragmas)
    return engine


# Global engine and session factory (initialized lazily)
_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def get_engine(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """Get or create the global database engine."""
    global _engine
    if _engine is None:
        _engine = create_db_engine(db_path, echo)
    return _engine


def get_session_factory(db_path: Path | str | None = None) -> sessionmaker:
    """Get or create the global session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        engine = get_engine(db_path)
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return _SessionLocal


def reset_engine() -> None:
    """Reset the global engine and session factory (useful for testing)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def init_db(db_path: Path | str | None = None) -> None:
    """
    Initialize the database by creating all tables.

    Note: In production, use Alembic migrations instead.

    Args:
        db_path: Optional path to the database file.

    Raises:
        DatabaseError: If the schema cannot be created
    """
    from sqlalchemy.exc import SQLAlchemyError

    from michelin_maps.db.models import Base

    try:
        engine = get_engine(db_path)
        Base.metadata.create_all(bind=engine)
    except (SQLAlchemyError, OSError) as e:
        raise DatabaseError(f"Failed to initialize database: {e}") from e


def run_migrations(db_path: Path | str | None = None) -> None:
    """
    Run Alembic migrations to the latest revision.

    The Alembic config is built in code, so no alembic.ini is needed.

    Args:
        db_path: Optional path to the database file.

    Raises:
        DatabaseError: If a migration fails
    """
    from sqlalchemy.exc import SQLAlchemyError

    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    config.set_main_option("sqlalchemy.url", get_database_url(db_path))
    try:
        command.upgrade(config, "head")
    except (SQLAlchemyError, OSError) as e:
        raise DatabaseError(f"Failed to migrate database: {e}") from e
