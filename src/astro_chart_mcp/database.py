"""Database connection and session management for astro-chart-mcp.

The only persisted data is reference data: the city atlas used to turn a
city + country pair into coordinates and an IANA timezone. It is seeded
from CITY_SEED_DATA, so the default database lives in memory; pass a
path to keep (and extend) the atlas on disk.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# SQLAlchemy Base class for all models
Base = declarative_base()


class DatabaseError(Exception):
    """Raised when database operations fail."""
    pass


def create_db_engine(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """
    Create SQLAlchemy engine for the atlas database.

    Args:
        db_path: SQLite file path. None (default) or ":memory:" gives an
            in-memory database shared by every session of this engine.
        echo: If True, log all SQL statements (useful for debugging)

    Returns:
        SQLAlchemy Engine instance
    """
    if db_path is None or str(db_path) == ":memory:":
        # One connection for the whole engine, otherwise each session would
        # see its own empty in-memory database.
        engine = create_engine(
            "sqlite://",
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        path = Path(db_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            f"sqlite:///{path}",
            echo=echo,
            connect_args={"check_same_thread": False},
        )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def create_tables(engine: Engine) -> None:
    """Create all tables registered with Base.metadata."""
    from astro_chart_mcp.models import City  # noqa: F401
    Base.metadata.create_all(engine)


def get_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def get_session(engine: Engine | None = None) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with get_session(engine) as session:
            city = session.query(City).filter_by(country="PT").first()

    Args:
        engine: Optional engine (the module-level engine if not provided)

    Yields:
        SQLAlchemy Session

    Raises:
        DatabaseError: If session operations fail
    """
    if engine is None:
        engine = get_engine()

    SessionFactory = get_session_factory(engine)
    session = SessionFactory()

    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        raise DatabaseError(f"Database operation failed: {e}") from e
    finally:
        session.close()


def initialize_database(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """
    Create the atlas tables and seed them with CITY_SEED_DATA.

    Seeding is idempotent: cities already present (same name key and
    country) are left untouched.

    Example:
        engine = initialize_database()
        with get_session(engine) as session:
            cities = session.query(City).all()
    """
    from astro_chart_mcp.models.city import CITY_SEED_DATA, City

    engine = create_db_engine(db_path, echo)
    create_tables(engine)

    with get_session(engine) as session:
        added = 0
        for row in CITY_SEED_DATA:
            name_key = City.make_name_key(row["name"])
            if not session.query(City).filter_by(name_key=name_key, country=row["country"]).first():
                session.add(City(name_key=name_key, **row))
                added += 1
        session.commit()

    logger.debug("Atlas initialized (%d seed cities added)", added)
    return engine


# Module-level engine, created on first use
_engine: Engine | None = None


def get_engine(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """Get or create the module-level atlas engine."""
    global _engine
    if _engine is None:
        _engine = initialize_database(db_path, echo)
    return _engine
