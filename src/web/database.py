"""
Database session management for the News Aggregator API.

Provides SQLAlchemy engine, session factory, and FastAPI dependencies
with SQLite-specific optimizations (WAL mode, foreign keys enforcement).
"""
from typing import Generator
from sqlalchemy import create_engine, event, Engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from pathlib import Path

from src.web.config import settings


def _create_engine(database_url: str) -> Engine:
    url = make_url(database_url)

    if url.get_backend_name() != "sqlite":
        return create_engine(database_url, echo=False)

    # Make sure the directory of a file-backed SQLite database exists
    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(
        database_url,
        connect_args={"check_same_thread": False},  # Allow multi-threading
        poolclass=StaticPool,  # Reuse single connection for SQLite
        echo=False,  # Set to True for SQL debugging
    )


engine = _create_engine(settings.database_url)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """
    Set SQLite pragmas for optimal performance and data integrity.

    Called automatically when a new connection is established.

    Pragmas:
    - foreign_keys=ON: Enforce foreign key constraints
    - journal_mode=WAL: Write-Ahead Logging for better concurrency
    - synchronous=NORMAL: Balance between safety and performance
    """
    if not type(dbapi_conn).__module__.startswith("sqlite3"):
        return
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


# Session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def init_db() -> None:
    """Create all tables that don't exist yet."""
    from src.web.models import Base

    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Yields a database session and ensures it's closed after use.
    Use in route functions with Depends(get_db).

    Example:
        @app.get("/preferences")
        def get_preferences(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_test_db() -> Generator[Session, None, None]:
    """
    Test database session factory.

    Creates an in-memory SQLite database for testing.
    Each test gets a fresh database with all tables created.

    Example:
        @pytest.fixture
        def db():
            yield from get_test_db()
    """
    from src.web.models import Base

    test_engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    Base.metadata.create_all(bind=test_engine)

    # Create session
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)
