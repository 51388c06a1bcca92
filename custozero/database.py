"""Database configuration and session management."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from custozero.exceptions import ConfigurationError, TransientStoreError


# Base class for ORM models
class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


def create_db_engine(database_url: str) -> Engine:
    """Build the process-wide engine.

    Called once from the application lifespan; requests reuse it through
    the session factory stored on ``app.state``.
    """
    if not database_url or not database_url.strip():
        raise ConfigurationError("DATABASE_URL is not configured")

    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=False,
        )

    # Key settings for short request/response transactions:
    # - isolation_level="READ COMMITTED": conditional UPDATEs see committed rows
    # - lock_timeout: a burn racing an upgrade never waits indefinitely
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Enable connection health checks
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,  # Recycle connections after 1 hour
        echo=False,
        isolation_level="READ COMMITTED",
        connect_args={"options": "-c lock_timeout=5000"},
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create the session factory bound to ``engine``."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,  # Prevent lazy loading errors after commit
    )


# Dependency for FastAPI routes
def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    Yields:
        Session: SQLAlchemy database session from the per-process factory

    Example:
        @router.post("/poll-token")
        def poll_token(db: Session = Depends(get_db)):
            return TokenPoller(AccessTokenRepository(db)).poll(email)
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def commit_or_raise(db: Session) -> None:
    """Commit the current transaction, surfacing store failures as retry-safe errors."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise TransientStoreError("Failed to write to the token store") from e
