"""
Database configuration and session management.
"""

from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool
from typing import Generator, Dict, Any
import os
import logging

# Import all models to ensure they are registered with SQLModel
from autoquote.models import Policy, Payment, Document, PolicyEvent, Claim, IdempotencyKey

logger = logging.getLogger("autoquote")

# Database URL - defaults to SQLite for development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./autoquote.db")


def _engine_options(url: str) -> Dict[str, Any]:
    """SQLite needs cross-thread access; in-memory SQLite must share one connection."""
    if not url.startswith("sqlite"):
        return {}
    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


# Create engine
engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))


def create_db_and_tables():
    """Create database tables."""
    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    """Get database session."""
    with Session(engine) as session:
        yield session


def initialize_database():
    """Initialize database tables."""
    logger.info(f"Creating database tables | url={engine.url.render_as_string(hide_password=True)}")
    create_db_and_tables()
    logger.info("Database initialization complete")
