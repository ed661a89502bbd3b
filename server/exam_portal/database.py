"""
Database engine, session factory and declarative base.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from exam_portal.config import settings

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    # SQLite connections are shared with FastAPI's worker threads
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
    connect_args=_connect_args(settings.database_url),
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)
Base = declarative_base()


def get_db():
    """Dependency yielding a session that is closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create tables for every registered model."""
    # Importing the package registers all models on Base.metadata
    import exam_portal.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database ready at %s", (bind or engine).url)


def drop_db(bind=None) -> None:
    import exam_portal.models  # noqa: F401

    Base.metadata.drop_all(bind=bind or engine)
