"""
SQLAlchemy engine/session setup for the SQLite record store.
"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from .settings import settings

logger = logging.getLogger(__name__)

DATABASE_URL = f"sqlite:///{settings.sqlite_path}"

# FastAPI runs sync routes in a threadpool, so one connection may cross threads.
engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def init_db(bind=engine) -> None:
    """Create any missing tables."""
    from . import models  # noqa: F401  (registers WeatherRecord on Base.metadata)

    Base.metadata.create_all(bind=bind)
    logger.info("Record store ready at %s", bind.url)


def get_db():
    """Request-scoped session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
