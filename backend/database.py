# booking-backend/database.py

import logging

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

import config

logger = logging.getLogger(__name__)

# Base class for our SQLAlchemy models
Base = declarative_base()


class Database:
    """
    Owns the engine and session factory for one database.

    The hosting process constructs it at startup and disposes of it at
    shutdown; request handlers only ever see sessions created from it.
    """

    def __init__(self, url: str = None, echo: bool = False):
        self.url = url or config.DATABASE_URL
        connect_args = {}
        if self.url.startswith("sqlite"):
            # SQLite needs check_same_thread off to share connections across threads,
            # and a busy timeout so concurrent writers queue instead of failing
            connect_args = {
                "check_same_thread": False,
                "timeout": config.SQLITE_BUSY_TIMEOUT,
            }

        self.engine = create_engine(
            self.url, connect_args=connect_args, pool_pre_ping=True, echo=echo
        )
        # Each instance of SessionLocal will be a database session.
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info("Database engine created for %s", self.engine.url.render_as_string(hide_password=True))

    def create_tables(self):
        """Create the database tables if they don't exist."""
        # Importing registers the models on Base.metadata
        import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine, checkfirst=True)

    def dispose(self):
        self.engine.dispose()
        logger.info("Database engine disposed")


# Dependency to get a database session
def get_db(request: Request):
    db = request.app.state.database.SessionLocal()
    try:
        yield db
    finally:
        db.close()
