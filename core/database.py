"""
Database engine and session management using SQLAlchemy.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from core.catalog.models import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine and hands out sessions"""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        connect_args = {}
        if database_url.startswith("sqlite"):
            # Sessions are used from FastAPI's threadpool
            connect_args["check_same_thread"] = False

        self.engine = create_engine(database_url, echo=echo, connect_args=connect_args)
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def create_tables(self) -> None:
        """Create all tables if they do not exist"""
        Base.metadata.create_all(self.engine)
        logger.info(f"Database ready: {self.engine.url.render_as_string(hide_password=True)}")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session scope that rolls back on error"""
        session = self.session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
