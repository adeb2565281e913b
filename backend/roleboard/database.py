"""Persistent store connection"""
import time
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from roleboard.utils.logger import logger

Base = declarative_base()


class DatabaseConnection:
    """Engine + session factory with a health flag.

    ``is_connected`` is set by :meth:`connect` and read by the storage adapter
    to decide whether the persistent path is usable at all.
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
    ):
        self.database_url = database_url
        if database_url.startswith("sqlite"):
            self.engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
            )
        else:
            self.engine = create_engine(
                database_url,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                pool_pre_ping=True,
            )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.is_connected = False

    def connect(self, create_tables: bool = False) -> None:
        """Verify connectivity (and optionally create tables).

        Raises:
            SQLAlchemyError: if the database is unreachable.
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            if create_tables:
                # Import models so they register on Base.metadata
                import roleboard.models  # noqa: F401
                Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError:
            self.is_connected = False
            raise

        self.is_connected = True
        logger.info("Connected to persistent store", extra={"storage_mode": "persistent"})

    def ping(self) -> float:
        """Run ``SELECT 1`` and return the latency in milliseconds."""
        start = time.time()
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return (time.time() - start) * 1000

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session scope: commit on success, roll back on any error."""
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
        self.is_connected = False
        logger.info("Disconnected from persistent store")
