"""Storage adapter (persistent store with in-memory fallback)"""
from sqlalchemy.exc import SQLAlchemyError

from roleboard.database import DatabaseConnection
from roleboard.storage.adapter import MEMORY, PERSISTENT, Storage, StorageConfig
from roleboard.storage.memory import MemoryStore
from roleboard.utils.logger import logger


def build_storage(settings) -> Storage:
    """Create the process-wide :class:`Storage` from settings.

    In persistent mode the database is contacted once; if that fails the
    storage is demoted to memory mode so the service still boots.
    """
    config = StorageConfig(
        mode=settings.STORAGE_MODE,
        notification_cap=settings.MEMORY_NOTIFICATION_CAP,
    )
    if config.mode == MEMORY:
        logger.info("Storage running in memory mode", extra={"storage_mode": MEMORY})
        return Storage(config)

    connection = DatabaseConnection(
        settings.DATABASE_URL,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        pool_recycle=settings.DATABASE_POOL_RECYCLE,
    )
    storage = Storage(config, connection=connection)
    try:
        connection.connect(create_tables=settings.DATABASE_AUTO_CREATE)
    except SQLAlchemyError as exc:
        storage.demote(f"initial connection failed ({exc.__class__.__name__})")
    return storage


__all__ = [
    "MEMORY",
    "PERSISTENT",
    "MemoryStore",
    "Storage",
    "StorageConfig",
    "build_storage",
]
