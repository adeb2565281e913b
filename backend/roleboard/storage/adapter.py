"""Dual-mode storage adapter.

Every data-access function is written once against :meth:`Storage.with_database`,
passing two closures: one that runs against a SQLAlchemy session and one that
runs against the :class:`MemoryStore`. The adapter picks the path.

Failure policy (soft degradation):

* persistent mode + healthy connection → run the persistent op; if it raises
  anything other than an :class:`AppError`, log a warning and run the fallback
* memory mode, or persistent unavailable → run the fallback directly
* fallback raises a non-domain exception → :class:`StorageError` (HTTP 500)

Writes that land in the fallback are not durable.
"""
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from sqlalchemy.orm import Session

from roleboard.database import DatabaseConnection
from roleboard.errors import AppError, StorageError
from roleboard.middleware.monitoring import record_storage_fallback
from roleboard.storage.memory import MemoryStore
from roleboard.utils.logger import logger

T = TypeVar("T")

PERSISTENT = "persistent"
MEMORY = "memory"
STORAGE_MODES = (PERSISTENT, MEMORY)


@dataclass
class StorageConfig:
    """Storage configuration injected into :class:`Storage` at construction."""

    mode: str = PERSISTENT
    notification_cap: int = 100

    def __post_init__(self) -> None:
        if self.mode not in STORAGE_MODES:
            raise ValueError(f"mode must be one of: {', '.join(STORAGE_MODES)}")


class Storage:
    """Runs storage operations against the persistent store or the fallback."""

    def __init__(
        self,
        config: StorageConfig,
        connection: Optional[DatabaseConnection] = None,
        memory: Optional[MemoryStore] = None,
    ):
        self.config = config
        self.connection = connection
        self.memory = memory if memory is not None else MemoryStore(config.notification_cap)

    @property
    def mode(self) -> str:
        return self.config.mode

    def demote(self, reason: str) -> None:
        """Switch this storage to memory mode for the rest of the process."""
        if self.config.mode != MEMORY:
            logger.warning(
                f"Storage demoted to memory mode: {reason}",
                extra={"storage_mode": MEMORY},
            )
        self.config.mode = MEMORY

    def persistent_available(self) -> bool:
        return (
            self.config.mode == PERSISTENT
            and self.connection is not None
            and self.connection.is_connected
        )

    def with_database(
        self,
        persistent_op: Callable[[Session], T],
        fallback_op: Callable[[MemoryStore], T],
    ) -> T:
        """Run ``persistent_op`` if possible, otherwise (or on failure) ``fallback_op``."""
        if self.persistent_available():
            try:
                with self.connection.session() as db:
                    return persistent_op(db)
            except AppError:
                raise
            except Exception as exc:
                logger.warning(
                    "Persistent storage operation failed, falling back to memory",
                    extra={"storage_mode": PERSISTENT, "error": str(exc)},
                )
                record_storage_fallback(getattr(persistent_op, "__qualname__", "unknown").split(".")[0])

        return self._run_fallback(fallback_op)

    def _run_fallback(self, fallback_op: Callable[[MemoryStore], T]) -> T:
        try:
            return fallback_op(self.memory)
        except AppError:
            raise
        except Exception as exc:
            logger.error(
                "Fallback storage operation failed",
                extra={"storage_mode": MEMORY, "error": str(exc)},
                exc_info=True,
            )
            raise StorageError("Storage operation failed") from exc
