"""Error kinds raised by the inventory and catalog stores."""

import logging
from contextlib import contextmanager
from typing import Iterator

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class CellarbookError(Exception):
    """Base class for store errors."""


class BottleValidationError(CellarbookError):
    """Bottle input failed validation; nothing was written."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class IngestError(CellarbookError):
    """The catalog source could not be read or parsed; the catalog is unchanged."""


class PersistenceError(CellarbookError):
    """The underlying database failed."""


@contextmanager
def persistence_errors(operation: str) -> Iterator[None]:
    """Translate driver errors into PersistenceError."""
    try:
        yield
    except PyMongoError as e:
        logger.error("Database error during %s: %s", operation, e)
        raise PersistenceError(f"Database error during {operation}") from e
