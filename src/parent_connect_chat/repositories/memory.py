"""In-memory storage implementation."""

import copy
from typing import Any, Dict, List, Optional, Tuple

import structlog

from ..domain.errors import PersistenceError
from .base import KeyValueStorage

logger = structlog.get_logger()


class InMemoryStorage(KeyValueStorage):
    """Process-local storage, used as the fake in tests and for ephemeral runs."""

    def __init__(self) -> None:
        """Initialize empty storage."""
        super().__init__()
        self._values: Dict[str, Any] = {}
        self._logs: Dict[str, List[Any]] = {}
        self._snapshot: Optional[Tuple[Dict[str, Any], Dict[str, List[Any]]]] = None
        self._closed = False
        logger.info("storage_initialized", backend="memory")

    def _check_open(self) -> None:
        if self._closed:
            raise PersistenceError("Storage is closed")

    async def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a scalar value."""
        async with self._locked():
            self._check_open()
            if key not in self._values:
                return default
            return copy.deepcopy(self._values[key])

    async def set(self, key: str, value: Any) -> None:
        """Store a scalar value."""
        async with self._locked():
            self._check_open()
            self._values[key] = copy.deepcopy(value)

    async def increment(self, key: str, amount: int = 1) -> int:
        """Add to an integer value."""
        async with self._locked():
            self._check_open()
            value = int(self._values.get(key, 0)) + amount
            self._values[key] = value
            return value

    async def append(self, key: str, value: Any) -> int:
        """Append to an ordered log."""
        async with self._locked():
            self._check_open()
            log = self._logs.setdefault(key, [])
            log.append(copy.deepcopy(value))
            return len(log)

    async def get_list(self, key: str) -> List[Any]:
        """Get an ordered log."""
        async with self._locked():
            self._check_open()
            return copy.deepcopy(self._logs.get(key, []))

    async def close(self) -> None:
        """Mark the storage closed. Later calls fail."""
        self._closed = True
        logger.info("storage_closed", backend="memory")

    async def _begin(self) -> None:
        self._check_open()
        self._snapshot = (copy.deepcopy(self._values), copy.deepcopy(self._logs))

    async def _commit(self) -> None:
        self._snapshot = None

    async def _rollback(self) -> None:
        if self._snapshot is not None:
            self._values, self._logs = self._snapshot
            self._snapshot = None
            logger.warning("transaction_rolled_back", backend="memory")
