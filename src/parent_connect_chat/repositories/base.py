"""Base key-value storage interface."""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional


class KeyValueStorage(ABC):
    """Abstract base class for the store's durable key-value storage.

    Keys are namespaced strings such as ``"messages:evt1"``. Scalar values
    live under ``get``/``set``; ordered logs live under ``append``/``get_list``.
    Every single call is applied as one unit. ``transaction()`` groups several
    calls so that they all land or none do.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._owner: Optional["asyncio.Task[Any]"] = None

    @asynccontextmanager
    async def _locked(self) -> AsyncIterator[bool]:
        """Hold the storage lock. Yields True if this call acquired it."""
        task = asyncio.current_task()
        if task is not None and self._owner is task:
            yield False
            return
        async with self._lock:
            self._owner = task
            try:
                yield True
            finally:
                self._owner = None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Apply every write in the block together, or none of them.

        Nested transactions from the owning task join the outer one.
        """
        async with self._locked() as outermost:
            if not outermost:
                yield
                return
            await self._begin()
            try:
                yield
                await self._commit()
            except BaseException:
                await self._rollback()
                raise

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a scalar value."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a scalar value, overwriting any previous one."""
        pass

    @abstractmethod
    async def increment(self, key: str, amount: int = 1) -> int:
        """Add ``amount`` to an integer value (missing counts as 0)."""
        pass

    @abstractmethod
    async def append(self, key: str, value: Any) -> int:
        """Append a value to an ordered log. Returns the new log length."""
        pass

    @abstractmethod
    async def get_list(self, key: str) -> List[Any]:
        """Get an ordered log, oldest first. Missing logs are empty."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying resources."""
        pass

    @abstractmethod
    async def _begin(self) -> None:
        pass

    @abstractmethod
    async def _commit(self) -> None:
        pass

    @abstractmethod
    async def _rollback(self) -> None:
        pass
