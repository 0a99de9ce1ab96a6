"""In-process store with compare-and-set semantics, for tests and local runs."""

import asyncio
import copy
import logging
from typing import Any, Optional

from ..exceptions import Conflict

logger = logging.getLogger(__name__)


class InMemoryStore:
    """
    Keeps the document in memory behind an asyncio.Lock.

    The version is a monotonic counter, stringified, and stays None until the
    first write. Safe for concurrent coroutines on one event loop only.
    """

    name = "memory"

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._document: Optional[dict[str, Any]] = copy.deepcopy(initial)
        self._counter = 0
        self._version: Optional[str] = "0" if initial is not None else None
        self._lock = asyncio.Lock()

    async def read(self) -> tuple[Optional[dict[str, Any]], Optional[str]]:
        async with self._lock:
            return copy.deepcopy(self._document), self._version

    async def write(self, document: dict[str, Any], version: Optional[str]) -> Optional[str]:
        async with self._lock:
            if version != self._version:
                raise Conflict(
                    f"Version mismatch: expected {version!r}, store is at {self._version!r}",
                    expected=version,
                    actual=self._version,
                )
            self._counter += 1
            self._version = str(self._counter)
            self._document = copy.deepcopy(document)
            logger.debug(f"Stored document version {self._version}")
            return self._version

    async def close(self) -> None:
        pass
