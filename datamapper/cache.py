"""Result caching: the ResultCache protocol and an in-process implementation."""

import logging
import time
from typing import Any, Iterable, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ResultCache(Protocol):
    """Tagged key/value store for raw query results.

    ``load`` returns None on a miss, so None itself cannot be cached.
    """

    def load(self, key: str) -> Any:
        ...

    def save(self, key: str, value: Any, tags: Iterable[str] = (), expire: Optional[float] = None) -> None:
        ...

    def clean(self, tags: Iterable[str]) -> None:
        """Drop every entry saved with at least one of ``tags``."""
        ...


class MemoryResultCache:
    """ResultCache kept in a dict, with tag invalidation and optional expiry.

    Args:
        namespace: Prefix of every stored key, so several mappers can share a store.
        clock: Function returning the current time in seconds (monotonic by default).
    """

    def __init__(self, namespace: str = "MapperResult", clock=time.monotonic):
        self.namespace = namespace
        self._clock = clock
        self._entries: dict[str, tuple[Any, Optional[float]]] = {}
        self._tags: dict[str, set[str]] = {}

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def load(self, key: str) -> Any:
        entry = self._entries.get(self._key(key))
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._entries[self._key(key)]
            return None
        return value

    def save(self, key: str, value: Any, tags: Iterable[str] = (), expire: Optional[float] = None) -> None:
        stored_key = self._key(key)
        expires_at = None if expire is None else self._clock() + expire
        self._entries[stored_key] = (value, expires_at)
        for tag in tags:
            self._tags.setdefault(tag, set()).add(stored_key)

    def clean(self, tags: Iterable[str]) -> None:
        tags = tuple(tags)
        for tag in tags:
            for stored_key in self._tags.pop(tag, ()):
                self._entries.pop(stored_key, None)
        logger.debug("Cleaned result cache tags %s", tags)

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["ResultCache", "MemoryResultCache"]
