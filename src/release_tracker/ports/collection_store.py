from __future__ import annotations

from abc import ABC, abstractmethod

from release_tracker.domain.collection import Collection, StoredCollection
from release_tracker.domain.movie import CacheKey


class CollectionStore(ABC):
    """
    Port for the table of cached collections, keyed by CacheKey.

    The store is an optimization layer, not a source of truth: it may be
    dropped and rebuilt at any time. Only the warmer (``replace``) and the
    expander (``commit_expansion``) write collections.
    """

    @abstractmethod
    def get(self, cache_key: CacheKey) -> StoredCollection | None: ...

    @abstractmethod
    def replace(
        self, cache_key: CacheKey, collection: Collection, refreshed_at: float
    ) -> StoredCollection:
        """
        Store a fully rebuilt collection.

        Resets freshness (``refreshed_at``) and expansion state, and bumps the
        generation so in-flight expansions of the previous collection are discarded.
        """
        ...

    @abstractmethod
    def commit_expansion(
        self,
        cache_key: CacheKey,
        collection: Collection,
        generation: int,
        expanded_at: float,
        expires_at: float,
    ) -> StoredCollection | None:
        """
        Store a grown collection if ``generation`` is still current.

        Returns:
            The new entry, or None if the key was rebuilt or evicted meanwhile
        """
        ...

    @abstractmethod
    def reset_expansion(self, cache_key: CacheKey) -> StoredCollection | None: ...

    @abstractmethod
    def delete(self, cache_key: CacheKey) -> bool: ...

    @abstractmethod
    def items(self) -> list[tuple[CacheKey, StoredCollection]]: ...
