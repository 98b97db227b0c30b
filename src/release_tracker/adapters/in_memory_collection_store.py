from __future__ import annotations

from dataclasses import replace

from release_tracker.domain.collection import (
    Collection,
    CollectionMetadata,
    StoredCollection,
)
from release_tracker.domain.movie import CacheKey
from release_tracker.ports.collection_store import CollectionStore


class InMemoryCollectionStore(CollectionStore):
    """
    Process-local collection table.

    - One entry per CacheKey, no cross-key coordination
    - Entries are immutable snapshots; writers swap whole entries
    - Methods never await, so under asyncio each call is atomic with
      respect to other coroutines
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, StoredCollection] = {}

    def get(self, cache_key: CacheKey) -> StoredCollection | None:
        return self._entries.get(cache_key)

    def replace(
        self, cache_key: CacheKey, collection: Collection, refreshed_at: float
    ) -> StoredCollection:
        previous = self._entries.get(cache_key)
        generation = previous.metadata.generation + 1 if previous else 1

        entry = StoredCollection(
            collection=collection,
            metadata=CollectionMetadata(refreshed_at=refreshed_at, generation=generation),
        )
        self._entries[cache_key] = entry
        return entry

    def commit_expansion(
        self,
        cache_key: CacheKey,
        collection: Collection,
        generation: int,
        expanded_at: float,
        expires_at: float,
    ) -> StoredCollection | None:
        current = self._entries.get(cache_key)
        if current is None or current.metadata.generation != generation:
            return None

        entry = StoredCollection(
            collection=collection,
            metadata=replace(
                current.metadata,
                expansion_level=current.metadata.expansion_level + 1,
                expanded_at=expanded_at,
                expansion_expires_at=expires_at,
            ),
        )
        self._entries[cache_key] = entry
        return entry

    def reset_expansion(self, cache_key: CacheKey) -> StoredCollection | None:
        current = self._entries.get(cache_key)
        if current is None:
            return None

        entry = replace(
            current,
            metadata=replace(
                current.metadata,
                expansion_level=0,
                expanded_at=None,
                expansion_expires_at=None,
            ),
        )
        self._entries[cache_key] = entry
        return entry

    def delete(self, cache_key: CacheKey) -> bool:
        return self._entries.pop(cache_key, None) is not None

    def items(self) -> list[tuple[CacheKey, StoredCollection]]:
        return list(self._entries.items())
