"""
Per-build memoization for facet computations.

Several registration hooks (pages, redirects, attributes, listing UI)
ask for the same derived data about the same item collection. The cache
is keyed by an explicit collection id rather than object identity and
lives for exactly one build.
"""

import logging
from typing import Any, Callable, Dict, Tuple


logger = logging.getLogger(__name__)


class BuildCache:
    """
    Memoize-by-key store scoped to one build invocation.

    Each (collection_id, name) pair is computed at most once. There is no
    eviction; discard the whole cache when the build finishes.
    """

    def __init__(self, generation: int = 0):
        """
        Initialize an empty cache.

        Args:
            generation: Build generation number, folded into collection ids
        """
        self.generation = generation
        self._entries: Dict[Tuple[str, str], Any] = {}
        self.hits = 0
        self.misses = 0

    def collection_id(self, tag: str) -> str:
        """Stable identifier for a tagged collection within this build."""
        return f"{tag}@{self.generation}"

    def get_or_compute(
        self,
        collection_id: str,
        name: str,
        compute: Callable[[], Any]
    ) -> Any:
        """
        Return the cached value for a key, computing it on first request.

        Args:
            collection_id: Identifier from collection_id()
            name: Which derived value (e.g. "attributes", "combinations")
            compute: Zero-argument callable producing the value

        Returns:
            The cached or freshly computed value
        """
        key = (collection_id, name)

        if key in self._entries:
            self.hits += 1
            logger.debug(f"Cache hit for {name} of {collection_id}")
            return self._entries[key]

        self.misses += 1
        logger.debug(f"Computing {name} for {collection_id}")
        value = compute()
        self._entries[key] = value
        return value

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> Dict[str, int]:
        """Hit/miss counters for the build summary."""
        return {
            "entries": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
        }

    def clear(self) -> None:
        """Drop every entry and start a new generation."""
        self._entries.clear()
        self.hits = 0
        self.misses = 0
        self.generation += 1
