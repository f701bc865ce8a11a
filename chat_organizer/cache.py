"""
Placement cache: passage fingerprint -> node placement.
"""

from typing import Dict, Optional, Set

from .models import CacheEntry


class PlacementCache:
    """Map from passage fingerprint to the latest placement of that text.

    An entry means the exact text was already placed; the pipeline attaches
    to the cached node without embedding again. Entries are never evicted.
    """

    def __init__(self, entries: Optional[Dict[str, CacheEntry]] = None):
        self._entries: Dict[str, CacheEntry] = dict(entries or {})

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._entries

    def lookup(self, fingerprint: str) -> Optional[CacheEntry]:
        return self._entries.get(fingerprint)

    def store(self, fingerprint: str, node_id: str, confidence: float) -> CacheEntry:
        entry = CacheEntry(node_id=node_id, confidence=confidence)
        self._entries[fingerprint] = entry
        return entry

    def node_ids(self) -> Set[str]:
        """Ids of every node some entry points at."""
        return {entry.node_id for entry in self._entries.values()}

    def to_dict(self) -> Dict[str, CacheEntry]:
        return {key: entry.model_copy() for key, entry in self._entries.items()}
