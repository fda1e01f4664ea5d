"""
MemoryStrategy interface and the bounded per-agent memory log.

Agents remember observations (conversations, world events, outcomes of their
own actions) as short natural-language entries with an importance score. The
log is owned exclusively by its agent; nothing else mutates it.

Key responsibilities:
- Store entries with a timestamp and importance (1-10)
- Enforce a capacity: when exceeded, the least important entries are forgotten
- Render recent entries for prompt construction
- Lightweight keyword retrieval for context-aware prompts

Eviction order is explicit: lowest importance goes first, and among equal
importance the older entry goes first. Survivors keep chronological order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .config import Config
from .schemas import MemoryEntry


class MemoryStrategy(ABC):
    """
    Abstract base class for agent memory systems.

    Implementations decide how entries are stored, forgotten and retrieved.
    The agent only relies on this interface, so a retrieval-heavy strategy can
    replace the default log without touching the behavior FSM.
    """

    @abstractmethod
    def add(
        self, text: str, importance: int = 3, timestamp: Optional[datetime] = None
    ) -> MemoryEntry:
        """
        Record a memory.

        Args:
            text: Memory content (natural language)
            importance: Importance score 1-10, clamped
            timestamp: When it happened (defaults to now)

        Returns:
            The stored MemoryEntry
        """
        pass

    @abstractmethod
    def recent(self, limit: int = 10) -> List[MemoryEntry]:
        """Return the ``limit`` most recent entries in chronological order."""
        pass

    @abstractmethod
    def relevant(self, query: str, limit: int = 5) -> List[MemoryEntry]:
        """Return entries relevant to ``query``, best first."""
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class MemoryLog(MemoryStrategy):
    """Importance-bounded memory log.

    Entries are kept in insertion order. When the log grows past
    ``max_entries`` the entries are ranked by (importance, recency) and the
    bottom of the ranking is dropped.
    """

    def __init__(self, max_entries: Optional[int] = None):
        capacity = Config.MAX_MEMORIES if max_entries is None else max_entries
        self.max_entries = max(int(capacity), 1)
        self._entries: List[MemoryEntry] = []
        self._sequence = 0

    def add(
        self, text: str, importance: int = 3, timestamp: Optional[datetime] = None
    ) -> MemoryEntry:
        entry = MemoryEntry(
            text=text,
            timestamp=timestamp or datetime.now(),
            importance=min(max(int(round(importance)), 1), 10),
            sequence=self._sequence,
        )
        self._sequence += 1
        self._entries.append(entry)
        if len(self._entries) > self.max_entries:
            self._evict()
        return entry

    def _evict(self) -> None:
        ranked = sorted(
            self._entries,
            key=lambda entry: (entry.importance, entry.sequence),
            reverse=True,
        )
        survivors = ranked[: self.max_entries]
        self._entries = sorted(survivors, key=lambda entry: entry.sequence)

    def recent(self, limit: int = 10) -> List[MemoryEntry]:
        if limit <= 0:
            return []
        return list(self._entries[-limit:])

    def recent_text(self, limit: int = 10) -> str:
        """Render the last ``limit`` entries, one per line, oldest first."""

        return "\n".join(
            f"[{entry.timestamp:%H:%M:%S}] {entry.text}" for entry in self.recent(limit)
        )

    def relevant(self, query: str, limit: int = 5) -> List[MemoryEntry]:
        terms = [term for term in query.lower().replace(",", " ").split() if term]
        if not terms:
            return list(reversed(self.recent(limit)))

        newest = self._entries[-1].sequence if self._entries else 0
        scored = []
        for entry in self._entries:
            text = entry.text.lower()
            keyword_score = sum(1.5 for term in terms if term in text)
            if keyword_score <= 0.0:
                continue
            recency = 1.0 / (1.0 + (newest - entry.sequence))
            scored.append((keyword_score + recency + entry.importance * 0.1, entry))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [entry for _, entry in scored[:limit]]

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> List[MemoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))
