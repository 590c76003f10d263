"""
Category Store

Ordered collection of categories for one ART module.

Invariants:
- Categories are kept in creation order; ``next_index`` only grows between
  clears, so a creation index is never reused after pruning.
- The store replaces whole category objects, never their fields. A reader
  holding a snapshot sees each category either before or after an update.
- Mutations happen under ``write_locked()``; reads under ``read_locked()``.
  The store methods themselves do not lock, so callers compose a full
  learning step inside one critical section.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Tuple
from contextlib import contextmanager
from dataclasses import dataclass

from .errors import GeometryMismatch
from .geometry.base import Category
from .locks import ReadWriteLock


@dataclass(frozen=True)
class UsageRecord:
    """Bookkeeping kept beside each category."""
    index: int
    usage_count: int
    last_used_step: int
    created_step: int


class CategoryStore:
    """
    Ordered categories with reader/writer access.

    Attributes:
        dimension: Pattern dimension fixed by the first category, or None
    """

    def __init__(self):
        self._lock = ReadWriteLock()
        self._categories: List[Category] = []
        self._usage: List[UsageRecord] = []
        self._positions: Dict[int, int] = {}
        self._next_index = 0
        self._step = 0
        self.dimension: Optional[int] = None

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    @contextmanager
    def read_locked(self):
        with self._lock.read_locked():
            yield self

    @contextmanager
    def write_locked(self):
        with self._lock.write_locked():
            yield self

    @property
    def lock(self) -> ReadWriteLock:
        return self._lock

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._categories)

    def snapshot(self) -> Tuple[Category, ...]:
        """Immutable view of the categories in creation order."""
        return tuple(self._categories)

    def get(self, position: int) -> Category:
        if position < 0 or position >= len(self._categories):
            raise IndexError(
                f"Category position {position} out of bounds for {len(self._categories)} categories"
            )
        return self._categories[position]

    def position_of(self, index: int) -> Optional[int]:
        """Current position of the category created with ``index``."""
        return self._positions.get(index)

    def find(self, index: int) -> Optional[Category]:
        position = self._positions.get(index)
        if position is None:
            return None
        return self._categories[position]

    def usage(self, index: int) -> UsageRecord:
        position = self._positions.get(index)
        if position is None:
            raise KeyError(f"No category with index {index}")
        return self._usage[position]

    def usage_records(self) -> Tuple[UsageRecord, ...]:
        return tuple(self._usage)

    @property
    def next_index(self) -> int:
        return self._next_index

    @property
    def step(self) -> int:
        """Number of learning steps recorded so far."""
        return self._step

    # -------------------------------------------------------------------------
    # Writes (caller holds the write lock)
    # -------------------------------------------------------------------------

    def advance(self) -> int:
        """Start a new learning step and return its number."""
        self._step += 1
        return self._step

    def allocate_index(self) -> int:
        index = self._next_index
        self._next_index += 1
        return index

    def append(self, category: Category) -> int:
        """Add a freshly created category; returns its position."""
        if category.index in self._positions:
            raise ValueError(f"Category index {category.index} already present")
        if self._categories and type(category) is not type(self._categories[0]):
            raise GeometryMismatch(
                f"Store holds {type(self._categories[0]).__name__}, got {type(category).__name__}"
            )
        if category.index >= self._next_index:
            self._next_index = category.index + 1
        if self.dimension is None:
            self.dimension = category.dimension
        position = len(self._categories)
        self._categories.append(category)
        self._usage.append(UsageRecord(category.index, 1, self._step, self._step))
        self._positions[category.index] = position
        return position

    def replace(self, category: Category) -> int:
        """Swap in the updated version of an existing category."""
        position = self._positions.get(category.index)
        if position is None:
            raise KeyError(f"No category with index {category.index}")
        self._categories[position] = category
        return position

    def record_use(self, index: int) -> None:
        position = self._positions[index]
        record = self._usage[position]
        self._usage[position] = UsageRecord(
            record.index, record.usage_count + 1, self._step, record.created_step
        )

    def set_usage(self, index: int, usage_count: int) -> None:
        position = self._positions[index]
        record = self._usage[position]
        self._usage[position] = UsageRecord(
            record.index, usage_count, record.last_used_step, record.created_step
        )

    def remove(self, indices: Iterable[int]) -> List[int]:
        """Remove categories by creation index; returns the indices removed."""
        doomed = {i for i in indices if i in self._positions}
        if not doomed:
            return []
        kept = [(c, u) for c, u in zip(self._categories, self._usage) if c.index not in doomed]
        self._categories = [c for c, _ in kept]
        self._usage = [u for _, u in kept]
        self._positions = {c.index: p for p, c in enumerate(self._categories)}
        return sorted(doomed)

    def clear(self) -> None:
        """Drop every category and restart creation indices at 0."""
        self._categories = []
        self._usage = []
        self._positions = {}
        self._next_index = 0
        self._step = 0
        self.dimension = None

    def __repr__(self) -> str:
        return f"CategoryStore(categories={len(self._categories)}, next_index={self._next_index})"
