"""
Performance Instrumentation

Counters are AtomicCounters with their own locks, so incrementing them never
contends with the category store's reader/writer lock. A snapshot reads each
counter independently: it is recent, not linearized with the store.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
import time

from .locks import AtomicCounter


@dataclass(frozen=True)
class PerformanceSnapshot:
    """Point-in-time copy of a module's counters."""
    total_operations: int = 0
    learn_operations: int = 0
    predict_operations: int = 0
    vectorized_operations: int = 0
    adaptation_events: int = 0
    categories_created: int = 0
    pruning_events: int = 0
    topology_adjustments: int = 0
    match_tracking_events: int = 0
    search_exhaustions: int = 0
    total_processing_ns: int = 0
    category_count: int = 0

    @property
    def average_processing_ms(self) -> float:
        if self.total_operations == 0:
            return 0.0
        return self.total_processing_ns / self.total_operations / 1e6

    @property
    def throughput(self) -> float:
        """Operations per second of processing time."""
        if self.total_processing_ns == 0:
            return 0.0
        return self.total_operations / (self.total_processing_ns / 1e9)

    @property
    def adaptation_ratio(self) -> float:
        if self.learn_operations == 0:
            return 0.0
        return self.adaptation_events / self.learn_operations

    @property
    def vector_ops_per_operation(self) -> float:
        if self.total_operations == 0:
            return 0.0
        return self.vectorized_operations / self.total_operations

    def to_dict(self):
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(
            average_processing_ms=self.average_processing_ms,
            throughput=self.throughput,
            adaptation_ratio=self.adaptation_ratio,
            vector_ops_per_operation=self.vector_ops_per_operation,
        )
        return values


class PerformanceTracker:
    """Independent atomic counters for one module or mapper."""

    COUNTERS = (
        "total_operations",
        "learn_operations",
        "predict_operations",
        "vectorized_operations",
        "adaptation_events",
        "categories_created",
        "pruning_events",
        "topology_adjustments",
        "match_tracking_events",
        "search_exhaustions",
        "total_processing_ns",
    )

    def __init__(self):
        self._counters = {name: AtomicCounter() for name in self.COUNTERS}

    def increment(self, name: str, amount: int = 1) -> int:
        return self._counters[name].increment(amount)

    def get(self, name: str) -> int:
        return self._counters[name].get()

    def record_operation(self, kind: str, started_ns: int, vector_ops: int = 0) -> None:
        """Count one learn/predict call that began at ``started_ns``."""
        elapsed = time.perf_counter_ns() - started_ns
        self._counters["total_operations"].increment()
        self._counters[f"{kind}_operations"].increment()
        self._counters["total_processing_ns"].increment(max(elapsed, 0))
        if vector_ops:
            self._counters["vectorized_operations"].increment(vector_ops)

    def snapshot(self, category_count: int = 0) -> PerformanceSnapshot:
        values = {name: counter.get() for name, counter in self._counters.items()}
        return PerformanceSnapshot(category_count=category_count, **values)

    def reset(self) -> None:
        for counter in self._counters.values():
            counter.set(0)
