"""
Network Optimizer

Manual maintenance of a category store: pruning rarely used, idle or
surplus categories, and a randomized familiarity decay ("topology
adjustment"). The caller decides when to run it and must hold the store's
writer lock.

Pruning stages run in order, each on what the previous one left:
1. usage:  usage_count < min_usage_ratio * mean usage
2. idle:   not used in the last max_idle_steps learning steps
3. size:   keep the max_categories most-used, older first on ties

The topology draw comes from an injected numpy Generator, so a seeded
optimizer is reproducible.
"""

from __future__ import annotations
from typing import List, Optional, Tuple
from dataclasses import dataclass
import logging

import numpy as np

from .errors import ParameterError
from .parameters import ParameterRecord, _finite, _require
from .store import CategoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptimizationPolicy(ParameterRecord):
    """
    When and how much to prune.

    Attributes:
        min_usage_ratio: Relative usage below which a category is dropped, None disables
        max_idle_steps: Idle learning steps after which a category is dropped, None disables
        max_categories: Upper bound on the category count, None disables
        topology_adjustment_rate: Probability of a familiarity decay per run
        familiarity_decay: Fraction of usage removed by a decay
        seed: Seed for the optimizer's generator when the module creates one
    """
    min_usage_ratio: Optional[float] = None
    max_idle_steps: Optional[int] = None
    max_categories: Optional[int] = None
    topology_adjustment_rate: float = 0.0
    familiarity_decay: float = 0.5
    seed: Optional[int] = None

    def __post_init__(self):
        if self.min_usage_ratio is not None:
            ratio = _finite("min_usage_ratio", self.min_usage_ratio)
            _require(0.0 <= ratio <= 1.0, f"min_usage_ratio must be in [0, 1], got {ratio}")
        for name in ("max_idle_steps", "max_categories"):
            value = getattr(self, name)
            if value is None:
                continue
            if not isinstance(value, int) or isinstance(value, bool):
                raise ParameterError(f"{name} must be an int, got {value!r}")
            _require(value >= 1, f"{name} must be >= 1, got {value}")
        rate = _finite("topology_adjustment_rate", self.topology_adjustment_rate)
        _require(0.0 <= rate <= 1.0, f"topology_adjustment_rate must be in [0, 1], got {rate}")
        decay = _finite("familiarity_decay", self.familiarity_decay)
        _require(0.0 <= decay < 1.0, f"familiarity_decay must be in [0, 1), got {decay}")


@dataclass(frozen=True)
class OptimizationReport:
    """What one optimization run changed."""
    pruned_indices: Tuple[int, ...] = ()
    topology_adjusted: bool = False

    @property
    def pruned_count(self) -> int:
        return len(self.pruned_indices)


class NetworkOptimizer:
    """Applies an OptimizationPolicy to a CategoryStore."""

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()

    def low_usage(self, store: CategoryStore, ratio: float) -> List[int]:
        records = store.usage_records()
        if not records:
            return []
        mean_usage = sum(r.usage_count for r in records) / len(records)
        threshold = ratio * mean_usage
        return [r.index for r in records if r.usage_count < threshold]

    def idle(self, store: CategoryStore, max_idle_steps: int) -> List[int]:
        now = store.step
        return [r.index for r in store.usage_records() if now - r.last_used_step > max_idle_steps]

    def surplus(self, store: CategoryStore, max_categories: int) -> List[int]:
        records = store.usage_records()
        if len(records) <= max_categories:
            return []
        ranked = sorted(records, key=lambda r: (-r.usage_count, r.index))
        return [r.index for r in ranked[max_categories:]]

    def adjust_topology(self, store: CategoryStore, policy: OptimizationPolicy) -> bool:
        """Decay every usage count with probability ``topology_adjustment_rate``."""
        if policy.topology_adjustment_rate <= 0.0:
            return False
        if self.rng.random() >= policy.topology_adjustment_rate:
            return False
        keep = 1.0 - policy.familiarity_decay
        for record in store.usage_records():
            store.set_usage(record.index, max(1, int(record.usage_count * keep)))
        return True

    def optimize(self, store: CategoryStore, policy: OptimizationPolicy) -> OptimizationReport:
        """Run every enabled stage. Caller holds the writer lock."""
        pruned: List[int] = []
        if policy.min_usage_ratio is not None:
            pruned += store.remove(self.low_usage(store, policy.min_usage_ratio))
        if policy.max_idle_steps is not None:
            pruned += store.remove(self.idle(store, policy.max_idle_steps))
        if policy.max_categories is not None:
            pruned += store.remove(self.surplus(store, policy.max_categories))
        adjusted = self.adjust_topology(store, policy)
        if pruned or adjusted:
            logger.debug("Optimizer pruned %s, topology adjusted: %s", sorted(pruned), adjusted)
        return OptimizationReport(pruned_indices=tuple(sorted(pruned)), topology_adjusted=adjusted)
