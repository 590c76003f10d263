"""
ART Module

Thread-safe wrapper around one category store: every learn step runs under
the store's writer lock, every read under its reader lock, and counters are
updated outside both.

    module = ARTModule(EllipsoidParameters(vigilance=0.9))
    module.learn([0.1, 0.2])      # Success(category_index=0, created=True)
    module.learn([0.1, 0.2])      # Success(category_index=0)
    module.predict([0.9, 0.9])    # NoMatch

The geometry is chosen once from the parameter family. Passing a parameter
set of another family to ``learn`` or ``predict`` raises GeometryMismatch.
"""

from __future__ import annotations
from typing import Collection, Iterable, List, Optional, Tuple, Union
import logging
import time

import numpy as np

from .errors import DimensionMismatch
from .geometry import Category, GeometryRule, Pattern, rule_for_parameters
from .geometry.base import ArrayLike
from .matcher import VigilanceMatcher
from .optimizer import NetworkOptimizer, OptimizationPolicy, OptimizationReport
from .parameters import ARTParameters
from .performance import PerformanceSnapshot, PerformanceTracker
from .results import ActivationResult, Success
from .store import CategoryStore, UsageRecord

logger = logging.getLogger(__name__)


class ARTModule:
    """
    One adaptive resonance network.

    Args:
        parameters: Parameter set; its family selects the category geometry
        rng: Generator (or seed) for the optimizer's topology draws
    """

    def __init__(self, parameters: ARTParameters,
                 rng: Optional[Union[np.random.Generator, int]] = None):
        self.rule: GeometryRule = rule_for_parameters(parameters)
        self.parameters = parameters
        self.store = CategoryStore()
        self.matcher = VigilanceMatcher(self.rule)
        self.performance = PerformanceTracker()
        self.optimizer = NetworkOptimizer(np.random.default_rng(rng))
        # ARTMAP whose map field refers to this module's creation indices
        self.owner = None

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _resolve(self, params: Optional[ARTParameters]) -> ARTParameters:
        if params is None:
            return self.parameters
        self.rule.check_parameters(params)
        return params

    @property
    def dimension(self) -> Optional[int]:
        """Configured dimension, else the one fixed by the first category."""
        if self.parameters.dimension is not None:
            return self.parameters.dimension
        return self.store.dimension

    def _check_dimension(self, pattern: Pattern, params: ARTParameters) -> None:
        expected = params.dimension if params.dimension is not None else self.dimension
        if expected is not None and pattern.dimension != expected:
            raise DimensionMismatch(expected, pattern.dimension)

    def _validate(self, pattern: Pattern, params: ARTParameters) -> None:
        """Check ``pattern`` against the dimension and the geometry's value range."""
        self._check_dimension(pattern, params)
        self.rule.check_pattern(pattern, params)

    # -------------------------------------------------------------------------
    # Learning steps (caller holds the writer lock)
    # -------------------------------------------------------------------------

    def _begin_step(self, pattern: Pattern, params: ARTParameters) -> None:
        # Re-check under the lock: a concurrent first learn may have fixed the dimension
        self._check_dimension(pattern, params)
        self.store.advance()

    def _search(self, pattern: Pattern, params: ARTParameters,
                vigilance: Optional[float] = None,
                excluded: Collection[int] = ()) -> ActivationResult:
        categories = self.store.snapshot()
        if categories:
            ops = self.rule.vector_ops(pattern.dimension, params) * len(categories)
            self.performance.increment("vectorized_operations", ops)
        return self.matcher.match(pattern, categories, params, vigilance, excluded)

    def _resonate(self, pattern: Pattern, result: Success, params: ARTParameters) -> Success:
        category = self.store.find(result.category_index)
        updated = self.rule.update(pattern, category, params)
        position = self.store.replace(updated)
        self.store.record_use(result.category_index)
        self.performance.increment("adaptation_events")
        logger.debug("Category %d resonated (membership=%.4f)", result.category_index, result.membership)
        if position != result.position:
            return Success(result.category_index, position, result.activation, result.membership)
        return result

    def _create(self, pattern: Pattern, params: ARTParameters) -> Success:
        index = self.store.allocate_index()
        category = self.rule.create(pattern, params, index)
        position = self.store.append(category)
        self.performance.increment("categories_created")
        logger.debug("Created %s category %d", self.rule.name, index)
        return Success(category_index=index, position=position,
                       activation=1.0, membership=1.0, created=True)

    def _learn_locked(self, pattern: Pattern, params: ARTParameters) -> Success:
        self._begin_step(pattern, params)
        result = self._search(pattern, params)
        if result.is_success:
            return self._resonate(pattern, result, params)
        return self._create(pattern, params)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def learn(self, pattern: ArrayLike, params: Optional[ARTParameters] = None) -> Success:
        """
        Present ``pattern`` for learning.

        Returns the resonant category after its update, or the category
        created because nothing resonated (``created=True``).
        """
        started = time.perf_counter_ns()
        pattern = Pattern.of(pattern)
        params = self._resolve(params)
        self._validate(pattern, params)
        with self.store.write_locked():
            result = self._learn_locked(pattern, params)
        self.performance.record_operation("learn", started)
        return result

    def predict(self, pattern: ArrayLike, params: Optional[ARTParameters] = None) -> ActivationResult:
        """Find the resonant category without learning. NoMatch has index -1."""
        started = time.perf_counter_ns()
        pattern = Pattern.of(pattern)
        params = self._resolve(params)
        self._validate(pattern, params)
        with self.store.read_locked():
            result = self._search(pattern, params)
        self.performance.record_operation("predict", started)
        return result

    def learn_batch(self, patterns: Iterable[ArrayLike],
                    params: Optional[ARTParameters] = None) -> List[Success]:
        return [self.learn(p, params) for p in patterns]

    def predict_batch(self, patterns: Iterable[ArrayLike],
                      params: Optional[ARTParameters] = None) -> List[ActivationResult]:
        return [self.predict(p, params) for p in patterns]

    def get_category_count(self) -> int:
        with self.store.read_locked():
            return len(self.store)

    def get_category(self, position: int) -> Category:
        with self.store.read_locked():
            return self.store.get(position)

    def get_categories(self) -> Tuple[Category, ...]:
        with self.store.read_locked():
            return self.store.snapshot()

    def get_usage(self, index: int) -> UsageRecord:
        """Usage bookkeeping of the category created with ``index``."""
        with self.store.read_locked():
            return self.store.usage(index)

    def clear(self) -> None:
        """
        Drop every category and restart creation indices at 0.

        A module driven by an ARTMAP refuses: its map field would hand stale
        labels to the new categories. Use ``ARTMAP.clear()`` instead.
        """
        if self.owner is not None:
            raise RuntimeError("Module is owned by an ARTMAP; clear it through ARTMAP.clear()")
        with self.store.write_locked():
            count = len(self.store)
            self.store.clear()
        logger.info("Cleared %d categories", count)

    def get_performance_snapshot(self) -> PerformanceSnapshot:
        return self.performance.snapshot(category_count=self.get_category_count())

    def reset_performance_tracking(self) -> None:
        self.performance.reset()
        logger.info("Performance counters reset")

    def optimize_network(self, policy: Optional[OptimizationPolicy] = None) -> OptimizationReport:
        """
        Prune and adjust the store under the writer lock.

        A policy with a ``seed`` uses a fresh generator seeded with it, so
        the same policy on the same store always gives the same report.
        """
        with self.store.write_locked():
            report = self._optimize_locked(policy)
            remaining = len(self.store)
        logger.info("Optimized network: pruned %d, %d remaining, topology adjusted: %s",
                    report.pruned_count, remaining, report.topology_adjusted)
        return report

    def _optimize_locked(self, policy: Optional[OptimizationPolicy]) -> OptimizationReport:
        policy = policy if policy is not None else OptimizationPolicy()
        optimizer = self.optimizer
        if policy.seed is not None:
            optimizer = NetworkOptimizer(np.random.default_rng(policy.seed))
        report = optimizer.optimize(self.store, policy)
        if report.pruned_indices:
            self.performance.increment("pruning_events", report.pruned_count)
        if report.topology_adjusted:
            self.performance.increment("topology_adjustments")
        return report

    def __repr__(self) -> str:
        return f"ARTModule(geometry={self.rule.name!r}, categories={len(self.store)})"
