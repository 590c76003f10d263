"""
ARTMAP Mapper

Supervised association of module A categories with labels. A label is the
index of the category module B learns for the target pattern, or the target
itself when there is no module B.

Match tracking, one learning step:

    SEARCH_A ──NoMatch──────────────────────────────► FAIL
       │ Success                                        ▲
       ▼                                                │ attempts exhausted
    CHECK_MAP ──conflict──► RAISE_VIGILANCE ──► SEARCH_A
       │ agree / unmapped / unsupervised
       ▼
    RESONANCE

On a conflict A's vigilance becomes
``max(membership + epsilon, vigilance + min_vigilance_increment)`` and the
rejected winner is excluded, so it cannot win again this step. The raise
lives only for the step; the next pattern starts from the baseline.

FAIL creates a new A category mapped to the label. Both terminal states end
the step, so ``learn`` always returns within ``max_search_attempts``
searches.

Locks: A's writer lock, then B's; released in reverse order.
"""

from __future__ import annotations
from typing import Any, Dict, Hashable, List, Optional
from contextlib import ExitStack
import logging
import time

from .geometry import Pattern
from .geometry.base import ArrayLike
from .module import ARTModule
from .optimizer import OptimizationPolicy, OptimizationReport
from .parameters import ARTMAPParameters
from .performance import PerformanceSnapshot, PerformanceTracker
from .results import (
    ActivationResult,
    ARTMAPPrediction,
    ARTMAPResult,
    MatchTrackingState,
)

logger = logging.getLogger(__name__)

_UNMAPPED = object()


class ARTMAP:
    """
    Module A (inputs) linked to labels through a map field.

    Args:
        module_a: Module clustering the input patterns
        module_b: Module clustering the targets, or None for plain labels
        parameters: Match-tracking bounds
    """

    def __init__(self, module_a: ARTModule, module_b: Optional[ARTModule] = None,
                 parameters: Optional[ARTMAPParameters] = None):
        if module_a is module_b:
            raise ValueError("module_a and module_b must be distinct modules")
        for module in (module_a, module_b):
            if module is not None and module.owner is not None:
                raise ValueError(f"{module!r} already belongs to another ARTMAP")
        self.module_a = module_a
        self.module_b = module_b
        self.parameters = parameters if parameters is not None else ARTMAPParameters()
        self._map: Dict[int, Hashable] = {}
        self.performance = PerformanceTracker()
        module_a.owner = self
        if module_b is not None:
            module_b.owner = self

    @property
    def map_field(self) -> Dict[int, Hashable]:
        """Copy of the A index → label association."""
        with self.module_a.store.read_locked():
            return dict(self._map)

    # -------------------------------------------------------------------------
    # Learning
    # -------------------------------------------------------------------------

    def learn(self, pattern: ArrayLike, target: Any = None) -> ARTMAPResult:
        """
        Learn ``pattern`` under ``target``.

        With a module B, ``target`` is a pattern and B's winning (or new)
        category index becomes the label. Without one, ``target`` is the
        label itself. ``None`` learns unsupervised: every mapping agrees.
        """
        started = time.perf_counter_ns()
        a = self.module_a
        pattern = Pattern.of(pattern)
        a._validate(pattern, a.parameters)

        target_pattern = None
        if target is not None and self.module_b is not None:
            target_pattern = Pattern.of(target)
            self.module_b._validate(target_pattern, self.module_b.parameters)
        elif target is not None and not isinstance(target, Hashable):
            raise TypeError(f"Label must be hashable, got {type(target).__name__}")

        with ExitStack() as locks:
            locks.enter_context(a.store.write_locked())
            # a concurrent first learn may have fixed A's dimension; check before touching B
            a._check_dimension(pattern, a.parameters)
            b_result = None
            label = target
            if target_pattern is not None:
                locks.enter_context(self.module_b.store.write_locked())
                b_result = self.module_b._learn_locked(target_pattern, self.module_b.parameters)
                label = b_result.category_index
            result = self._match_tracking(pattern, label, b_result)

        self.performance.record_operation("learn", started)
        a.performance.record_operation("learn", started)
        if b_result is not None:
            self.module_b.performance.record_operation("learn", started)
        return result

    def _match_tracking(self, pattern: Pattern, label: Optional[Hashable],
                        b_result: Optional[ActivationResult]) -> ARTMAPResult:
        a = self.module_a
        params = a.parameters
        a._begin_step(pattern, params)

        vigilance = params.vigilance
        rejected: List[int] = []
        attempts = 0
        exhausted = False
        a_result: Optional[ActivationResult] = None
        state = MatchTrackingState.SEARCH_A

        while not state.is_terminal:
            if state is MatchTrackingState.SEARCH_A:
                if attempts >= self.parameters.max_search_attempts:
                    exhausted = True
                    state = MatchTrackingState.FAIL
                    continue
                attempts += 1
                a_result = a._search(pattern, params, vigilance, rejected)
                state = MatchTrackingState.CHECK_MAP if a_result.is_success else MatchTrackingState.FAIL

            elif state is MatchTrackingState.CHECK_MAP:
                mapped = self._map.get(a_result.category_index, _UNMAPPED)
                if label is None or mapped is _UNMAPPED or mapped == label:
                    state = MatchTrackingState.RESONANCE
                else:
                    state = MatchTrackingState.RAISE_VIGILANCE

            elif state is MatchTrackingState.RAISE_VIGILANCE:
                rejected.append(a_result.category_index)
                vigilance = max(a_result.membership + self.parameters.epsilon,
                                vigilance + self.parameters.min_vigilance_increment)
                self.performance.increment("match_tracking_events")
                logger.debug("Match tracking rejected category %d, vigilance raised to %.6f",
                             a_result.category_index, vigilance)
                state = MatchTrackingState.SEARCH_A

        if state is MatchTrackingState.RESONANCE:
            winner = a._resonate(pattern, a_result, params)
            self.performance.increment("adaptation_events")
            new_mapping = label is not None and winner.category_index not in self._map
            if new_mapping:
                self._map[winner.category_index] = label
            b_label = self._map.get(winner.category_index) if label is None else label
        else:
            winner = a._create(pattern, params)
            self.performance.increment("categories_created")
            new_mapping = label is not None
            if new_mapping:
                self._map[winner.category_index] = label
            b_label = label
            if exhausted:
                self.performance.increment("search_exhaustions")
                logger.info("Match tracking exhausted after %d attempts; created category %d",
                            attempts, winner.category_index)

        return ARTMAPResult(
            state=state,
            a_index=winner.category_index,
            b_label=b_label,
            attempts=attempts,
            final_vigilance=vigilance,
            new_mapping=new_mapping,
            rejected=tuple(rejected),
            exhausted=exhausted,
            a_result=winner,
            b_result=b_result,
        )

    # -------------------------------------------------------------------------
    # Prediction and maintenance
    # -------------------------------------------------------------------------

    def predict(self, pattern: ArrayLike) -> ARTMAPPrediction:
        """Label of the resonant A category; ``b_label`` None when nothing maps."""
        started = time.perf_counter_ns()
        a = self.module_a
        pattern = Pattern.of(pattern)
        a._validate(pattern, a.parameters)
        with a.store.read_locked():
            result = a._search(pattern, a.parameters)
            label = self._map.get(result.category_index) if result.is_success else None
        self.performance.record_operation("predict", started)
        if label is None:
            return ARTMAPPrediction(a_index=-1, b_label=None)
        return ARTMAPPrediction(a_index=result.category_index, b_label=label,
                                activation=result.activation, membership=result.membership)

    def learn_batch(self, patterns, targets) -> List[ARTMAPResult]:
        return [self.learn(p, t) for p, t in zip(patterns, targets)]

    def predict_batch(self, patterns) -> List[ARTMAPPrediction]:
        return [self.predict(p) for p in patterns]

    def clear(self) -> None:
        with ExitStack() as locks:
            locks.enter_context(self.module_a.store.write_locked())
            self.module_a.store.clear()
            if self.module_b is not None:
                locks.enter_context(self.module_b.store.write_locked())
                self.module_b.store.clear()
            self._map.clear()
        logger.info("Cleared ARTMAP modules and map field")

    def optimize_network(self, policy: Optional[OptimizationPolicy] = None) -> OptimizationReport:
        """Optimize module A and drop map entries of pruned categories."""
        with self.module_a.store.write_locked():
            report = self.module_a._optimize_locked(policy)
            for index in report.pruned_indices:
                self._map.pop(index, None)
            remaining = len(self._map)
        logger.info("Optimized ARTMAP: pruned %d, %d mappings remaining",
                    report.pruned_count, remaining)
        return report

    def get_performance_snapshot(self) -> PerformanceSnapshot:
        return self.performance.snapshot(category_count=self.module_a.get_category_count())

    def reset_performance_tracking(self) -> None:
        self.performance.reset()
        logger.info("ARTMAP performance counters reset")

    def __repr__(self) -> str:
        return f"ARTMAP(a={self.module_a!r}, b={self.module_b!r}, mappings={len(self._map)})"
