"""
Salience-Weighted Categories

Fuzzy prototypes whose features carry a relevance (salience) score s.
Features that vary inside a category lose salience, so they count less in
both the choice and the match function:

    T(x) = Σ s (x ∧ w) / (α + Σ s w)
    M(x) = Σ s (x ∧ w) / Σ s x          (1 when Σ s x is zero)

Features must lie in [0, 1], which keeps M(x) in [0, 1].

Per-feature mean and variance are tracked with Welford's algorithm. Once a
category has two samples, relevance r = exp(-std / relevance_scale) pulls
salience along an exponential moving average:

    s' = clip((1 - λ) s + λ r, min_salience, 1)
"""

from __future__ import annotations
from typing import Sequence
from dataclasses import dataclass, replace

import numpy as np

from ..parameters import SalienceParameters
from .base import (
    Category,
    GeometryRule,
    Pattern,
    frozen_array,
    fuzzy_and,
    require_unit_interval,
    safe_ratio,
)


@dataclass(frozen=True, eq=False)
class SalienceCategory(Category):
    """Fuzzy prototype with per-feature salience and running statistics."""
    weights: np.ndarray
    salience: np.ndarray
    feature_mean: np.ndarray
    feature_m2: np.ndarray
    sample_count: int = 1

    @property
    def dimension(self) -> int:
        return int(self.weights.shape[0])

    @property
    def feature_variance(self) -> np.ndarray:
        if self.sample_count < 2:
            return np.zeros_like(self.feature_m2)
        return self.feature_m2 / (self.sample_count - 1)


class SalienceRule(GeometryRule[SalienceCategory]):
    """Choice/match/learning functions of salience-weighted categories."""

    category_type = SalienceCategory
    parameter_type = SalienceParameters
    name = "salience"

    def create(self, pattern: Pattern, params: SalienceParameters, index: int) -> SalienceCategory:
        x = np.asarray(pattern)
        return SalienceCategory(
            index=index,
            weights=frozen_array(x),
            salience=frozen_array(np.ones_like(x)),
            feature_mean=frozen_array(x),
            feature_m2=frozen_array(np.zeros_like(x)),
        )

    def activation(self, pattern: Pattern, category: SalienceCategory,
                   params: SalienceParameters) -> float:
        s = category.salience
        overlap = fuzzy_and(np.asarray(pattern), category.weights)
        return float(np.sum(s * overlap) / (params.alpha + np.sum(s * category.weights)))

    def activations(self, pattern: Pattern, categories: Sequence[SalienceCategory],
                    params: SalienceParameters) -> np.ndarray:
        if not categories:
            return np.empty(0, dtype=np.float64)
        weights = np.stack([c.weights for c in categories])
        salience = np.stack([c.salience for c in categories])
        overlap = np.minimum(np.asarray(pattern)[None, :], weights)
        return np.sum(salience * overlap, axis=1) / (params.alpha + np.sum(salience * weights, axis=1))

    def membership(self, pattern: Pattern, category: SalienceCategory,
                   params: SalienceParameters) -> float:
        x = np.asarray(pattern)
        s = category.salience
        return float(safe_ratio(np.sum(s * fuzzy_and(x, category.weights)), np.sum(s * x)))

    def check_pattern(self, pattern: Pattern, params: SalienceParameters) -> None:
        require_unit_interval(pattern, "Salience categories")

    def relevance(self, category: SalienceCategory, params: SalienceParameters) -> np.ndarray:
        """Relevance of each feature from its spread inside the category."""
        std = np.sqrt(np.maximum(category.feature_variance, 0.0))
        return np.exp(-std / params.relevance_scale)

    def update(self, pattern: Pattern, category: SalienceCategory,
               params: SalienceParameters) -> SalienceCategory:
        x = np.asarray(pattern)
        s = category.salience
        scaled = s / max(float(np.max(s)), params.min_salience)
        rate = params.learning_rate * scaled
        weights = rate * fuzzy_and(x, category.weights) + (1.0 - rate) * category.weights

        count = category.sample_count + 1
        delta = x - category.feature_mean
        mean = category.feature_mean + delta / count
        m2 = category.feature_m2 + delta * (x - mean)

        updated = replace(
            category,
            weights=frozen_array(weights),
            feature_mean=frozen_array(mean),
            feature_m2=frozen_array(m2),
            sample_count=count,
        )
        relevance = self.relevance(updated, params)
        blended = (1.0 - params.salience_rate) * s + params.salience_rate * relevance
        salience = np.clip(blended, params.min_salience, 1.0)
        return replace(updated, salience=frozen_array(salience))

    def representative(self, category: SalienceCategory) -> np.ndarray:
        return category.weights

    def vector_ops(self, dimension: int, params: SalienceParameters) -> int:
        # fuzzy AND, two weighted sums
        return 3 * dimension
