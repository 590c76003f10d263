"""
Multi-Channel Fusion Categories

A fusion category holds one fuzzy prototype per channel and its own channel
weight vector γ. The pattern is the concatenation of the channels.

    match_k(x) = |x_k ∧ w_k| / |x_k|               (1 when |x_k| is zero)
    T(x)       = Σ_k γ_k |x_k ∧ w_k| / (α + |w_k|)
    M(x)       = min_k match_k(x)

Resonance requires every channel to clear its own threshold,
``max(ρ, ρ_k)``. Channels learn independently; γ may then drift toward the
channels that matched best and is rescaled to ``channel_weight_total``.
Features must lie in [0, 1]; anything else raises InvalidPattern.
"""

from __future__ import annotations
from typing import List, Sequence, Tuple
from dataclasses import dataclass, replace

import numpy as np

from ..constants import EPSILON
from ..errors import DimensionMismatch
from ..parameters import FusionParameters
from .base import (
    Category,
    GeometryRule,
    Pattern,
    frozen_array,
    fuzzy_and,
    l1_norm,
    require_unit_interval,
    safe_ratio,
)


@dataclass(frozen=True, eq=False)
class FusionCategory(Category):
    """Per-channel fuzzy prototypes plus per-category channel weights."""
    channels: Tuple[np.ndarray, ...]
    channel_weights: np.ndarray
    sample_count: int = 1

    @property
    def num_channels(self) -> int:
        return len(self.channels)

    @property
    def dimension(self) -> int:
        return sum(int(w.shape[0]) for w in self.channels)


def split_channels(pattern: Pattern, params: FusionParameters) -> List[np.ndarray]:
    """Split a concatenated pattern into its channel vectors."""
    values = np.asarray(pattern)
    if values.shape[0] != params.dimension:
        raise DimensionMismatch(params.dimension, int(values.shape[0]), "fusion pattern")
    return [values[s] for s in params.channel_slices]


def join_channels(channels: Sequence[Sequence[float]]) -> Pattern:
    """Concatenate channel vectors into one pattern."""
    return Pattern(np.concatenate([np.asarray(c, dtype=np.float64).ravel() for c in channels]))


class FusionRule(GeometryRule[FusionCategory]):
    """Choice/match/learning functions of multi-channel fusion categories."""

    category_type = FusionCategory
    parameter_type = FusionParameters
    name = "fusion"

    def create(self, pattern: Pattern, params: FusionParameters, index: int) -> FusionCategory:
        channels = tuple(frozen_array(x_k) for x_k in split_channels(pattern, params))
        return FusionCategory(
            index=index,
            channels=channels,
            channel_weights=frozen_array(params.channel_weights),
        )

    def channel_matches(self, pattern: Pattern, category: FusionCategory,
                        params: FusionParameters) -> np.ndarray:
        """Match value of every channel."""
        inputs = split_channels(pattern, params)
        return np.array([
            safe_ratio(l1_norm(fuzzy_and(x_k, w_k)), l1_norm(x_k))
            for x_k, w_k in zip(inputs, category.channels)
        ], dtype=np.float64)

    def activation(self, pattern: Pattern, category: FusionCategory,
                   params: FusionParameters) -> float:
        inputs = split_channels(pattern, params)
        total = 0.0
        for gamma, x_k, w_k in zip(category.channel_weights, inputs, category.channels):
            total += gamma * l1_norm(fuzzy_and(x_k, w_k)) / (params.alpha + l1_norm(w_k))
        return float(total)

    def membership(self, pattern: Pattern, category: FusionCategory,
                   params: FusionParameters) -> float:
        return float(np.min(self.channel_matches(pattern, category, params)))

    def channel_thresholds(self, params: FusionParameters, vigilance: float) -> np.ndarray:
        if params.channel_vigilance is None:
            return np.full(params.num_channels, vigilance)
        return np.maximum(np.asarray(params.channel_vigilance), vigilance)

    def evaluate(self, pattern: Pattern, category: FusionCategory, params: FusionParameters,
                 vigilance: float) -> Tuple[float, bool]:
        matches = self.channel_matches(pattern, category, params)
        accepted = bool(np.all(matches >= self.channel_thresholds(params, vigilance)))
        return float(np.min(matches)), accepted

    def check_pattern(self, pattern: Pattern, params: FusionParameters) -> None:
        require_unit_interval(pattern, "Fusion categories")

    def update(self, pattern: Pattern, category: FusionCategory,
               params: FusionParameters) -> FusionCategory:
        beta = params.learning_rate
        inputs = split_channels(pattern, params)
        channels = tuple(
            frozen_array(beta * fuzzy_and(x_k, w_k) + (1.0 - beta) * w_k)
            for x_k, w_k in zip(inputs, category.channels)
        )

        weights = category.channel_weights
        if params.adapt_channel_weights:
            matches = self.channel_matches(pattern, category, params)
            rate = params.channel_weight_rate
            blended = (1.0 - rate) * weights + rate * matches
            total = float(np.sum(blended))
            if total > EPSILON:
                weights = frozen_array(blended * (params.channel_weight_total / total))

        return replace(
            category,
            channels=channels,
            channel_weights=weights,
            sample_count=category.sample_count + 1,
        )

    def representative(self, category: FusionCategory) -> np.ndarray:
        return np.concatenate(category.channels)

    def vector_ops(self, dimension: int, params: FusionParameters) -> int:
        # fuzzy AND + two norms per feature, one combine per channel
        return 3 * dimension + params.num_channels
