"""
Hyper-Ellipsoid Categories

Each category is an ellipsoid with centroid c, unit major axis a and radius
R (half the major-axis length). ``mu`` fixes the ratio of minor to major
axes, so the shape is set by one direction and one scalar:

    dist(x) = ||x - c||                                      if a = 0
            = (1/mu) sqrt(||x - c||^2 - (1 - mu^2)(a·(x - c))^2)  otherwise

    T(x) = (r_hat - R - max(R, dist)) / (r_hat - 2R + alpha)
    M(x) = 1 - (R + max(R, dist)) / r_hat

The major axis is unset (zero) until the category absorbs its first pattern
that differs from the centroid; until then the category is a sphere.
Learning only moves the ellipsoid when the pattern lies outside it, so a
pattern already covered leaves the geometry untouched.
"""

from __future__ import annotations
from typing import Sequence
from dataclasses import dataclass, replace

import numpy as np

from ..constants import EPSILON
from ..parameters import EllipsoidParameters
from .base import Category, GeometryRule, Pattern, frozen_array


@dataclass(frozen=True, eq=False)
class EllipsoidCategory(Category):
    """Ellipsoid with centroid, unit major axis (zero when unset) and radius."""
    centroid: np.ndarray
    major_axis: np.ndarray
    radius: float
    sample_count: int = 1

    @property
    def has_axis(self) -> bool:
        return bool(np.any(self.major_axis))

    @property
    def dimension(self) -> int:
        return int(self.centroid.shape[0])


class EllipsoidRule(GeometryRule[EllipsoidCategory]):
    """Choice/match/learning functions of hyper-ellipsoid categories."""

    category_type = EllipsoidCategory
    parameter_type = EllipsoidParameters
    name = "ellipsoid"

    def create(self, pattern: Pattern, params: EllipsoidParameters, index: int) -> EllipsoidCategory:
        x = np.asarray(pattern)
        return EllipsoidCategory(
            index=index,
            centroid=frozen_array(x),
            major_axis=frozen_array(np.zeros_like(x)),
            radius=0.0,
        )

    def distance(self, pattern: Pattern, category: EllipsoidCategory,
                 params: EllipsoidParameters) -> float:
        """Ellipsoidal distance from the centroid."""
        diff = np.asarray(pattern) - category.centroid
        squared = float(diff @ diff)
        if not category.has_axis:
            return float(np.sqrt(squared))
        projection = float(category.major_axis @ diff)
        inner = squared - (1.0 - params.mu ** 2) * projection ** 2
        return float(np.sqrt(max(inner, 0.0)) / params.mu)

    def _distances(self, pattern: Pattern, categories: Sequence[EllipsoidCategory],
                   params: EllipsoidParameters) -> np.ndarray:
        centroids = np.stack([c.centroid for c in categories])
        axes = np.stack([c.major_axis for c in categories])
        diff = np.asarray(pattern)[None, :] - centroids
        squared = np.einsum("ij,ij->i", diff, diff)
        projection = np.einsum("ij,ij->i", axes, diff)
        has_axis = np.any(axes != 0.0, axis=1)
        elliptic = np.sqrt(np.maximum(squared - (1.0 - params.mu ** 2) * projection ** 2, 0.0)) / params.mu
        return np.where(has_axis, elliptic, np.sqrt(squared))

    @staticmethod
    def _choice(radius, dist, params: EllipsoidParameters):
        numerator = params.r_hat - radius - np.maximum(radius, dist)
        denominator = np.maximum(params.r_hat - 2.0 * radius + params.alpha, EPSILON)
        return numerator / denominator

    def activation(self, pattern: Pattern, category: EllipsoidCategory,
                   params: EllipsoidParameters) -> float:
        dist = self.distance(pattern, category, params)
        return float(self._choice(category.radius, dist, params))

    def activations(self, pattern: Pattern, categories: Sequence[EllipsoidCategory],
                    params: EllipsoidParameters) -> np.ndarray:
        if not categories:
            return np.empty(0, dtype=np.float64)
        radii = np.array([c.radius for c in categories], dtype=np.float64)
        return self._choice(radii, self._distances(pattern, categories, params), params)

    def membership(self, pattern: Pattern, category: EllipsoidCategory,
                   params: EllipsoidParameters) -> float:
        dist = self.distance(pattern, category, params)
        value = 1.0 - (category.radius + max(category.radius, dist)) / params.r_hat
        return float(min(max(value, 0.0), 1.0))

    def update(self, pattern: Pattern, category: EllipsoidCategory,
               params: EllipsoidParameters) -> EllipsoidCategory:
        x = np.asarray(pattern)
        centroid = category.centroid
        radius = category.radius
        major_axis = category.major_axis

        offset = x - centroid
        offset_norm = float(np.sqrt(offset @ offset))
        if not category.has_axis and offset_norm > EPSILON:
            major_axis = frozen_array(offset / offset_norm)

        dist = self.distance(pattern, category, params)
        if dist > EPSILON:
            step = params.learning_rate / 2.0
            centroid = frozen_array(centroid + step * offset * (1.0 - min(radius, dist) / dist))
            radius = radius + step * (max(radius, dist) - radius)

        return replace(
            category,
            centroid=centroid,
            major_axis=major_axis,
            radius=float(radius),
            sample_count=category.sample_count + 1,
        )

    def representative(self, category: EllipsoidCategory) -> np.ndarray:
        return category.centroid

    def vector_ops(self, dimension: int, params: EllipsoidParameters) -> int:
        # difference, squared norm, axis projection
        return 3 * dimension
