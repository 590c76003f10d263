"""
Gaussian Categories

Each category is a Gaussian with mean m, covariance Σ and sample count n.
Σ is stored as a vector of variances (``covariance="diagonal"``) or as a
d×d matrix (``covariance="full"``).

    q(x)  = (x - m)ᵀ Σ⁻¹ (x - m)
    M(x)  = exp(-q/2)
    T(x)  = log n - ½ log|Σ| - q/2

T is the log of the prior-weighted likelihood with the terms common to all
categories dropped, so ranking by T is ranking by posterior.

Learning is a rank-1 update followed by a variance floor:

    Σ' = (1 - γ) Σ + γ (x - m')(x - m')ᵀ

A convex combination of positive semi-definite matrices stays PSD; flooring
the eigenvalues at ``min_variance`` then makes it strictly positive definite.
"""

from __future__ import annotations
from typing import Sequence
from dataclasses import dataclass, replace

import numpy as np

from ..constants import EPSILON
from ..parameters import GaussianParameters
from .base import Category, GeometryRule, Pattern, frozen_array


@dataclass(frozen=True, eq=False)
class GaussianCategory(Category):
    """Gaussian with mean, covariance (vector of variances or full matrix) and count."""
    mean: np.ndarray
    covariance: np.ndarray
    sample_count: int = 1

    @property
    def is_full(self) -> bool:
        return self.covariance.ndim == 2

    @property
    def dimension(self) -> int:
        return int(self.mean.shape[0])

    @property
    def variances(self) -> np.ndarray:
        if self.is_full:
            return np.diag(self.covariance)
        return self.covariance

    def covariance_matrix(self) -> np.ndarray:
        if self.is_full:
            return self.covariance
        return np.diag(self.covariance)


def floor_covariance(covariance: np.ndarray, min_variance: float) -> np.ndarray:
    """Symmetrize and floor eigenvalues (matrix) or entries (vector)."""
    floor = max(min_variance, EPSILON)
    if covariance.ndim == 1:
        return np.maximum(covariance, floor)
    symmetric = 0.5 * (covariance + covariance.T)
    eigenvalues, eigenvectors = np.linalg.eigh(symmetric)
    if eigenvalues.min() >= floor:
        return symmetric
    eigenvalues = np.maximum(eigenvalues, floor)
    return (eigenvectors * eigenvalues) @ eigenvectors.T


class GaussianRule(GeometryRule[GaussianCategory]):
    """Choice/match/learning functions of Gaussian categories."""

    category_type = GaussianCategory
    parameter_type = GaussianParameters
    name = "gaussian"

    def create(self, pattern: Pattern, params: GaussianParameters, index: int) -> GaussianCategory:
        x = np.asarray(pattern)
        variance = max(params.sigma_init ** 2, params.min_variance)
        if params.full_covariance:
            covariance = np.eye(x.shape[0]) * variance
        else:
            covariance = np.full(x.shape[0], variance)
        return GaussianCategory(index=index, mean=frozen_array(x), covariance=frozen_array(covariance))

    def quadratic_form(self, pattern: Pattern, category: GaussianCategory) -> float:
        """Squared Mahalanobis distance of ``pattern`` from the mean."""
        diff = np.asarray(pattern) - category.mean
        if category.is_full:
            try:
                solved = np.linalg.solve(category.covariance, diff)
            except np.linalg.LinAlgError:
                solved = np.linalg.lstsq(category.covariance, diff, rcond=None)[0]
            value = float(diff @ solved)
        else:
            value = float(np.sum(diff * diff / np.maximum(category.covariance, EPSILON)))
        return max(value, 0.0)

    def log_determinant(self, category: GaussianCategory) -> float:
        if category.is_full:
            sign, logdet = np.linalg.slogdet(category.covariance)
            if sign <= 0:
                return float(np.sum(np.log(np.maximum(np.diag(category.covariance), EPSILON))))
            return float(logdet)
        return float(np.sum(np.log(np.maximum(category.covariance, EPSILON))))

    def activation(self, pattern: Pattern, category: GaussianCategory,
                   params: GaussianParameters) -> float:
        q = self.quadratic_form(pattern, category)
        return float(np.log(category.sample_count) - 0.5 * self.log_determinant(category) - 0.5 * q)

    def membership(self, pattern: Pattern, category: GaussianCategory,
                   params: GaussianParameters) -> float:
        return float(np.exp(-0.5 * self.quadratic_form(pattern, category)))

    def density(self, pattern: Pattern, category: GaussianCategory) -> float:
        """Normalized probability density of ``pattern`` under the category."""
        d = category.dimension
        log_density = (-0.5 * d * np.log(2.0 * np.pi)
                       - 0.5 * self.log_determinant(category)
                       - 0.5 * self.quadratic_form(pattern, category))
        return float(np.exp(log_density))

    def update(self, pattern: Pattern, category: GaussianCategory,
               params: GaussianParameters) -> GaussianCategory:
        x = np.asarray(pattern)
        count = category.sample_count + 1
        rate = params.learning_rate if params.learning_rate is not None else 1.0 / count

        mean = category.mean + rate * (x - category.mean)
        residual = x - mean
        if category.is_full:
            covariance = (1.0 - rate) * category.covariance + rate * np.outer(residual, residual)
        else:
            covariance = (1.0 - rate) * category.covariance + rate * residual * residual
        covariance = floor_covariance(covariance, params.min_variance)

        return replace(
            category,
            mean=frozen_array(mean),
            covariance=frozen_array(covariance),
            sample_count=count,
        )

    def representative(self, category: GaussianCategory) -> np.ndarray:
        return category.mean

    def vector_ops(self, dimension: int, params: GaussianParameters) -> int:
        if params.full_covariance:
            return dimension * dimension + dimension
        return 2 * dimension

    def activations(self, pattern: Pattern, categories: Sequence[GaussianCategory],
                    params: GaussianParameters) -> np.ndarray:
        if not categories or any(c.is_full for c in categories):
            return super().activations(pattern, categories, params)
        means = np.stack([c.mean for c in categories])
        variances = np.maximum(np.stack([c.covariance for c in categories]), EPSILON)
        counts = np.array([c.sample_count for c in categories], dtype=np.float64)
        diff = np.asarray(pattern)[None, :] - means
        q = np.maximum(np.sum(diff * diff / variances, axis=1), 0.0)
        return np.log(counts) - 0.5 * np.sum(np.log(variances), axis=1) - 0.5 * q
