"""
Parameter Sets

Immutable, validated configuration records consumed by the resonance core.

Every record is a frozen dataclass checked in ``__post_init__``: an invalid
value raises ParameterError immediately and is never clamped. Variants are
derived by copy-with-override (``with_vigilance``, ``with_overrides``), which
re-runs validation on the new record.

Families:
- EllipsoidParameters: hyper-ellipsoid categories
- GaussianParameters:  Gaussian categories (diagonal or full covariance)
- FusionParameters:    multi-channel fusion categories
- SalienceParameters:  salience-weighted fuzzy categories
- ARTMAPParameters:    match-tracking bounds for the A↔B mapper
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Optional, Tuple, TypeVar
from dataclasses import dataclass, fields, replace, asdict
import math

from .constants import (
    DEFAULT_VIGILANCE,
    DEFAULT_LEARNING_RATE,
    DEFAULT_ALPHA,
    DEFAULT_MU,
    DEFAULT_R_HAT,
    DEFAULT_SIGMA_INIT,
    DEFAULT_MIN_VARIANCE,
    DEFAULT_SALIENCE_RATE,
    DEFAULT_RELEVANCE_SCALE,
    DEFAULT_MIN_SALIENCE,
    DEFAULT_MAX_SEARCH_ATTEMPTS,
    DEFAULT_MATCH_TRACKING_EPSILON,
)
from .errors import ParameterError


P = TypeVar("P", bound="ParameterRecord")


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ParameterError(message)


def _finite(name: str, value: Any) -> float:
    if value is None or isinstance(value, bool):
        raise ParameterError(f"{name} must be a real number, got {value!r}")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ParameterError(f"{name} must be a real number, got {value!r}") from None
    if not math.isfinite(value):
        raise ParameterError(f"{name} must be finite, got {value}")
    return value


# =============================================================================
# SECTION 1: Record Base
# =============================================================================

class ParameterRecord:
    """Copy-with-override and dict round-tripping shared by all records."""

    def with_overrides(self: P, **overrides: Any) -> P:
        """Return a validated copy with the given fields replaced."""
        unknown = set(overrides) - {f.name for f in fields(self)}
        if unknown:
            raise ParameterError(f"Unknown parameter(s) for {type(self).__name__}: {sorted(unknown)}")
        return replace(self, **overrides)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, mapping: Mapping[str, Any]):
        if mapping is None:
            raise ParameterError(f"{cls.__name__}.from_dict requires a mapping")
        names = {f.name for f in fields(cls)}
        unknown = set(mapping) - names
        if unknown:
            raise ParameterError(f"Unknown parameter(s) for {cls.__name__}: {sorted(unknown)}")
        return cls(**dict(mapping))


# =============================================================================
# SECTION 2: Category Module Parameters
# =============================================================================

@dataclass(frozen=True)
class ARTParameters(ParameterRecord):
    """
    Parameters common to every category geometry.

    Attributes:
        vigilance: Resonance threshold ρ ∈ [0, 1]
        learning_rate: β ∈ (0, 1], 1.0 means fast learning
        dimension: Total pattern dimension, None to fix it on first learn
    """
    vigilance: float = DEFAULT_VIGILANCE
    learning_rate: Optional[float] = DEFAULT_LEARNING_RATE
    dimension: Optional[int] = None

    def __post_init__(self):
        vigilance = _finite("vigilance", self.vigilance)
        _require(0.0 <= vigilance <= 1.0, f"vigilance must be in [0, 1], got {vigilance}")
        if self.learning_rate is not None:
            rate = _finite("learning_rate", self.learning_rate)
            _require(0.0 < rate <= 1.0, f"learning_rate must be in (0, 1], got {rate}")
        if self.dimension is not None:
            _require(isinstance(self.dimension, int) and not isinstance(self.dimension, bool),
                     f"dimension must be an int, got {self.dimension!r}")
            _require(self.dimension >= 1, f"dimension must be >= 1, got {self.dimension}")

    def with_vigilance(self, vigilance: float):
        return self.with_overrides(vigilance=vigilance)


@dataclass(frozen=True)
class EllipsoidParameters(ARTParameters):
    """Hyper-ellipsoid categories: ``mu`` is the minor/major axis ratio."""
    mu: float = DEFAULT_MU             # Orientation/shape ratio ∈ (0, 1]
    r_hat: float = DEFAULT_R_HAT       # Maximum category diameter
    alpha: float = DEFAULT_ALPHA       # Choice parameter

    def __post_init__(self):
        super().__post_init__()
        _require(self.learning_rate is not None, "learning_rate is required for ellipsoid categories")
        mu = _finite("mu", self.mu)
        _require(0.0 < mu <= 1.0, f"mu must be in (0, 1], got {mu}")
        _require(_finite("r_hat", self.r_hat) > 0.0, f"r_hat must be positive, got {self.r_hat}")
        _require(_finite("alpha", self.alpha) > 0.0, f"alpha must be positive, got {self.alpha}")


@dataclass(frozen=True)
class GaussianParameters(ARTParameters):
    """
    Gaussian categories.

    ``learning_rate=None`` selects the running-mean rate 1/n, which makes the
    mean and covariance exact sample statistics of the category's members.
    """
    learning_rate: Optional[float] = None
    sigma_init: float = DEFAULT_SIGMA_INIT      # Initial standard deviation
    covariance: str = "diagonal"                # "diagonal" or "full"
    min_variance: float = DEFAULT_MIN_VARIANCE  # Regularization floor

    def __post_init__(self):
        super().__post_init__()
        _require(_finite("sigma_init", self.sigma_init) > 0.0,
                 f"sigma_init must be positive, got {self.sigma_init}")
        _require(self.covariance in ("diagonal", "full"),
                 f"covariance must be 'diagonal' or 'full', got {self.covariance!r}")
        _require(_finite("min_variance", self.min_variance) > 0.0,
                 f"min_variance must be positive, got {self.min_variance}")

    @property
    def full_covariance(self) -> bool:
        return self.covariance == "full"


@dataclass(frozen=True)
class FusionParameters(ARTParameters):
    """
    Multi-channel fusion categories.

    The pattern is the concatenation of the channels in ``channel_dims``
    order. ``channel_weights`` (γ) must sum to ``channel_weight_total``.
    """
    channel_dims: Tuple[int, ...] = (2, 2)
    channel_weights: Tuple[float, ...] = (0.5, 0.5)
    channel_vigilance: Optional[Tuple[float, ...]] = None
    alpha: float = DEFAULT_ALPHA
    adapt_channel_weights: bool = False
    channel_weight_rate: float = 0.1
    channel_weight_total: float = 1.0

    def __post_init__(self):
        if self.channel_dims is None:
            raise ParameterError("channel_dims is required")
        if self.channel_weights is None:
            raise ParameterError("channel_weights is required")
        object.__setattr__(self, "channel_dims", tuple(self.channel_dims))
        object.__setattr__(self, "channel_weights",
                           tuple(_finite("channel_weights", w) for w in self.channel_weights))
        if self.channel_vigilance is not None:
            object.__setattr__(self, "channel_vigilance",
                               tuple(_finite("channel_vigilance", v) for v in self.channel_vigilance))

        _require(len(self.channel_dims) >= 1, "channel_dims must name at least one channel")
        for size in self.channel_dims:
            _require(isinstance(size, int) and not isinstance(size, bool) and size >= 1,
                     f"channel_dims entries must be positive ints, got {size!r}")
        total_dimension = sum(self.channel_dims)
        if self.dimension is None:
            object.__setattr__(self, "dimension", total_dimension)
        super().__post_init__()
        _require(self.learning_rate is not None, "learning_rate is required for fusion categories")
        _require(self.dimension == total_dimension,
                 f"dimension {self.dimension} does not match sum(channel_dims) = {total_dimension}")

        _require(len(self.channel_weights) == len(self.channel_dims),
                 f"channel_weights has {len(self.channel_weights)} entries, "
                 f"expected {len(self.channel_dims)}")
        _require(all(w >= 0.0 for w in self.channel_weights), "channel_weights must be non-negative")
        reference = _finite("channel_weight_total", self.channel_weight_total)
        _require(reference > 0.0, f"channel_weight_total must be positive, got {reference}")
        _require(abs(sum(self.channel_weights) - reference) <= 1e-6,
                 f"channel_weights must sum to {reference}, got {sum(self.channel_weights)}")

        if self.channel_vigilance is not None:
            _require(len(self.channel_vigilance) == len(self.channel_dims),
                     f"channel_vigilance has {len(self.channel_vigilance)} entries, "
                     f"expected {len(self.channel_dims)}")
            _require(all(0.0 <= v <= 1.0 for v in self.channel_vigilance),
                     "channel_vigilance entries must be in [0, 1]")

        _require(_finite("alpha", self.alpha) > 0.0, f"alpha must be positive, got {self.alpha}")
        rate = _finite("channel_weight_rate", self.channel_weight_rate)
        _require(0.0 <= rate <= 1.0, f"channel_weight_rate must be in [0, 1], got {rate}")

    def with_overrides(self, **overrides: Any) -> "FusionParameters":
        # dimension always equals sum(channel_dims), so new channels re-derive it
        if "channel_dims" in overrides and "dimension" not in overrides:
            overrides["dimension"] = None
        return super().with_overrides(**overrides)

    @property
    def num_channels(self) -> int:
        return len(self.channel_dims)

    @property
    def channel_slices(self) -> Tuple[slice, ...]:
        """Slices of the concatenated pattern owned by each channel."""
        bounds = []
        start = 0
        for size in self.channel_dims:
            bounds.append(slice(start, start + size))
            start += size
        return tuple(bounds)


@dataclass(frozen=True)
class SalienceParameters(ARTParameters):
    """Salience-weighted fuzzy categories with per-feature relevance."""
    alpha: float = DEFAULT_ALPHA
    salience_rate: float = DEFAULT_SALIENCE_RATE        # λ of the relevance update
    relevance_scale: float = DEFAULT_RELEVANCE_SCALE    # std at which relevance is 1/e
    min_salience: float = DEFAULT_MIN_SALIENCE          # Salience floor

    def __post_init__(self):
        super().__post_init__()
        _require(self.learning_rate is not None, "learning_rate is required for salience categories")
        _require(_finite("alpha", self.alpha) > 0.0, f"alpha must be positive, got {self.alpha}")
        rate = _finite("salience_rate", self.salience_rate)
        _require(0.0 < rate <= 1.0, f"salience_rate must be in (0, 1], got {rate}")
        _require(_finite("relevance_scale", self.relevance_scale) > 0.0,
                 f"relevance_scale must be positive, got {self.relevance_scale}")
        floor = _finite("min_salience", self.min_salience)
        _require(0.0 < floor <= 1.0, f"min_salience must be in (0, 1], got {floor}")


# =============================================================================
# SECTION 3: Mapper Parameters
# =============================================================================

@dataclass(frozen=True)
class ARTMAPParameters(ParameterRecord):
    """
    Match-tracking configuration.

    After a map-field conflict the A vigilance becomes
    ``max(membership + epsilon, vigilance + min_vigilance_increment)``.
    """
    max_search_attempts: int = DEFAULT_MAX_SEARCH_ATTEMPTS
    epsilon: float = DEFAULT_MATCH_TRACKING_EPSILON
    min_vigilance_increment: float = 0.0

    def __post_init__(self):
        _require(isinstance(self.max_search_attempts, int) and not isinstance(self.max_search_attempts, bool),
                 f"max_search_attempts must be an int, got {self.max_search_attempts!r}")
        _require(self.max_search_attempts >= 1,
                 f"max_search_attempts must be >= 1, got {self.max_search_attempts}")
        _require(_finite("epsilon", self.epsilon) > 0.0, f"epsilon must be positive, got {self.epsilon}")
        _require(_finite("min_vigilance_increment", self.min_vigilance_increment) >= 0.0,
                 f"min_vigilance_increment must be non-negative, got {self.min_vigilance_increment}")
