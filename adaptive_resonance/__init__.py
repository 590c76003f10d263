"""
Adaptive Resonance - Online Category Learning

Stable/plastic clustering with vigilance-gated resonance, several category
geometries (ellipsoid, Gaussian, multi-channel fusion, salience-weighted)
and ARTMAP match tracking for supervised mapping.
"""

__version__ = "0.1.0"

from .errors import (
    ResonanceError,
    ParameterError,
    DimensionMismatch,
    InvalidPattern,
    GeometryMismatch,
)
from .parameters import (
    ARTParameters,
    EllipsoidParameters,
    GaussianParameters,
    FusionParameters,
    SalienceParameters,
    ARTMAPParameters,
)
from .geometry import (
    Pattern,
    Category,
    complement_code,
    EllipsoidCategory,
    GaussianCategory,
    FusionCategory,
    SalienceCategory,
    split_channels,
    join_channels,
)
from .results import (
    ActivationResult,
    Success,
    NoMatch,
    MatchTrackingState,
    ARTMAPResult,
    ARTMAPPrediction,
)
from .matcher import VigilanceMatcher
from .store import CategoryStore
from .performance import PerformanceSnapshot
from .optimizer import OptimizationPolicy, OptimizationReport
from .module import ARTModule
from .artmap import ARTMAP

__all__ = [
    "ResonanceError",
    "ParameterError",
    "DimensionMismatch",
    "InvalidPattern",
    "GeometryMismatch",
    "ARTParameters",
    "EllipsoidParameters",
    "GaussianParameters",
    "FusionParameters",
    "SalienceParameters",
    "ARTMAPParameters",
    "Pattern",
    "Category",
    "complement_code",
    "EllipsoidCategory",
    "GaussianCategory",
    "FusionCategory",
    "SalienceCategory",
    "split_channels",
    "join_channels",
    "ActivationResult",
    "Success",
    "NoMatch",
    "MatchTrackingState",
    "ARTMAPResult",
    "ARTMAPPrediction",
    "VigilanceMatcher",
    "CategoryStore",
    "PerformanceSnapshot",
    "OptimizationPolicy",
    "OptimizationReport",
    "ARTModule",
    "ARTMAP",
]
