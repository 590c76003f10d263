"""
Category geometries.

The set of shapes is closed: each parameter family maps to exactly one rule,
and each category class to the rule that produced it.
"""

from typing import Dict, Type

from ..errors import GeometryMismatch
from ..parameters import (
    ARTParameters,
    EllipsoidParameters,
    GaussianParameters,
    FusionParameters,
    SalienceParameters,
)
from .base import (
    Pattern,
    Category,
    GeometryRule,
    complement_code,
    require_unit_interval,
    frozen_array,
    fuzzy_and,
    l1_norm,
    safe_ratio,
)
from .ellipsoid import EllipsoidCategory, EllipsoidRule
from .gaussian import GaussianCategory, GaussianRule, floor_covariance
from .fusion import FusionCategory, FusionRule, split_channels, join_channels
from .salience import SalienceCategory, SalienceRule


_RULES: Dict[Type[ARTParameters], GeometryRule] = {
    EllipsoidParameters: EllipsoidRule(),
    GaussianParameters: GaussianRule(),
    FusionParameters: FusionRule(),
    SalienceParameters: SalienceRule(),
}

_RULES_BY_CATEGORY: Dict[Type[Category], GeometryRule] = {
    rule.category_type: rule for rule in _RULES.values()
}


def rule_for_parameters(params: ARTParameters) -> GeometryRule:
    """Rule of the parameter family ``params`` belongs to."""
    for family in type(params).__mro__:
        rule = _RULES.get(family)
        if rule is not None:
            return rule
    raise GeometryMismatch(f"No category geometry for {type(params).__name__}")


def rule_for(category: Category) -> GeometryRule:
    """Rule that produced ``category``."""
    rule = _RULES_BY_CATEGORY.get(type(category))
    if rule is None:
        raise GeometryMismatch(f"Unknown category type {type(category).__name__}")
    return rule


__all__ = [
    "Pattern",
    "Category",
    "GeometryRule",
    "complement_code",
    "require_unit_interval",
    "frozen_array",
    "fuzzy_and",
    "l1_norm",
    "safe_ratio",
    "EllipsoidCategory",
    "EllipsoidRule",
    "GaussianCategory",
    "GaussianRule",
    "floor_covariance",
    "FusionCategory",
    "FusionRule",
    "split_channels",
    "join_channels",
    "SalienceCategory",
    "SalienceRule",
    "rule_for_parameters",
    "rule_for",
]
