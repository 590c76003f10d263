"""
Vigilance Matcher

The canonical ART search: rank every category by activation, then walk the
ranking and accept the first candidate that passes the vigilance test.

    candidates = sort(categories, key=(-activation, creation index))
    for c in candidates:
        membership, accepted = evaluate(x, c, ρ)
        if accepted: return Success(c)
    return NoMatch

Vigilance may reject the best-ranked category while accepting a lower one,
so this is not a nearest-neighbour lookup.
"""

from __future__ import annotations
from typing import Collection, List, NamedTuple, Optional, Sequence

import numpy as np

from .geometry import GeometryRule, Pattern, Category, rule_for_parameters
from .parameters import ARTParameters
from .results import ActivationResult, NoMatch, Success


class Candidate(NamedTuple):
    """One entry of the search order."""
    position: int
    category: Category
    activation: float


class VigilanceMatcher:
    """
    Ordered scan with early accept over a snapshot of categories.

    The matcher is stateless; it reads the categories it is given and never
    mutates them. Locking is the caller's business.
    """

    def __init__(self, rule: Optional[GeometryRule] = None):
        self.rule = rule

    def _rule(self, params: ARTParameters) -> GeometryRule:
        if self.rule is not None:
            return self.rule
        return rule_for_parameters(params)

    def rank(self, pattern: Pattern, categories: Sequence[Category],
             params: ARTParameters, excluded: Collection[int] = ()) -> List[Candidate]:
        """
        Search order of ``categories``: activation descending, creation index
        ascending on ties. NaN activations go last.
        """
        if not categories:
            return []
        rule = self._rule(params)
        scores = np.asarray(rule.activations(pattern, categories, params), dtype=np.float64)
        candidates = [
            Candidate(position, category, float(score))
            for position, (category, score) in enumerate(zip(categories, scores))
            if category.index not in excluded
        ]
        candidates.sort(key=lambda c: (np.isnan(c.activation),
                                       -c.activation if not np.isnan(c.activation) else 0.0,
                                       c.category.index))
        return candidates

    def match(self, pattern: Pattern, categories: Sequence[Category], params: ARTParameters,
              vigilance: Optional[float] = None,
              excluded: Collection[int] = ()) -> ActivationResult:
        """
        Find the resonant category for ``pattern``.

        Args:
            pattern: Input pattern, dimension already checked
            categories: Snapshot in creation order
            params: Parameter set of the module
            vigilance: Runtime threshold; defaults to ``params.vigilance``.
                Match tracking passes raised values here, possibly above 1.
            excluded: Creation indices to skip

        Returns:
            Success with the winner, or NoMatch with the best membership seen
        """
        rho = params.vigilance if vigilance is None else vigilance
        rule = self._rule(params)
        tested = 0
        best = 0.0
        for candidate in self.rank(pattern, categories, params, excluded):
            tested += 1
            membership, accepted = rule.evaluate(pattern, candidate.category, params, rho)
            if membership > best:
                best = membership
            if accepted:
                return Success(
                    category_index=candidate.category.index,
                    position=candidate.position,
                    activation=candidate.activation,
                    membership=membership,
                )
        return NoMatch(candidates_tested=tested, best_membership=best)
