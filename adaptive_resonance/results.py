"""
Result Types

Outcome of a single match attempt (ActivationResult) and of one ARTMAP
learning step or prediction.
"""

from __future__ import annotations
from typing import Any, Hashable, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum


class ActivationResult:
    """Tagged outcome of a category search: ``Success`` or ``NoMatch``."""

    @property
    def is_success(self) -> bool:
        return isinstance(self, Success)


@dataclass(frozen=True)
class Success(ActivationResult):
    """
    A category resonated with the pattern.

    Attributes:
        category_index: Creation index of the winning category
        position: Position of the winner in the store at search time
        activation: Choice-function value of the winner
        membership: Match value that passed the vigilance test
        created: True when the category was created for this pattern
    """
    category_index: int
    position: int
    activation: float
    membership: float
    created: bool = False


@dataclass(frozen=True)
class NoMatch(ActivationResult):
    """
    No category passed vigilance.

    Attributes:
        candidates_tested: Number of candidates examined before giving up
        best_membership: Highest membership seen (0.0 when nothing tested)
    """
    candidates_tested: int = 0
    best_membership: float = 0.0

    @property
    def category_index(self) -> int:
        return -1


class MatchTrackingState(Enum):
    """States of one ARTMAP learning step."""
    SEARCH_A = "search_a"
    CHECK_MAP = "check_map"
    RAISE_VIGILANCE = "raise_vigilance"
    RESONANCE = "resonance"
    FAIL = "fail"

    @property
    def is_terminal(self) -> bool:
        return self in (MatchTrackingState.RESONANCE, MatchTrackingState.FAIL)


@dataclass(frozen=True)
class ARTMAPResult:
    """
    Outcome of one ARTMAP learning step.

    ``state`` is always terminal. ``rejected`` lists the A categories that
    won the search but conflicted with the target, in rejection order.
    """
    state: MatchTrackingState
    a_index: int
    b_label: Optional[Hashable]
    attempts: int
    final_vigilance: float
    new_mapping: bool
    rejected: Tuple[int, ...] = ()
    exhausted: bool = False
    a_result: Optional[ActivationResult] = field(default=None, repr=False)
    b_result: Optional[ActivationResult] = field(default=None, repr=False)

    @property
    def is_resonance(self) -> bool:
        return self.state is MatchTrackingState.RESONANCE


@dataclass(frozen=True)
class ARTMAPPrediction:
    """Predicted label for a pattern; ``b_label`` is None when nothing maps."""
    a_index: int
    b_label: Optional[Any]
    activation: float = 0.0
    membership: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.b_label is not None
