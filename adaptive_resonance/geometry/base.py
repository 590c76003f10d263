"""
Geometry Primitives

Pattern representation plus the contract every category geometry fulfils.

Design:
- Pattern wraps a read-only float64 vector. Treat it as immutable.
- Categories are frozen dataclasses over read-only arrays. ``update`` never
  mutates; it returns a new category carrying the same creation index.
- GeometryRule groups the choice function (activation), the match function
  (membership), the vigilance predicate (accept) and the learning rule
  (update) of one category shape.
"""

from __future__ import annotations
from typing import Any, ClassVar, Generic, Iterator, Sequence, Tuple, Type, TypeVar, Union
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from ..constants import EPSILON
from ..errors import InvalidPattern, GeometryMismatch
from ..parameters import ARTParameters


ArrayLike = Union[Sequence[float], np.ndarray, "Pattern"]


# =============================================================================
# SECTION 1: Pattern
# =============================================================================

def frozen_array(values: Any) -> np.ndarray:
    """Copy ``values`` into a read-only float64 array."""
    array = np.array(values, dtype=np.float64)
    array.setflags(write=False)
    return array


class Pattern:
    """
    Immutable input vector of fixed dimension.

    Equality and hashing are by content, so identical inputs compare equal
    regardless of where they came from.
    """

    __slots__ = ("_values",)

    def __init__(self, values: ArrayLike):
        if isinstance(values, Pattern):
            self._values = values._values
            return
        try:
            array = np.array(values, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidPattern(f"Pattern values must be numeric: {exc}") from None
        if array.ndim != 1:
            raise InvalidPattern(f"Pattern must be one-dimensional, got shape {array.shape}")
        if array.size == 0:
            raise InvalidPattern("Pattern cannot be empty")
        if not np.all(np.isfinite(array)):
            raise InvalidPattern("Pattern values must be finite")
        array.setflags(write=False)
        self._values = array

    @classmethod
    def of(cls, values: ArrayLike) -> "Pattern":
        if isinstance(values, Pattern):
            return values
        return cls(values)

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the features."""
        return self._values

    @property
    def dimension(self) -> int:
        return int(self._values.shape[0])

    def __len__(self) -> int:
        return self.dimension

    def __getitem__(self, item):
        return self._values[item]

    def __iter__(self) -> Iterator[float]:
        return iter(self._values.tolist())

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self._values
        return self._values.astype(dtype)

    def __eq__(self, other):
        if not isinstance(other, Pattern):
            return NotImplemented
        return np.array_equal(self._values, other._values)

    def __hash__(self):
        return hash(self._values.tobytes())

    def __repr__(self) -> str:
        if self.dimension <= 6:
            body = ", ".join(f"{v:.4g}" for v in self._values)
        else:
            head = ", ".join(f"{v:.4g}" for v in self._values[:3])
            body = f"{head}, ... ({self.dimension} features)"
        return f"Pattern([{body}])"


def complement_code(values: ArrayLike) -> Pattern:
    """
    Complement-code a pattern with features in [0, 1]: ``[x, 1 - x]``.

    Doubles the dimension and keeps the L1 norm constant, which stops fuzzy
    categories from eroding toward zero.
    """
    pattern = Pattern.of(values)
    require_unit_interval(pattern, "Complement coding")
    array = np.asarray(pattern)
    return Pattern(np.concatenate([array, 1.0 - array]))


def require_unit_interval(pattern: Pattern, context: str) -> None:
    """Raise InvalidPattern unless every feature lies in [0, 1]."""
    array = np.asarray(pattern)
    if np.any(array < 0.0) or np.any(array > 1.0):
        raise InvalidPattern(f"{context}: features must be in [0, 1]")


# =============================================================================
# SECTION 2: Vector Operations
# =============================================================================

def fuzzy_and(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Elementwise minimum (fuzzy intersection)."""
    return np.minimum(a, b)


def l1_norm(a: np.ndarray, axis: int = -1) -> Union[float, np.ndarray]:
    return np.sum(np.abs(a), axis=axis)


def safe_ratio(numerator, denominator, empty_value: float = 1.0):
    """
    ``numerator / denominator`` with ``empty_value`` where the denominator
    is below EPSILON.
    """
    numerator = np.asarray(numerator, dtype=np.float64)
    denominator = np.asarray(denominator, dtype=np.float64)
    empty = np.abs(denominator) < EPSILON
    guarded = np.where(empty, 1.0, denominator)
    ratio = np.where(empty, empty_value, numerator / guarded)
    if ratio.ndim == 0:
        return float(ratio)
    return ratio


# =============================================================================
# SECTION 3: Category and Rule Contract
# =============================================================================

@dataclass(frozen=True, eq=False)
class Category:
    """Base of every category: ``index`` is the stable creation index."""
    index: int


C = TypeVar("C", bound=Category)


class GeometryRule(ABC, Generic[C]):
    """
    Choice, match and learning functions for one category shape.

    Subclasses set ``category_type`` and ``parameter_type`` so dispatch is
    a closed lookup rather than open-ended inheritance.
    """

    category_type: ClassVar[Type[Category]] = Category
    parameter_type: ClassVar[Type[ARTParameters]] = ARTParameters
    name: ClassVar[str] = "base"

    @abstractmethod
    def create(self, pattern: Pattern, params: ARTParameters, index: int) -> C:
        """Seed a new category from ``pattern``."""

    @abstractmethod
    def activation(self, pattern: Pattern, category: C, params: ARTParameters) -> float:
        """Choice function: higher means a better candidate."""

    @abstractmethod
    def membership(self, pattern: Pattern, category: C, params: ARTParameters) -> float:
        """Match value in [0, 1] compared against vigilance."""

    @abstractmethod
    def update(self, pattern: Pattern, category: C, params: ARTParameters) -> C:
        """Return the category after learning ``pattern``."""

    @abstractmethod
    def representative(self, category: C) -> np.ndarray:
        """Point summarizing the category (centroid, mean, prototype)."""

    def activations(self, pattern: Pattern, categories: Sequence[C],
                    params: ARTParameters) -> np.ndarray:
        """Activation of every category, in the order given."""
        return np.array([self.activation(pattern, c, params) for c in categories],
                        dtype=np.float64)

    def evaluate(self, pattern: Pattern, category: C, params: ARTParameters,
                 vigilance: float) -> Tuple[float, bool]:
        """Membership and the vigilance verdict from a single match computation."""
        membership = self.membership(pattern, category, params)
        return membership, membership >= vigilance

    def accept(self, pattern: Pattern, category: C, params: ARTParameters,
               vigilance: float) -> bool:
        """Vigilance predicate."""
        return self.evaluate(pattern, category, params, vigilance)[1]

    def check_pattern(self, pattern: Pattern, params: ARTParameters) -> None:
        """Reject feature values the geometry cannot represent."""

    def vector_ops(self, dimension: int, params: ARTParameters) -> int:
        """Estimated vector operations for one activation + match."""
        return 2 * dimension

    def check_parameters(self, params: ARTParameters) -> None:
        if not isinstance(params, self.parameter_type):
            raise GeometryMismatch(
                f"{type(self).__name__} expects {self.parameter_type.__name__}, "
                f"got {type(params).__name__}"
            )

    def check_category(self, category: Category) -> None:
        if not isinstance(category, self.category_type):
            raise GeometryMismatch(
                f"{type(self).__name__} expects {self.category_type.__name__}, "
                f"got {type(category).__name__}"
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
