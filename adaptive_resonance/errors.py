"""
Exception hierarchy for the resonance engine.

Configuration problems fail at construction, dimension problems fail before
any mutation. Search exhaustion and degenerate geometry are handled locally
and never surface here.
"""

from typing import Optional


class ResonanceError(Exception):
    """Root of all errors raised by adaptive_resonance."""


class ParameterError(ResonanceError, ValueError):
    """Invalid configuration value in a parameter set."""


class InvalidPattern(ResonanceError, ValueError):
    """Pattern data that cannot be used as an input vector."""


class GeometryMismatch(ResonanceError, TypeError):
    """A parameter set or category of the wrong family was supplied."""


class DimensionMismatch(ResonanceError, ValueError):
    """Pattern dimension differs from the configured total dimension."""

    def __init__(self, expected: int, actual: int, context: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        message = f"Expected pattern dimension {expected}, got {actual}"
        if context:
            message = f"{context}: {message}"
        super().__init__(message)
