# adaptive_resonance/constants.py
"""
Adaptive Resonance Constants

Numeric floors and default hyper-parameters shared by every geometry:

LAYER 1: Numerical Stability
- EPSILON: floor for every division, radius and variance

LAYER 2: Search Defaults
- DEFAULT_VIGILANCE: resonance threshold ρ
- DEFAULT_LEARNING_RATE: β, fast learning when 1.0

LAYER 3: Match Tracking Defaults
- DEFAULT_MAX_SEARCH_ATTEMPTS: bound on ARTMAP re-searches per step
- DEFAULT_MATCH_TRACKING_EPSILON: margin above the rejected winner's membership
"""


# =============================================================================
# LAYER 1: Numerical Stability
# =============================================================================

EPSILON = 1e-10


# =============================================================================
# LAYER 2: Search Defaults
# =============================================================================

DEFAULT_VIGILANCE = 0.75
DEFAULT_LEARNING_RATE = 1.0
DEFAULT_ALPHA = 1e-3          # Choice parameter for fuzzy/ellipsoid activations

# Ellipsoid shape
DEFAULT_MU = 0.8              # Minor/major axis ratio
DEFAULT_R_HAT = 1.0           # Maximum category diameter

# Gaussian shape
DEFAULT_SIGMA_INIT = 0.5
DEFAULT_MIN_VARIANCE = 1e-6

# Salience
DEFAULT_SALIENCE_RATE = 0.1
DEFAULT_RELEVANCE_SCALE = 0.1
DEFAULT_MIN_SALIENCE = 1e-3


# =============================================================================
# LAYER 3: Match Tracking Defaults
# =============================================================================

DEFAULT_MAX_SEARCH_ATTEMPTS = 20
DEFAULT_MATCH_TRACKING_EPSILON = 1e-6

assert 0 <= DEFAULT_VIGILANCE <= 1, "Default vigilance must lie in [0, 1]"
