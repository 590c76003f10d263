"""
Tests for patterns and fuzzy primitives
"""

import pytest
import numpy as np

from adaptive_resonance import Pattern, InvalidPattern, complement_code
from adaptive_resonance.geometry import fuzzy_and, l1_norm, require_unit_interval, safe_ratio


class TestPattern:
    def test_values_are_read_only(self):
        pattern = Pattern([0.1, 0.2, 0.3])
        assert pattern.dimension == 3
        assert len(pattern) == 3
        with pytest.raises(ValueError):
            pattern.values[0] = 1.0

    def test_source_array_is_copied(self):
        source = np.array([0.5, 0.5])
        pattern = Pattern(source)
        source[0] = 9.0
        assert pattern[0] == 0.5

    def test_equality_and_hash_by_content(self):
        a = Pattern([0.1, 0.2])
        b = Pattern(np.array([0.1, 0.2]))
        assert a == b
        assert hash(a) == hash(b)
        assert a != Pattern([0.2, 0.1])
        assert len({a, b}) == 1

    def test_of_reuses_pattern(self):
        pattern = Pattern([1.0])
        assert Pattern.of(pattern) is pattern

    def test_asarray(self):
        pattern = Pattern([1, 2])
        array = np.asarray(pattern)
        assert array.dtype == np.float64
        np.testing.assert_array_equal(array, [1.0, 2.0])

    @pytest.mark.parametrize("values", [[], [[0.1, 0.2]], [0.1, float("nan")], [float("inf")], "abc"])
    def test_invalid_inputs(self, values):
        with pytest.raises(InvalidPattern):
            Pattern(values)

    def test_invalid_pattern_is_value_error(self):
        with pytest.raises(ValueError):
            Pattern([])


class TestComplementCode:
    def test_doubles_dimension(self):
        coded = complement_code([0.2, 0.7])
        np.testing.assert_allclose(coded.values, [0.2, 0.7, 0.8, 0.3])

    def test_constant_norm(self):
        for values in ([0.0, 0.0], [1.0, 0.3], [0.5, 0.5]):
            assert l1_norm(complement_code(values).values) == pytest.approx(2.0)

    def test_rejects_out_of_range(self):
        with pytest.raises(InvalidPattern):
            complement_code([1.2, 0.1])


class TestFuzzyPrimitives:
    def test_fuzzy_and(self):
        np.testing.assert_array_equal(fuzzy_and(np.array([0.2, 0.9]), np.array([0.5, 0.4])), [0.2, 0.4])

    def test_safe_ratio_empty_denominator(self):
        assert safe_ratio(0.0, 0.0) == 1.0
        assert safe_ratio(0.0, 0.0, empty_value=0.0) == 0.0
        assert safe_ratio(1.0, 4.0) == pytest.approx(0.25)

    def test_safe_ratio_negative_denominator_is_not_empty(self):
        assert safe_ratio(1.0, -2.0) == pytest.approx(-0.5)
        np.testing.assert_allclose(safe_ratio(np.array([1.0, 1.0]), np.array([0.0, -4.0])), [1.0, -0.25])


class TestUnitInterval:
    def test_accepts_bounds(self):
        require_unit_interval(Pattern([0.0, 0.5, 1.0]), "Fuzzy input")

    @pytest.mark.parametrize("values", [[-0.1, 0.5], [0.5, 1.01]])
    def test_rejects_outside(self, values):
        with pytest.raises(InvalidPattern):
            require_unit_interval(Pattern(values), "Fuzzy input")
