"""
Tests for the Poly6 and Spiky kernels.
"""

import numpy as np
import pytest
from sphfluid.core.kernels import (poly6, spiky_grad_mag, poly6_vectorized,
                                   spiky_grad_mag_vectorized)


class TestSupport:
    """Kernels vanish outside the support radius."""

    @pytest.mark.parametrize("r", [0.5, 1.0, 24.0])
    def test_zero_beyond_radius(self, r):
        for d in (r * 1.0000001, r * 1.5, r * 10.0):
            assert poly6(d, r) == 0.0
            assert spiky_grad_mag(d, r) == 0.0

        d = np.array([r * 1.01, r * 2.0, r * 100.0])
        assert np.all(poly6_vectorized(d, r) == 0.0)
        assert np.all(spiky_grad_mag_vectorized(d, r) == 0.0)

    def test_zero_at_radius(self):
        assert poly6(2.0, 2.0) == 0.0
        assert spiky_grad_mag(2.0, 2.0) == 0.0


class TestValues:
    """Kernel values inside the support."""

    def test_poly6_at_origin(self):
        r = 2.0
        expected = 315.0 / (64.0 * np.pi * r ** 9) * r ** 3
        assert poly6(0.0, r) == pytest.approx(expected)

    def test_spiky_at_origin(self):
        r = 2.0
        expected = -45.0 / (np.pi * r ** 6) * r ** 2
        assert spiky_grad_mag(0.0, r) == pytest.approx(expected)

    @pytest.mark.parametrize("r", [1.0, 24.0])
    def test_poly6_non_negative_and_non_increasing(self, r):
        d = np.linspace(0.0, r, 201)
        values = poly6_vectorized(d, r)
        assert np.all(values >= 0.0)
        assert np.all(np.diff(values) <= 0.0)

    def test_spiky_negative_inside(self):
        d = np.linspace(0.0, 0.99, 50)
        assert np.all(spiky_grad_mag_vectorized(d, 1.0) < 0.0)

    def test_vectorized_matches_scalar(self):
        r = 3.0
        d = np.array([0.0, 0.3, 1.2, 2.9, 3.0, 3.5])
        np.testing.assert_allclose(poly6_vectorized(d, r), [poly6(x, r) for x in d])
        np.testing.assert_allclose(spiky_grad_mag_vectorized(d, r),
                                   [spiky_grad_mag(x, r) for x in d])

    def test_vectorized_keeps_shape(self):
        d = np.zeros((4, 3))
        assert poly6_vectorized(d, 1.0).shape == (4, 3)
