"""
Tests for the network reflectance conventions.
"""

import numpy as np
import pytest

from glint_correction import conventions
from glint_correction.conventions import Convention


class TestConverters:
    """Tests for the conversion functions."""

    def test_pi_factors(self):
        """Test multiplication and division by pi."""
        assert conventions.multiply_pi(1.0) == pytest.approx(np.pi)
        assert conventions.divide_pi(np.pi) == pytest.approx(1.0)

    def test_logarithms(self):
        """Test the logarithmic converters."""
        assert conventions.convert_logarithm(np.e) == pytest.approx(1.0)
        assert conventions.convert_logarithm_divided_pi(np.pi) == pytest.approx(0.0)
        assert conventions.convert_logarithm_multiplied_pi(1.0 / np.pi) == pytest.approx(0.0)

    def test_exponentials_invert_logarithms(self):
        """Test that each exponential converter inverts its logarithm."""
        values = np.array([0.001, 0.02, 0.3])
        np.testing.assert_allclose(
            conventions.convert_exponential(conventions.convert_logarithm(values)), values)
        np.testing.assert_allclose(
            conventions.convert_exponential_multiply_pi(
                conventions.convert_logarithm_divided_pi(values)), values)
        np.testing.assert_allclose(
            conventions.convert_exponential_divide_pi(
                conventions.convert_logarithm_multiplied_pi(values)), values)


class TestConvention:
    """Tests for the Convention enum."""

    @pytest.mark.parametrize("convention", list(Convention))
    def test_decode_inverts_encode(self, convention):
        """Test that decoding an encoded reflectance gives it back."""
        rl = np.array([0.004, 0.01, 0.05])
        np.testing.assert_allclose(convention.decode(convention.encode(rl)), rl)

    def test_log_pi_encoding(self):
        """Test the log(rl * pi) encoding."""
        assert Convention.LOG_PI.encode(0.01) == pytest.approx(np.log(0.01 * np.pi))

    def test_linear_pi_encoding(self):
        """Test the irradiance reflectance encoding."""
        assert Convention.LINEAR_PI.encode(0.01) == pytest.approx(0.01 * np.pi)

    def test_non_positive_log(self):
        """Test that non-positive reflectances do not raise for log encodings."""
        encoded = Convention.LOG.encode([-0.01, 0.0])
        assert np.isnan(encoded[0])
        assert np.isneginf(encoded[1])

    def test_is_logarithmic(self):
        """Test the logarithmic property."""
        assert Convention.LOG.is_logarithmic
        assert Convention.LOG_PI.is_logarithmic
        assert not Convention.LINEAR.is_logarithmic
