"""
Tests for the viewing geometry module.
"""

import numpy as np
import pytest

from glint_correction import geometry
from glint_correction.constants import VIEW_ANGLE_COLUMN_COEFFICIENT, VIEW_ANGLE_OFFSET


class TestCorrectViewAngle:
    """Tests for the across-track viewing angle correction."""

    def test_nadir(self):
        """Test that only the offset is applied at nadir."""
        assert geometry.correct_view_angle(20.0, 560, 560) == pytest.approx(20.0 + VIEW_ANGLE_OFFSET)

    def test_reduced_resolution(self):
        """Test the correction 100 columns from nadir."""
        expected = 20.0 + 100 * VIEW_ANGLE_COLUMN_COEFFICIENT + VIEW_ANGLE_OFFSET
        assert geometry.correct_view_angle(20.0, 460, 560) == pytest.approx(expected)

    def test_symmetric_about_nadir(self):
        """Test equal correction on both sides of nadir."""
        left = geometry.correct_view_angle(20.0, 500, 560)
        right = geometry.correct_view_angle(20.0, 620, 560)
        assert left == pytest.approx(right)

    def test_full_resolution_finer_columns(self):
        """Test that full resolution columns have a quarter of the coefficient."""
        rr = geometry.correct_view_angle(20.0, 660, 560) - (20.0 + VIEW_ANGLE_OFFSET)
        fr = geometry.correct_view_angle(20.0, 660, 560, full_resolution=True) - (20.0 + VIEW_ANGLE_OFFSET)
        assert fr == pytest.approx(rr / 4)

    def test_monotone_in_distance(self):
        """Test that the correction grows with the distance from nadir."""
        columns = np.arange(560, 1121, 40)
        corrected = geometry.correct_view_angle(30.0, columns, 560)
        assert np.all(np.diff(corrected) > 0)

    def test_returns_float_for_scalars(self):
        """Test that scalar input gives a Python float."""
        assert isinstance(geometry.correct_view_angle(10.0, 0, 560), float)


class TestAzimuthDifference:
    """Tests for the azimuth difference."""

    @pytest.mark.parametrize("view, sun, expected", [
        (250.0, 120.0, 130.0),
        (10.0, 350.0, 20.0),
        (0.0, 180.0, 180.0),
        (90.0, 90.0, 0.0),
        (-170.0, 170.0, 20.0),
    ])
    def test_values(self, view, sun, expected):
        """Test known azimuth differences, including wraparound."""
        assert geometry.azimuth_difference(view, sun) == pytest.approx(expected, abs=1e-6)

    def test_symmetric(self):
        """Test symmetry in the two arguments."""
        assert geometry.azimuth_difference(33.0, 271.0) == pytest.approx(
            geometry.azimuth_difference(271.0, 33.0))

    def test_range(self):
        """Test that the difference lies within [0, 180]."""
        view = np.linspace(-360, 720, 97)
        diff = geometry.azimuth_difference(view, 45.0)
        assert np.all((diff >= 0) & (diff <= 180))


class TestDirectionVector:
    """Tests for the Cartesian viewing direction."""

    def test_unit_length(self):
        """Test that the vector has unit length."""
        x, y, z = geometry.direction_vector(np.deg2rad(35.0), np.deg2rad(110.0))
        assert x ** 2 + y ** 2 + z ** 2 == pytest.approx(1.0)

    def test_nadir(self):
        """Test that a nadir view points straight up."""
        assert geometry.direction_vector(0.0, 1.0) == pytest.approx((0.0, 0.0, 1.0))

    def test_components(self):
        """Test the components for a 90 degree azimuth difference."""
        x, y, z = geometry.direction_vector(np.deg2rad(30.0), np.pi / 2)
        assert x == pytest.approx(0.0, abs=1e-12)
        assert y == pytest.approx(0.5)
        assert z == pytest.approx(np.sqrt(3) / 2)


class TestProductType:
    """Tests for the full resolution product type check."""

    @pytest.mark.parametrize("product_type, expected", [
        ("MER_FR__1P", True),
        ("MER_FRS_1P", True),
        ("MER_FSG_1P", True),
        ("mer_fr__1p", True),
        ("MER_RR__1P", False),
        ("ATS_TOA_1P", False),
    ])
    def test_product_types(self, product_type, expected):
        """Test product type classification."""
        assert geometry.is_full_resolution_product_type(product_type) is expected
