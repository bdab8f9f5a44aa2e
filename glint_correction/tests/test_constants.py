"""
Tests for the constants module.
"""

import numpy as np

from glint_correction import constants


class TestBands:
    """Tests for the band definitions."""

    def test_band_counts(self):
        """Test the sizes of the band tables."""
        assert len(constants.MERIS_L1B_WAVELENGTHS) == constants.MERIS_BAND_COUNT
        assert len(constants.MERIS_NOMINAL_SOLAR_FLUX) == constants.MERIS_BAND_COUNT
        assert len(constants.MERIS_WAVELENGTHS) == constants.TOSA_BAND_COUNT == 12
        assert len(constants.OZONE_ABSORPTION) == constants.TOSA_BAND_COUNT

    def test_network_bands_follow_l1b_bands(self):
        """Test that the network wavelengths match the selected L1b bands."""
        selected = np.array(constants.MERIS_L1B_WAVELENGTHS)[list(constants.TOSA_BAND_INDICES)]
        np.testing.assert_allclose(constants.get_wavelengths(), selected, atol=1.0)

    def test_reference_bands(self):
        """Test the 443 and 865 nm band indices."""
        wavelengths = constants.get_wavelengths()
        assert round(wavelengths[constants.BAND_443_INDEX]) == 442
        assert round(wavelengths[constants.BAND_865_INDEX]) == 865


class TestFlags:
    """Tests for the correction flag definitions."""

    def test_single_bits(self):
        """Test that every flag is a distinct single bit."""
        masks = [mask for mask, _ in constants.FLAG_CODING.values()]
        assert all(mask & (mask - 1) == 0 for mask in masks)
        assert len(set(masks)) == len(masks)

    def test_flag_names(self):
        """Test naming the flags of a bitmask."""
        flag = constants.LAND | constants.INPUT_INVALID | constants.TOA_OOR
        assert constants.get_flag_names(flag) == ("LAND", "TOA_OOR", "INPUT_INVALID")
        assert constants.get_flag_names(0) == ()
