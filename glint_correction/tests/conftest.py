"""
Pytest configuration and shared fixtures for glint_correction tests.

The networks used here are small synthetic networks with linear
activation. They are rendered to the ".net" text format and parsed back,
so every test also goes through the network parser.
"""

import numpy as np
import pytest

from glint_correction.constants import MERIS_NOMINAL_SOLAR_FLUX
from glint_correction.correction import GlintCorrection
from glint_correction.neuralnet import NeuralNet, net_to_text
from glint_correction.pixel import PixelSample
from glint_correction.scheme import INVERSE_AOT_SCHEME


def _build_net(weights, biases, in_min, in_max, out_min, out_max, activation="linear"):
    net = NeuralNet(
        weights=weights,
        biases=biases,
        in_min=in_min,
        in_max=in_max,
        out_min=out_min,
        out_max=out_max,
        activation=activation,
    )
    return NeuralNet.from_text(net_to_text(net, header="problem: synthetic test net"))


def _constant_net(in_min, in_max, outputs, out_max=None):
    """Net returning ``outputs`` whatever the input (zero weights, zero bias)."""
    outputs = np.asarray(outputs, dtype=float)
    if out_max is None:
        out_max = outputs + 1.0
    weights = [np.zeros((outputs.size, len(in_min)))]
    biases = [np.zeros(outputs.size)]
    return _build_net(weights, biases, in_min, in_max, outputs, out_max)


def _input_ranges(n_head, tosa_range=(-10.0, 2.0), flint=False):
    """Wide input ranges: sun zenith, x, y, z, [temperature, salinity], 12 TOSA, [flint]."""
    in_min = [0.0, -1.0, -1.0, -1.0]
    in_max = [80.0, 1.0, 1.0, 1.0]
    if n_head == 6:
        in_min += [-5.0, 0.0]
        in_max += [40.0, 45.0]
    in_min += [tosa_range[0]] * 12
    in_max += [tosa_range[1]] * 12
    if flint:
        in_min.append(0.0)
        in_max.append(1.0)
    return in_min, in_max


@pytest.fixture
def build_net():
    """Factory building a network through its text representation."""
    return _build_net


@pytest.fixture
def constant_net():
    """Factory building a network with constant output."""
    return _constant_net


@pytest.fixture
def input_ranges():
    """Factory for the input ranges of 18-input (or FLINT 17-input) networks."""
    return _input_ranges


@pytest.fixture
def ocean_reflectance():
    """Typical clear ocean TOA reflectance for the 15 MERIS bands [sr^-1]."""
    return np.array([
        0.050, 0.045, 0.040, 0.035, 0.030,
        0.025, 0.020, 0.020, 0.018, 0.016,
        0.015, 0.015, 0.012, 0.011, 0.010,
    ])


@pytest.fixture
def typical_geometry():
    """Typical sun and viewing geometry [degrees]."""
    return {
        'sun_zenith': 30.0,
        'sun_azimuth': 120.0,
        'view_zenith': 20.0,
        'view_azimuth': 250.0,
    }


@pytest.fixture
def ocean_pixel(ocean_reflectance, typical_geometry):
    """Valid open ocean pixel at nadir with standard ancillary data."""
    solar_flux = np.array(MERIS_NOMINAL_SOLAR_FLUX)
    cos_sun = np.cos(np.deg2rad(typical_geometry['sun_zenith']))
    return PixelSample(
        toa_radiance=ocean_reflectance * solar_flux * cos_sun,
        solar_flux=solar_flux,
        altitude=0.0,
        pressure=1013.0,
        ozone=300.0,
        **typical_geometry,
    )


@pytest.fixture
def atmosphere_net():
    """Main net of the inverse AOT generation returning rw = 0.01 in every band."""
    in_min, in_max = _input_ranges(6)
    return _constant_net(in_min, in_max, np.log(np.full(12, 0.01)))


@pytest.fixture
def simple_correction(atmosphere_net):
    """Correction with the main network only."""
    return GlintCorrection(atmosphere_net, INVERSE_AOT_SCHEME)


@pytest.fixture
def pixel_with(ocean_pixel):
    """Factory for a copy of the ocean pixel with some fields changed."""
    def _replace(**changes):
        values = {name: getattr(ocean_pixel, name) for name in ocean_pixel.__dataclass_fields__}
        values.update(changes)
        return PixelSample(**values)
    return _replace
