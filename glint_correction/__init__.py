"""
glint_correction: Neural-Network Atmospheric Correction for MERIS Ocean Colour
==============================================================================

A Python implementation of the MERIS glint-tolerant neural-network
atmospheric correction for coastal and case 2 waters. TOA radiances are
reduced to top-of-standard-atmosphere reflectances and handed to trained
feed-forward networks that return water-leaving reflectance, aerosol
optical thickness and water constituents, together with quality flags.

Main Classes
------------
GlintCorrection
    Per-pixel correction driven by one network generation.
NeuralNet
    Feed-forward network read from the ".net" text format.
PixelSample, CorrectionResult
    Per-pixel input and output records.

Modules
-------
geometry
    Viewing geometry fed to the networks.
tosa
    TOA radiance to TOSA reflectance reduction.
conventions
    Reflectance encodings of the networks.
scheme
    Wiring of the network generations.
quality
    Validity predicates and the TOSA quality indicator.
smile
    Smile correction of the solar flux.
batch
    Sequential correction of many pixels.

Example
-------
>>> from glint_correction import GlintCorrection, NeuralNet, INVERSE_AOT_SCHEME
>>> atmosphere_net = NeuralNet.load("31x47x37_21434.7.net")
>>> correction = GlintCorrection(atmosphere_net, INVERSE_AOT_SCHEME)
"""

__version__ = "0.1.0"

from glint_correction.correction import GlintCorrection
from glint_correction.neuralnet import NeuralNet
from glint_correction.pixel import CorrectionResult, PixelSample
from glint_correction.scheme import FLINT_SCHEME, INVERSE_AOT_SCHEME, NetScheme
from glint_correction.batch import correct_pixels
from glint_correction.constants import NO_FLINT_VALUE, NOT_AVAILABLE

__all__ = [
    "GlintCorrection",
    "NeuralNet",
    "CorrectionResult",
    "PixelSample",
    "NetScheme",
    "FLINT_SCHEME",
    "INVERSE_AOT_SCHEME",
    "correct_pixels",
    "NO_FLINT_VALUE",
    "NOT_AVAILABLE",
    "__version__",
]
