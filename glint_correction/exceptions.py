"""
Exception hierarchy for the neural-network atmospheric correction.

Configuration errors (malformed network files, input vectors of the wrong
length, inconsistent network wiring) abort a processing run. Pixel errors
concern one pixel only and let the caller decide whether to flag the pixel
or abort. Data-quality problems are never raised; they are encoded in the
result flags.
"""


class GlintCorrectionError(Exception):
    """Base exception for all correction errors."""


class ConfigurationError(GlintCorrectionError):
    """Invalid setup of networks, schemes or auxiliary data."""


class NetParseError(ConfigurationError, ValueError):
    """Network definition text is structurally inconsistent."""


class DimensionError(ConfigurationError, ValueError):
    """Input vector length does not match the network input count."""


class PixelError(GlintCorrectionError, ValueError):
    """A single pixel cannot be corrected."""


class GeometryDomainError(PixelError):
    """Zenith angle at or beyond 90 degrees.

    Raised instead of returning infinite values from divisions by the
    cosine of the sun or view zenith angle.
    """


class InputDataError(PixelError):
    """Malformed per-pixel input (band count, detector index)."""


class ProcessingCancelled(GlintCorrectionError):
    """Batch processing was cancelled between two pixels."""
