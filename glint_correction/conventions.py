"""
Input and output conventions of the correction networks.

Successive generations of trained networks expect reflectances in
different forms: radiance reflectance or irradiance reflectance
(radiance reflectance times pi), linear or natural logarithm. The same
network generation may also use different forms for its inputs and its
outputs. This module collects the conversions and a ``Convention`` enum
that pairs each encoding with its inverse.
"""

from enum import Enum

import numpy as np
from typing import Union

ArrayLike = Union[float, np.ndarray]


def multiply_pi(values: ArrayLike) -> np.ndarray:
    """Radiance reflectance to irradiance reflectance."""
    return np.asarray(values, dtype=float) * np.pi


def divide_pi(values: ArrayLike) -> np.ndarray:
    """Irradiance reflectance to radiance reflectance."""
    return np.asarray(values, dtype=float) / np.pi


def convert_logarithm(values: ArrayLike) -> np.ndarray:
    """Natural logarithm."""
    return np.log(np.asarray(values, dtype=float))


def convert_logarithm_divided_pi(values: ArrayLike) -> np.ndarray:
    """Logarithm of values divided by pi."""
    return np.log(divide_pi(values))


def convert_logarithm_multiplied_pi(values: ArrayLike) -> np.ndarray:
    """Logarithm of values multiplied by pi."""
    return np.log(multiply_pi(values))


def convert_exponential(values: ArrayLike) -> np.ndarray:
    """Exponential, inverse of :func:`convert_logarithm`."""
    return np.exp(np.asarray(values, dtype=float))


def convert_exponential_divide_pi(values: ArrayLike) -> np.ndarray:
    """Exponential divided by pi, inverse of :func:`convert_logarithm_multiplied_pi`."""
    return divide_pi(convert_exponential(values))


def convert_exponential_multiply_pi(values: ArrayLike) -> np.ndarray:
    """Exponential multiplied by pi, inverse of :func:`convert_logarithm_divided_pi`."""
    return multiply_pi(convert_exponential(values))


class Convention(Enum):
    """
    How a radiance reflectance is presented to, or read from, a network.

    Attributes
    ----------
    LINEAR
        Radiance reflectance as is.
    LINEAR_PI
        Irradiance reflectance, rl * pi.
    LOG
        log(rl).
    LOG_PI
        log(rl * pi).
    """

    LINEAR = "linear"
    LINEAR_PI = "linear_pi"
    LOG = "log"
    LOG_PI = "log_pi"

    def encode(self, reflectance: ArrayLike) -> np.ndarray:
        """
        Convert radiance reflectances into network values.

        Non-positive reflectances give NaN or -inf for the logarithmic
        conventions; input range checks treat those as out of range.
        """
        with np.errstate(divide="ignore", invalid="ignore"):
            if self is Convention.LINEAR:
                return np.array(reflectance, dtype=float)
            if self is Convention.LINEAR_PI:
                return multiply_pi(reflectance)
            if self is Convention.LOG:
                return convert_logarithm(reflectance)
            return convert_logarithm_multiplied_pi(reflectance)

    def decode(self, values: ArrayLike) -> np.ndarray:
        """Convert network values back into radiance reflectances."""
        if self is Convention.LINEAR:
            return np.array(values, dtype=float)
        if self is Convention.LINEAR_PI:
            return divide_pi(values)
        if self is Convention.LOG:
            return convert_exponential(values)
        return convert_exponential_divide_pi(values)

    @property
    def is_logarithmic(self) -> bool:
        """True for the log conventions."""
        return self in (Convention.LOG, Convention.LOG_PI)
