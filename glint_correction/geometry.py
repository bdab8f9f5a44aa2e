"""
Viewing geometry of a pixel as seen by the correction networks.

The networks do not take raw angles. They are trained on the sun zenith
angle and a unit vector built from the viewing zenith angle and the
azimuth difference between sun and sensor. This module provides:

- Column dependent correction of the MERIS viewing zenith angle
- Wraparound-safe azimuth difference
- The Cartesian direction vector fed to the networks

All functions are pure and accept scalars or numpy arrays.
"""

import numpy as np
from typing import Tuple, Union

from glint_correction.constants import (
    FR_SAMPLING_RATIO,
    VIEW_ANGLE_COLUMN_COEFFICIENT,
    VIEW_ANGLE_OFFSET,
)


def correct_view_angle(
    view_zenith: Union[float, np.ndarray],
    pixel_x: Union[int, np.ndarray],
    nadir_column: int,
    full_resolution: bool = False,
) -> Union[float, np.ndarray]:
    """
    Apply the across-track correction to the viewing zenith angle.

    Parameters
    ----------
    view_zenith : float or array_like
        Viewing zenith angle from the L1b tie-point grid [degrees].
    pixel_x : int or array_like
        Column index of the pixel in the scene.
    nadir_column : int
        Column index of the sub-satellite track.
    full_resolution : bool, optional
        True for full resolution scenes. Default is False.

    Returns
    -------
    float or ndarray
        Corrected viewing zenith angle [degrees].

    Notes
    -----
    The correction grows linearly with the distance from nadir:

    .. math::

        \\theta_v' = \\theta_v + c_2 |x - x_0| + c_1

    Full resolution columns are four times narrower than reduced
    resolution columns, so :math:`c_2` is divided by the sampling ratio.

    Examples
    --------
    >>> correct_view_angle(20.0, 560, 560)
    19.995207
    """
    column_coefficient = VIEW_ANGLE_COLUMN_COEFFICIENT
    if full_resolution:
        column_coefficient = column_coefficient / FR_SAMPLING_RATIO
    distance = np.abs(np.asarray(pixel_x) - nadir_column)
    corrected = view_zenith + distance * column_coefficient + VIEW_ANGLE_OFFSET
    if np.ndim(corrected) == 0:
        return float(corrected)
    return corrected


def azimuth_difference(
    view_azimuth: Union[float, np.ndarray],
    sun_azimuth: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Calculate the azimuth difference between sensor and sun.

    Parameters
    ----------
    view_azimuth : float or array_like
        Viewing azimuth angle [degrees].
    sun_azimuth : float or array_like
        Solar azimuth angle [degrees].

    Returns
    -------
    float or ndarray
        Azimuth difference in [0, 180] degrees.

    Notes
    -----
    Computed as :math:`\\arccos(\\cos(\\phi_v - \\phi_s))`, which handles
    any wraparound of the input angles and is symmetric in its arguments.
    """
    delta = np.deg2rad(view_azimuth) - np.deg2rad(sun_azimuth)
    # rounding can push cos slightly outside [-1, 1]
    difference = np.rad2deg(np.arccos(np.clip(np.cos(delta), -1.0, 1.0)))
    if np.ndim(difference) == 0:
        return float(difference)
    return difference


def direction_vector(
    view_zenith_rad: float,
    azimuth_difference_rad: float,
) -> Tuple[float, float, float]:
    """
    Convert viewing zenith and azimuth difference into a unit vector.

    Parameters
    ----------
    view_zenith_rad : float
        Corrected viewing zenith angle [radians].
    azimuth_difference_rad : float
        Azimuth difference [radians].

    Returns
    -------
    tuple of float
        (x, y, z) components, used verbatim as network inputs.
    """
    sin_view = np.sin(view_zenith_rad)
    x = sin_view * np.cos(azimuth_difference_rad)
    y = sin_view * np.sin(azimuth_difference_rad)
    z = np.cos(view_zenith_rad)
    return float(x), float(y), float(z)


def is_full_resolution_product_type(product_type: str) -> bool:
    """
    Tell whether a MERIS product type denotes a full resolution product.

    Parameters
    ----------
    product_type : str
        Product type, e.g. 'MER_FR__1P', 'MER_FSG_1P' or 'MER_RR__1P'.

    Returns
    -------
    bool
        True for full resolution products.
    """
    return product_type.strip().upper().startswith("MER_F")
