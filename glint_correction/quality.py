"""
Pixel validity predicates and quality measures.

The predicates decode the per-pixel input bitmasks. The quality measures
compare the TOSA reflectance with its reproduction by the
autoassociative network: a pixel whose spectrum the network cannot
reproduce lies outside the training domain of the correction.
"""

import numpy as np
from typing import Sequence

from glint_correction.constants import (
    CLOUD,
    CLOUD_BUFFER,
    CLOUD_SHADOW,
    DEFAULT_L2R_INVALID_FACTOR,
    L1_INVALID,
    L2R_INVALID,
    L2R_SUSPECT,
    MIXED_PIXEL,
    NO_FLINT_VALUE,
    OZONE_RANGE,
    PRESSURE_RANGE,
    SNOW_ICE,
    VALIDATION_CLOUD_ICE,
    VALIDATION_LAND,
    VALIDATION_RLTOA_OOR,
)


def is_land(validation: int) -> bool:
    """Land bit of the validation mask."""
    return bool(validation & VALIDATION_LAND)


def is_cloud_ice(validation: int) -> bool:
    """Cloud/ice bit of the validation mask."""
    return bool(validation & VALIDATION_CLOUD_ICE)


def is_toa_out_of_range(validation: int) -> bool:
    """TOA reflectance out-of-range bit of the validation mask."""
    return bool(validation & VALIDATION_RLTOA_OOR)


def is_l1_invalid(l1_flags: int) -> bool:
    """INVALID bit of the L1b flags."""
    return bool(l1_flags & L1_INVALID)


def is_flint_value_valid(flint_value: float) -> bool:
    """
    Tell whether a FLINT value is usable.

    The no-data sentinel, zero and non-finite values are not.
    """
    return bool(np.isfinite(flint_value)) and flint_value != NO_FLINT_VALUE and flint_value != 0.0


def is_ancillary_data_valid(ozone: float, pressure: float) -> bool:
    """
    Check ozone and surface pressure against their plausible ranges.

    Parameters
    ----------
    ozone : float
        Total ozone column [DU].
    pressure : float
        Surface pressure [hPa].

    Returns
    -------
    bool
        True if ozone is within [200, 500] DU and pressure within
        [500, 1100] hPa.
    """
    return bool(
        OZONE_RANGE[0] <= ozone <= OZONE_RANGE[1]
        and PRESSURE_RANGE[0] <= pressure <= PRESSURE_RANGE[1]
    )


def tosa_quality_indicator(
    rl_tosa: Sequence[float],
    auto_rl_tosa: Sequence[float],
) -> float:
    """
    Relative RMS difference between TOSA and autoassociative reflectance.

    Parameters
    ----------
    rl_tosa : array_like
        TOSA radiance reflectance.
    auto_rl_tosa : array_like
        The same spectrum as reproduced by the autoassociative network.

    Returns
    -------
    float
        Indicator >= 0; infinite when a relative difference is undefined
        (non-positive reflectance, or TOSA reflectance of 1).

    Notes
    -----
    Differences are taken in log space:

    .. math::

        q = \\sqrt{\\frac{1}{n} \\sum_i
            \\left(\\frac{\\ln r_i - \\ln a_i}{\\ln r_i}\\right)^2}
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        log_tosa = np.log(np.asarray(rl_tosa, dtype=float))
        log_auto = np.log(np.asarray(auto_rl_tosa, dtype=float))
        relative = (log_tosa - log_auto) / log_tosa
    if not np.all(np.isfinite(relative)):
        return float(np.inf)
    return float(np.sqrt(np.mean(relative ** 2)))


def chi_sqr_from_largest_diffs(
    reference: Sequence[float],
    values: Sequence[float],
    n_terms: int,
) -> float:
    """
    Mean of the largest squared relative differences.

    Parameters
    ----------
    reference : array_like
        Reference values, the denominators of the relative differences.
    values : array_like
        Values compared with the reference.
    n_terms : int
        Number of largest terms averaged, 1 <= n_terms <= len(reference).

    Returns
    -------
    float
        Mean of the ``n_terms`` largest ``((reference - values) / reference)^2``.

    Examples
    --------
    >>> chi_sqr_from_largest_diffs([2, 4, 3, 1], [3, 1, 0, 11], 2)
    50.5
    """
    a = np.asarray(reference, dtype=float)
    b = np.asarray(values, dtype=float)
    if a.shape != b.shape:
        raise ValueError(f"Shapes differ: {a.shape} and {b.shape}")
    if not 1 <= n_terms <= a.size:
        raise ValueError(f"n_terms must be within [1, {a.size}], got {n_terms}")
    terms = np.sort(((a - b) / a) ** 2)
    return float(np.mean(terms[-n_terms:]))


def l2r_flags(
    cloud_flags: int,
    quality_indicator: float,
    threshold: float,
    invalid_factor: float = DEFAULT_L2R_INVALID_FACTOR,
) -> int:
    """
    Validity tier of the water-leaving reflectance.

    Parameters
    ----------
    cloud_flags : int
        Pixel classification bits.
    quality_indicator : float
        TOSA quality indicator, NaN if not computed.
    threshold : float
        Threshold of the quality indicator.
    invalid_factor : float, optional
        Multiple of ``threshold`` above which the reflectance is invalid.
        Default is 2.

    Returns
    -------
    int
        L2R_INVALID and/or L2R_SUSPECT bits, or 0.
    """
    if invalid_factor < 1.0:
        raise ValueError(f"invalid_factor must be >= 1, got {invalid_factor}")
    flag = 0
    if cloud_flags & (CLOUD | SNOW_ICE) or quality_indicator > invalid_factor * threshold:
        flag |= L2R_INVALID
    if cloud_flags & (CLOUD_BUFFER | CLOUD_SHADOW | MIXED_PIXEL) or quality_indicator > threshold:
        flag |= L2R_SUSPECT
    return flag
