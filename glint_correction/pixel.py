"""
Per-pixel input and output records of the atmospheric correction.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from glint_correction.constants import (
    NADIR_COLUMN_RR,
    NO_FLINT_VALUE,
    NOT_AVAILABLE,
    TOSA_BAND_INDICES,
    get_flag_names,
)
from glint_correction.exceptions import InputDataError


@dataclass(frozen=True, eq=False)
class PixelSample:
    """
    Everything the correction needs to know about one pixel.

    Attributes
    ----------
    toa_radiance : ndarray
        TOA radiance per L1b band [W m^-2 sr^-1 um^-1].
    solar_flux : ndarray
        Solar flux per L1b band, sun-earth distance included [W m^-2 um^-1].
    altitude : float
        Surface altitude [m].
    sun_zenith, sun_azimuth : float
        Solar angles [degrees].
    view_zenith, view_azimuth : float
        Viewing angles [degrees]. The zenith angle is uncorrected.
    pressure : float
        Surface pressure [hPa].
    ozone : float
        Total ozone column [DU].
    validation : int
        Land/cloud-ice/TOA-out-of-range classifier bits.
    l1_flags : int
        L1b quality flags.
    cloud_flags : int, optional
        Pixel classification bits (cloud, cloud buffer, shadow, snow/ice,
        mixed pixel). Default is 0.
    detector_index : int, optional
        Detector that recorded the pixel, -1 if unknown.
    flint_value : float, optional
        Collocated FLINT reflectance, ``NO_FLINT_VALUE`` if absent.
    pixel_x : int, optional
        Column index in the scene.
    nadir_column : int, optional
        Column index of the sub-satellite track.
    full_resolution : bool, optional
        True for full resolution scenes.

    Raises
    ------
    InputDataError
        If the band arrays differ in length or cannot hold the network bands.
    """

    toa_radiance: np.ndarray
    solar_flux: np.ndarray
    altitude: float
    sun_zenith: float
    sun_azimuth: float
    view_zenith: float
    view_azimuth: float
    pressure: float
    ozone: float
    validation: int = 0
    l1_flags: int = 0
    cloud_flags: int = 0
    detector_index: int = -1
    flint_value: float = NO_FLINT_VALUE
    pixel_x: int = NADIR_COLUMN_RR
    nadir_column: int = NADIR_COLUMN_RR
    full_resolution: bool = False

    def __post_init__(self):
        toa = np.array(self.toa_radiance, dtype=float)
        flux = np.array(self.solar_flux, dtype=float)
        if toa.ndim != 1 or toa.shape != flux.shape:
            raise InputDataError(
                f"TOA radiance {toa.shape} and solar flux {flux.shape} must be "
                f"1-d arrays of equal length"
            )
        if toa.size <= max(TOSA_BAND_INDICES):
            raise InputDataError(
                f"Need at least {max(TOSA_BAND_INDICES) + 1} bands, got {toa.size}"
            )
        toa.setflags(write=False)
        flux.setflags(write=False)
        object.__setattr__(self, "toa_radiance", toa)
        object.__setattr__(self, "solar_flux", flux)

    @property
    def band_count(self) -> int:
        """Number of L1b bands."""
        return self.toa_radiance.size


@dataclass(eq=False)
class CorrectionResult:
    """
    Outputs of the correction for one pixel.

    Vectors hold one value per network band and are None when not
    computed. Scalars are NaN when not computed.

    Attributes
    ----------
    flag : int
        Correction flag bitmask.
    tosa_reflec : ndarray or None
        TOSA radiance reflectance.
    reflec : ndarray or None
        Water-leaving reflectance (radiance or irradiance reflectance).
    norm_reflec : ndarray or None
        Normalized water-leaving reflectance.
    path : ndarray or None
        Atmospheric path reflectance.
    trans : ndarray or None
        Downwelling transmittance.
    auto_tosa_reflec : ndarray or None
        TOSA reflectance reproduced by the autoassociative net.
    tau_550, tau_778, tau_865 : float
        Aerosol optical thickness.
    angstrom : float
        Angstrom exponent between 443 and 865 nm.
    glint_ratio : float
        Glint ratio, only in non-FLINT mode.
    flint_value : float
        FLINT value used, only in FLINT mode.
    btsm : float
        Total suspended matter scattering coefficient.
    atot : float
        Total absorption coefficient.
    tosa_quality_indicator : float
        Distance between TOSA and autoassociative reflectance.
    """

    flag: int = 0
    tosa_reflec: Optional[np.ndarray] = None
    reflec: Optional[np.ndarray] = None
    norm_reflec: Optional[np.ndarray] = None
    path: Optional[np.ndarray] = None
    trans: Optional[np.ndarray] = None
    auto_tosa_reflec: Optional[np.ndarray] = None
    tau_550: float = NOT_AVAILABLE
    tau_778: float = NOT_AVAILABLE
    tau_865: float = NOT_AVAILABLE
    angstrom: float = NOT_AVAILABLE
    glint_ratio: float = NOT_AVAILABLE
    flint_value: float = NOT_AVAILABLE
    btsm: float = NOT_AVAILABLE
    atot: float = NOT_AVAILABLE
    tosa_quality_indicator: float = NOT_AVAILABLE

    def raise_flag(self, mask: int):
        """Set the bits of ``mask`` in the flag."""
        self.flag |= mask

    def has_flag(self, mask: int) -> bool:
        """True if every bit of ``mask`` is set."""
        return self.flag & mask == mask

    def flag_names(self) -> Tuple[str, ...]:
        """Names of the raised flags in ascending bit order."""
        return get_flag_names(self.flag)
