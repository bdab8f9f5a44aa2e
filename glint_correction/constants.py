"""
Physical constants, sensor parameters and flag definitions for the
neural-network atmospheric correction.

This module contains constants used throughout the correction, including:

- MERIS band wavelengths and the band subset used by the networks
- Band-specific ozone absorption coefficients of the correction layer
- Standard atmosphere constants for the Rayleigh correction layer
- Pixel classification and correction flag bit masks
- Thresholds applied to network outputs and ancillary data

References
----------
.. [1] Doerffer, R. and Schiller, H. (2008). MERIS Regional Coastal and
       Lake Case 2 Water Project - Atmospheric Correction ATBD.
       GKSS Research Center, Version 1.0.
.. [2] Hansen, J.E. and Travis, L.D. (1974). Light scattering in planetary
       atmospheres. Space Science Reviews, 16:527-610.
"""

import numpy as np
from typing import Dict, Tuple

# =============================================================================
# Sentinels
# =============================================================================

#: Value of a scalar result that was not computed for a pixel
NOT_AVAILABLE: float = float("nan")

#: FLINT value meaning "no collocated auxiliary reflectance"
NO_FLINT_VALUE: float = -1.0

# =============================================================================
# Sensor Band Definitions
# =============================================================================

#: Number of MERIS L1b spectral bands
MERIS_BAND_COUNT: int = 15

#: MERIS L1b nominal band centre wavelengths [nm]
MERIS_L1B_WAVELENGTHS: Tuple[float, ...] = (
    412.7, 442.6, 489.9, 509.8, 559.7,
    619.6, 664.6, 680.8, 708.3, 753.4,
    761.5, 778.4, 864.9, 884.9, 900.0,
)

#: Wavelengths [nm] of the 12 bands used by the correction networks
MERIS_WAVELENGTHS: Tuple[float, ...] = (
    412.3, 442.3, 489.7,
    509.6, 559.5, 619.4,
    664.3, 680.6, 708.1,
    753.1, 778.2, 864.6,
)

#: Indices into the L1b bands of the 12 network bands.
#: Band 11 (O2 A-band) and the water vapour bands 14 and 15 are dropped.
TOSA_BAND_INDICES: Tuple[int, ...] = (0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 11, 12)

#: Number of bands in TOSA and water-leaving reflectance vectors
TOSA_BAND_COUNT: int = len(TOSA_BAND_INDICES)

#: Nominal MERIS extraterrestrial solar flux [W m^-2 um^-1].
#: Reference ("theoretical") values for the smile correction.
MERIS_NOMINAL_SOLAR_FLUX: Tuple[float, ...] = (
    1714.9, 1872.4, 1926.6, 1930.2, 1804.2,
    1651.5, 1531.4, 1475.6, 1408.9, 1265.5,
    1255.4, 1178.0, 955.0, 914.2, 882.8,
)

#: Index of the 443 nm and 865 nm bands in the 12-band vectors
BAND_443_INDEX: int = 1
BAND_865_INDEX: int = 11

#: Nadir column of MERIS reduced and full resolution scenes
NADIR_COLUMN_RR: int = 560
NADIR_COLUMN_FR: int = 2240

# =============================================================================
# Viewing Geometry
# =============================================================================

#: Constant offset of the viewing zenith angle correction [deg]
VIEW_ANGLE_OFFSET: float = -0.004793

#: Viewing zenith angle correction per column from nadir, reduced resolution [deg]
VIEW_ANGLE_COLUMN_COEFFICIENT: float = 0.0093247

#: Number of full resolution columns per reduced resolution column
FR_SAMPLING_RATIO: int = 4

#: Zenith angle [deg] at and beyond which cosine divisions are undefined
MAX_ZENITH_ANGLE: float = 90.0

# =============================================================================
# Correction Layer (TOA -> TOSA)
# =============================================================================

#: Standard surface pressure of the correction layer [hPa]
STANDARD_PRESSURE: float = 1013.2

#: Standard temperature of the barometric formula [K]
STANDARD_TEMPERATURE: float = 288.15

#: Temperature lapse rate of the barometric formula [K/m]
TEMPERATURE_LAPSE_RATE: float = 0.0065

#: Exponent of the barometric formula
BAROMETRIC_EXPONENT: float = 5.255

#: Lower limit applied to the surface altitude [m]
MIN_ALTITUDE: float = 1.0

#: Rayleigh optical thickness coefficient, tau = c * lambda[um]^-4.08
RAYLEIGH_TAU_COEFFICIENT: float = 0.008735

#: Rayleigh optical thickness wavelength exponent
RAYLEIGH_TAU_EXPONENT: float = -4.08

#: Ozone column [DU/1000] above the standard atmosphere top
OZONE_REFERENCE: float = 0.35

#: Ozone absorption coefficients of the 12 network bands
OZONE_ABSORPTION: Tuple[float, ...] = (
    -8.2e-004, -2.82e-003, -2.076e-002, -3.96e-002, -1.022e-001,
    -1.059e-001, -5.313e-002, -3.552e-002, -1.895e-002, -8.38e-003,
    -7.2e-004, -0.0,
)

# =============================================================================
# Ancillary Data Limits
# =============================================================================

#: Valid total ozone column range [DU]
OZONE_RANGE: Tuple[float, float] = (200.0, 500.0)

#: Valid surface pressure range [hPa]
PRESSURE_RANGE: Tuple[float, float] = (500.0, 1100.0)

#: Default water temperature [deg C] and salinity [PSU] fed to the networks
DEFAULT_TEMPERATURE: float = 15.0
DEFAULT_SALINITY: float = 35.0

# =============================================================================
# Network Output Limits
# =============================================================================

#: Fraction of the trained AOT maximum above which AOT560_OOR is raised
MAX_TAU_FACTOR: float = 0.84

#: Fraction of the trained glint ratio maximum above which SUNGLINT is raised
SUNGLINT_FACTOR: float = 0.97

#: Default threshold of the TOSA quality indicator
DEFAULT_TOSA_OOS_THRESHOLD: float = 0.05

#: Default ratio of the L2R invalid tier to the TOSA quality threshold
DEFAULT_L2R_INVALID_FACTOR: float = 2.0

# =============================================================================
# Input Bit Masks
# =============================================================================

#: TOA reflectance validation bits (upstream land/cloud classifier)
VALIDATION_LAND: int = 0x01
VALIDATION_CLOUD_ICE: int = 0x02
VALIDATION_RLTOA_OOR: int = 0x04

#: MERIS L1b INVALID flag
L1_INVALID: int = 0x80

#: Pixel classification bits used for the L2R validity tiers
CLOUD: int = 0x01
CLOUD_BUFFER: int = 0x02
CLOUD_SHADOW: int = 0x04
SNOW_ICE: int = 0x08
MIXED_PIXEL: int = 0x10

# =============================================================================
# Correction Flags
# =============================================================================

LAND: int = 0x01
CLOUD_ICE: int = 0x02
AOT560_OOR: int = 0x04
TOA_OOR: int = 0x08
TOSA_OOR: int = 0x10
TOSA_OOS: int = 0x20
SOLZEN: int = 0x40
ANCIL: int = 0x80
SUNGLINT: int = 0x100
HAS_FLINT: int = 0x200
INPUT_INVALID: int = 0x800  # LAND || CLOUD_ICE || L1 INVALID
L2R_INVALID: int = 0x1000
L2R_SUSPECT: int = 0x2000

#: Flag coding of the correction flag band: name -> (mask, description)
FLAG_CODING: Dict[str, Tuple[int, str]] = {
    "LAND": (LAND, "Land pixels"),
    "CLOUD_ICE": (CLOUD_ICE, "Cloud or ice pixels"),
    "AOT560_OOR": (AOT560_OOR, "Aerosol optical thickness out of training range"),
    "TOA_OOR": (TOA_OOR, "TOA out of range"),
    "TOSA_OOR": (TOSA_OOR, "TOSA out of range"),
    "TOSA_OOS": (TOSA_OOS, "TOSA out of scope of the autoassociative net"),
    "SOLZEN": (SOLZEN, "Large solar zenith angle"),
    "ANCIL": (ANCIL, "Missing/OOR auxiliary data"),
    "SUNGLINT": (SUNGLINT, "Risk of sun glint"),
    "HAS_FLINT": (HAS_FLINT, "Flint value available (pixel covered by MERIS/AATSR)"),
    "INPUT_INVALID": (INPUT_INVALID, "Input invalid (land, cloud/ice or L1b invalid)"),
    "L2R_INVALID": (L2R_INVALID, "Water-leaving reflectance invalid"),
    "L2R_SUSPECT": (L2R_SUSPECT, "Water-leaving reflectance suspect"),
}


def get_wavelengths() -> np.ndarray:
    """
    Get the wavelengths of the 12 network bands.

    Returns
    -------
    ndarray
        Band centre wavelengths [nm].
    """
    return np.array(MERIS_WAVELENGTHS)


def get_flag_names(flag: int) -> Tuple[str, ...]:
    """
    Get the names of the flags raised in a bitmask.

    Parameters
    ----------
    flag : int
        Correction flag bitmask.

    Returns
    -------
    tuple of str
        Flag names in ascending bit order.
    """
    return tuple(
        name
        for name, (mask, _) in sorted(FLAG_CODING.items(), key=lambda item: item[1][0])
        if flag & mask == mask
    )
