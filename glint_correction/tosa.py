"""
Reduction of TOA radiance to top-of-standard-atmosphere (TOSA) reflectance.

The networks are trained on a standard atmosphere of 1013.2 hPa with a
fixed ozone column. Before a pixel is handed to them, the actual surface
pressure and ozone column are accounted for in a thin correction layer:

1. Rayleigh path radiance of the pressure difference to the standard
   atmosphere is removed.
2. The ozone difference to the standard column is compensated on the
   up- and downwelling paths.
3. The result is divided by the downwelling irradiance at TOSA.

The helper functions accept scalars or numpy arrays.

References
----------
.. [1] Doerffer, R. and Schiller, H. (2008). MERIS Regional Coastal and
       Lake Case 2 Water Project - Atmospheric Correction ATBD.
       GKSS Research Center, Version 1.0.
"""

from typing import Optional, Sequence, Union

import numpy as np

from glint_correction.constants import (
    BAROMETRIC_EXPONENT,
    MAX_ZENITH_ANGLE,
    MERIS_WAVELENGTHS,
    MIN_ALTITUDE,
    OZONE_ABSORPTION,
    OZONE_REFERENCE,
    RAYLEIGH_TAU_COEFFICIENT,
    RAYLEIGH_TAU_EXPONENT,
    STANDARD_PRESSURE,
    STANDARD_TEMPERATURE,
    TEMPERATURE_LAPSE_RATE,
    TOSA_BAND_INDICES,
)
from glint_correction.exceptions import ConfigurationError, GeometryDomainError
from glint_correction.pixel import PixelSample
from glint_correction.smile import SmileCorrectionAuxdata


def altitude_corrected_pressure(
    pressure: Union[float, np.ndarray],
    altitude: Union[float, np.ndarray],
) -> Union[float, np.ndarray]:
    """
    Reduce the surface pressure to the pixel altitude.

    Parameters
    ----------
    pressure : float or array_like
        Sea level pressure [hPa].
    altitude : float or array_like
        Surface altitude [m]. Values below 1 m are raised to 1 m.

    Returns
    -------
    float or ndarray
        Pressure at the pixel altitude [hPa].

    Notes
    -----
    Barometric formula:

    .. math::

        p_{alt} = p \\left(1 - \\frac{0.0065 h}{288.15}\\right)^{5.255}
    """
    height = np.maximum(altitude, MIN_ALTITUDE)
    return pressure * (1.0 - TEMPERATURE_LAPSE_RATE * height / STANDARD_TEMPERATURE) ** BAROMETRIC_EXPONENT


def rayleigh_optical_thickness(
    wavelength: Union[float, np.ndarray],
    pressure: float,
    coefficient: float = RAYLEIGH_TAU_COEFFICIENT,
) -> Union[float, np.ndarray]:
    """
    Rayleigh optical thickness of the pressure difference to the standard atmosphere.

    Parameters
    ----------
    wavelength : float or array_like
        Wavelength [nm].
    pressure : float
        Pressure at the pixel altitude [hPa].
    coefficient : float, optional
        Optical thickness coefficient. Default is 0.008735.

    Returns
    -------
    float or ndarray
        Optical thickness, negative for pressures below 1013.2 hPa.
    """
    relative_mass = (pressure - STANDARD_PRESSURE) / STANDARD_PRESSURE
    return coefficient * np.power(np.asarray(wavelength, dtype=float) / 1000.0,
                                  RAYLEIGH_TAU_EXPONENT) * relative_mass


def rayleigh_phase_function(
    sun_zenith_rad: float,
    view_zenith_rad: float,
    azimuth_difference_rad: float,
) -> float:
    """
    Rayleigh phase function for the single-scattering geometry.

    Parameters
    ----------
    sun_zenith_rad, view_zenith_rad : float
        Zenith angles [radians].
    azimuth_difference_rad : float
        Azimuth difference [radians].

    Returns
    -------
    float
        :math:`P = 0.75 (1 + \\cos^2\\Theta)` with the scattering angle
        :math:`\\cos\\Theta = -\\cos\\theta_v \\cos\\theta_s - \\sin\\theta_v \\sin\\theta_s \\cos\\Delta\\phi`.
    """
    cos_scattering = (
        -np.cos(view_zenith_rad) * np.cos(sun_zenith_rad)
        - np.sin(view_zenith_rad) * np.sin(sun_zenith_rad) * np.cos(azimuth_difference_rad)
    )
    return 0.75 * (1.0 + cos_scattering ** 2)


def select_tosa_bands(
    values: Sequence[float],
    band_indices: Sequence[int] = TOSA_BAND_INDICES,
) -> np.ndarray:
    """Pick the network bands out of a full L1b band vector."""
    return np.asarray(values, dtype=float)[list(band_indices)]


def _check_zenith(angle_rad: float, name: str):
    if not np.isfinite(angle_rad) or abs(np.rad2deg(angle_rad)) >= MAX_ZENITH_ANGLE:
        raise GeometryDomainError(
            f"{name} zenith angle {np.rad2deg(angle_rad)} deg outside [0, {MAX_ZENITH_ANGLE})"
        )


class Tosa:
    """
    TOA radiance to TOSA reflectance reducer.

    Stateless once configured; one instance serves any number of pixels.

    Parameters
    ----------
    wavelengths : sequence of float, optional
        Wavelengths of the network bands [nm].
    ozone_absorption : sequence of float, optional
        Ozone absorption coefficient of each network band.
    rayleigh_coefficient : float, optional
        Rayleigh optical thickness coefficient.
    smile_auxdata : SmileCorrectionAuxdata, optional
        Detector solar flux tables. Without them, no smile correction is
        applied.
    band_indices : sequence of int, optional
        Indices of the network bands within the L1b bands.
    """

    def __init__(
        self,
        wavelengths: Sequence[float] = MERIS_WAVELENGTHS,
        ozone_absorption: Sequence[float] = OZONE_ABSORPTION,
        rayleigh_coefficient: float = RAYLEIGH_TAU_COEFFICIENT,
        smile_auxdata: Optional[SmileCorrectionAuxdata] = None,
        band_indices: Sequence[int] = TOSA_BAND_INDICES,
    ):
        self.wavelengths = np.array(wavelengths, dtype=float)
        self.ozone_absorption = np.array(ozone_absorption, dtype=float)
        self.band_indices = tuple(band_indices)
        if not self.wavelengths.size == self.ozone_absorption.size == len(self.band_indices):
            raise ConfigurationError(
                f"{self.wavelengths.size} wavelengths, {self.ozone_absorption.size} ozone "
                f"coefficients and {len(self.band_indices)} band indices do not match"
            )
        self.rayleigh_coefficient = rayleigh_coefficient
        self.smile_auxdata = smile_auxdata

    @property
    def band_count(self) -> int:
        """Number of TOSA bands produced."""
        return len(self.band_indices)

    def perform(
        self,
        pixel: PixelSample,
        view_zenith_rad: float,
        sun_zenith_rad: float,
        azimuth_difference_rad: float,
    ) -> np.ndarray:
        """
        Compute the TOSA radiance reflectance of a pixel.

        Parameters
        ----------
        pixel : PixelSample
            Radiances, solar flux and ancillary data.
        view_zenith_rad : float
            Corrected viewing zenith angle [radians].
        sun_zenith_rad : float
            Solar zenith angle [radians].
        azimuth_difference_rad : float
            Azimuth difference [radians].

        Returns
        -------
        ndarray
            TOSA radiance reflectance of the network bands [sr^-1].

        Raises
        ------
        GeometryDomainError
            If a zenith angle is at or beyond 90 degrees.
        InputDataError
            If smile correction is configured and the pixel's detector
            index is invalid.
        """
        _check_zenith(sun_zenith_rad, "Sun")
        _check_zenith(view_zenith_rad, "View")

        solar_flux = pixel.solar_flux
        if self.smile_auxdata is not None:
            solar_flux = self.smile_auxdata.correct_solar_flux(pixel.detector_index, solar_flux)
        toa_radiance = select_tosa_bands(pixel.toa_radiance, self.band_indices)
        solar_flux = select_tosa_bands(solar_flux, self.band_indices)

        cos_sun = np.cos(sun_zenith_rad)
        cos_view = np.cos(view_zenith_rad)
        ed_toa = solar_flux * cos_sun

        pressure = altitude_corrected_pressure(pixel.pressure, pixel.altitude)
        tau_rayleigh = rayleigh_optical_thickness(
            self.wavelengths, pressure, self.rayleigh_coefficient
        )
        phase = rayleigh_phase_function(sun_zenith_rad, view_zenith_rad, azimuth_difference_rad)

        # ozone between TOA and TOSA, relative to the standard column
        ozone_rest = pixel.ozone / 1000.0 - OZONE_REFERENCE
        trans_oz_toa_tosa_down = np.exp(self.ozone_absorption * ozone_rest / cos_sun)
        trans_oz_toa_tosa_up = np.exp(self.ozone_absorption * ozone_rest / cos_view)
        trans_oz_tosa_down = np.exp(self.ozone_absorption * pixel.ozone / 1000.0 / cos_sun)
        trans_oz_tosa_up = np.exp(self.ozone_absorption * pixel.ozone / 1000.0 / cos_view)
        trans_rayleigh_down = np.exp(-0.5 * tau_rayleigh / cos_sun)

        rayleigh_path = (ed_toa * tau_rayleigh * trans_oz_tosa_down * phase
                         / (4.0 * np.pi * cos_view * cos_sun))
        ed_tosa = ed_toa * trans_oz_toa_tosa_down * trans_rayleigh_down
        radiance_tosa = (toa_radiance - rayleigh_path * trans_oz_tosa_up) / trans_oz_toa_tosa_up
        return radiance_tosa / ed_tosa
