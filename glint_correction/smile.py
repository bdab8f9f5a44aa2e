"""
Smile correction of the solar flux.

The spectral response of each MERIS detector is slightly shifted from the
nominal band centre ("smile"). The TOSA reduction compensates for it by
scaling the band solar flux with the ratio of the solar flux seen by the
pixel's detector to the theoretical solar flux at the nominal wavelength.
"""

import logging
from typing import Optional, Sequence

import numpy as np
import smart_open

from glint_correction.constants import MERIS_NOMINAL_SOLAR_FLUX
from glint_correction.exceptions import ConfigurationError, InputDataError

logger = logging.getLogger(__name__)


class SmileCorrectionAuxdata:
    """
    Per-detector and theoretical solar flux tables.

    Parameters
    ----------
    detector_fluxes : array_like
        Solar flux per detector and band, shape (n_detectors, n_bands).
    theoretical_fluxes : array_like, optional
        Solar flux at the nominal band wavelengths, length n_bands.
        Default is the MERIS nominal solar flux.

    Raises
    ------
    ConfigurationError
        If the table shapes do not match.
    """

    def __init__(
        self,
        detector_fluxes: np.ndarray,
        theoretical_fluxes: Optional[Sequence[float]] = None,
    ):
        if theoretical_fluxes is None:
            theoretical_fluxes = MERIS_NOMINAL_SOLAR_FLUX
        self.detector_fluxes = np.array(detector_fluxes, dtype=float, ndmin=2)
        self.theoretical_fluxes = np.array(theoretical_fluxes, dtype=float)
        if self.detector_fluxes.shape[1] != self.theoretical_fluxes.size:
            raise ConfigurationError(
                f"Detector table has {self.detector_fluxes.shape[1]} bands, "
                f"theoretical fluxes have {self.theoretical_fluxes.size}"
            )
        if np.any(self.theoretical_fluxes == 0):
            raise ConfigurationError("Theoretical solar flux must not be zero")
        self.detector_fluxes.setflags(write=False)
        self.theoretical_fluxes.setflags(write=False)

    @property
    def detector_count(self) -> int:
        """Number of detectors in the table."""
        return self.detector_fluxes.shape[0]

    def correct_solar_flux(self, detector_index: int, solar_flux: np.ndarray) -> np.ndarray:
        """
        Scale the band solar flux to the pixel's detector.

        Parameters
        ----------
        detector_index : int
            Detector that recorded the pixel.
        solar_flux : array_like
            Band solar flux of the pixel, length n_bands.

        Returns
        -------
        ndarray
            Smile corrected solar flux.

        Raises
        ------
        InputDataError
            If the detector index is outside the table or the band count
            does not match.
        """
        if not 0 <= detector_index < self.detector_count:
            raise InputDataError(
                f"Detector index {detector_index} outside [0, {self.detector_count})"
            )
        flux = np.asarray(solar_flux, dtype=float)
        if flux.size != self.theoretical_fluxes.size:
            raise InputDataError(
                f"Solar flux has {flux.size} bands, smile table has {self.theoretical_fluxes.size}"
            )
        return flux * (self.detector_fluxes[detector_index] / self.theoretical_fluxes)

    @classmethod
    def load(
        cls,
        flux_table: str,
        theoretical_fluxes: Optional[Sequence[float]] = None,
    ) -> "SmileCorrectionAuxdata":
        """
        Load the per-detector solar flux table.

        Parameters
        ----------
        flux_table : str or path-like
            Whitespace separated table, one row per detector:
            ``detector_index flux_1 ... flux_n``. Lines starting with '#'
            are ignored. Anything accepted by ``smart_open.open``.
        theoretical_fluxes : array_like, optional
            Theoretical solar flux per band. Default is the MERIS nominal
            solar flux.

        Returns
        -------
        SmileCorrectionAuxdata
            The loaded tables.
        """
        with smart_open.open(str(flux_table), "r") as stream:
            table = np.loadtxt(stream, ndmin=2)
        order = np.argsort(table[:, 0])
        indices = table[order, 0].astype(int)
        if not np.array_equal(indices, np.arange(indices.size)):
            raise ConfigurationError(
                f"Smile table {flux_table} must list detectors 0..{indices.size - 1} once each"
            )
        auxdata = cls(table[order, 1:], theoretical_fluxes)
        logger.info("Loaded smile table %s with %d detectors", flux_table, auxdata.detector_count)
        return auxdata
