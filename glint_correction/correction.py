"""
Neural-network atmospheric correction of a single pixel.

``GlintCorrection`` sequences the per-pixel pipeline:

1. Viewing geometry and input validity
2. Reduction of TOA radiance to TOSA reflectance
3. Training-range checks of the network inputs
4. Autoassociative network and TOSA quality indicator
5. Inverse aerosol optical thickness network
6. Main atmospheric correction network
7. Normalization network

Data quality problems never raise; they are reported in the flag bitmask
of the returned ``CorrectionResult``.

References
----------
.. [1] Doerffer, R. and Schiller, H. (2008). MERIS Regional Coastal and
       Lake Case 2 Water Project - Atmospheric Correction ATBD.
       GKSS Research Center, Version 1.0.
"""

import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from glint_correction import constants
from glint_correction.constants import (
    AOT560_OOR,
    ANCIL,
    BAND_443_INDEX,
    BAND_865_INDEX,
    CLOUD_ICE,
    HAS_FLINT,
    INPUT_INVALID,
    LAND,
    MAX_TAU_FACTOR,
    SOLZEN,
    SUNGLINT,
    SUNGLINT_FACTOR,
    TOA_OOR,
    TOSA_BAND_COUNT,
    TOSA_OOR,
    TOSA_OOS,
)
from glint_correction.conventions import Convention
from glint_correction.exceptions import ConfigurationError, DimensionError
from glint_correction.geometry import (
    azimuth_difference,
    correct_view_angle,
    direction_vector,
)
from glint_correction.neuralnet import NeuralNet
from glint_correction.pixel import CorrectionResult, PixelSample
from glint_correction.quality import (
    is_ancillary_data_valid,
    is_cloud_ice,
    is_flint_value_valid,
    is_l1_invalid,
    is_land,
    is_toa_out_of_range,
    l2r_flags,
    tosa_quality_indicator,
)
from glint_correction.scheme import NetScheme, NormalizationLayout
from glint_correction.smile import SmileCorrectionAuxdata
from glint_correction.tosa import Tosa

logger = logging.getLogger(__name__)

#: Index of the first TOSA input with water temperature and salinity inputs
TOSA_INPUT_OFFSET = 6

#: Index of the first TOSA input of FLINT networks
FLINT_TOSA_INPUT_OFFSET = 4

#: Supported output reflectance types and their factor to radiance reflectance
REFLECTANCE_FACTORS = {
    "radiance": 1.0,
    "irradiance": np.pi,
}


def build_net_input(
    sun_zenith: float,
    xyz: Sequence[float],
    rl_tosa: Sequence[float],
    convention: Convention,
    temperature: float,
    salinity: float,
    flint_value: Optional[float] = None,
) -> np.ndarray:
    """
    Assemble the input vector shared by the correction networks.

    Parameters
    ----------
    sun_zenith : float
        Solar zenith angle [degrees].
    xyz : sequence of float
        Viewing direction vector.
    rl_tosa : array_like
        TOSA radiance reflectance.
    convention : Convention
        Encoding of the reflectance expected by the network.
    temperature : float
        Water temperature [deg C].
    salinity : float
        Water salinity [PSU].
    flint_value : float, optional
        FLINT value. When given, it replaces temperature and salinity and
        becomes the last input.

    Returns
    -------
    ndarray
        ``[sun_zenith, x, y, z, temperature, salinity, tosa...]`` or
        ``[sun_zenith, x, y, z, tosa..., flint_value]``.
    """
    head = [sun_zenith, *xyz]
    if flint_value is None:
        head += [temperature, salinity]
    parts = [np.asarray(head, dtype=float), convention.encode(rl_tosa)]
    if flint_value is not None:
        parts.append(np.array([flint_value], dtype=float))
    return np.concatenate(parts)


def derive_reflec_from_path(
    path: Union[float, np.ndarray],
    transd: Union[float, np.ndarray],
    rl_tosa: Union[float, np.ndarray],
    cos_view: float,
    cos_sun: float,
    factor: float = 1.0,
) -> Union[float, np.ndarray]:
    """
    Derive the water-leaving reflectance from path reflectance and transmittance.

    Parameters
    ----------
    path : float or array_like
        Atmospheric path reflectance.
    transd : float or array_like
        Downwelling transmittance.
    rl_tosa : float or array_like
        TOSA radiance reflectance.
    cos_view, cos_sun : float
        Cosines of the viewing and solar zenith angles.
    factor : float, optional
        Factor applied to the upwelling transmittance. Default is 1.

    Returns
    -------
    float or ndarray
        Water-leaving reflectance.

    Notes
    -----
    The upwelling transmittance is estimated from the downwelling one by
    scaling the optical path with the ratio of the air masses:

    .. math::

        t_u = t_d^{\\cos\\theta_s / \\cos\\theta_v}, \\quad
        \\rho_w = \\frac{\\rho_{TOSA} - \\rho_{path}}{t_u E_d} \\cos\\theta_s,
        \\quad E_d = t_d \\cos\\theta_s
    """
    trans_up = np.exp(np.log(transd) * (cos_sun / cos_view)) * factor
    ed_boa = transd * cos_sun
    return (rl_tosa - path) / (trans_up * ed_boa) * cos_sun


def _angstrom(tau_443: float, tau_865: float) -> float:
    wavelengths = constants.MERIS_WAVELENGTHS
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(-np.log(tau_443 / tau_865)
                     / np.log(wavelengths[BAND_443_INDEX] / wavelengths[BAND_865_INDEX]))


class GlintCorrection:
    """
    Atmospheric correction driven by one network generation.

    Parameters
    ----------
    atmosphere_net : NeuralNet
        Main correction network.
    scheme : NetScheme
        Wiring of the network generation.
    flint_net : NeuralNet, optional
        Main network used in FLINT mode.
    inverse_aot_net : NeuralNet, optional
        Network returning AOT at 550 nm and the Angstrom exponent.
    autoassoc_net : NeuralNet, optional
        Autoassociative network reproducing the TOSA reflectance.
    normalization_net : NeuralNet, optional
        Network returning the normalized water-leaving reflectance.
    smile_auxdata : SmileCorrectionAuxdata, optional
        Detector solar flux tables for the smile correction.
    output_reflectance : {'radiance', 'irradiance'}, optional
        Type of the output reflectances. Default is 'radiance'.
    derive_rw_from_path : bool, optional
        Derive the water-leaving reflectance from path reflectance and
        transmittance instead of using the direct network output.
    l2r_invalid_factor : float, optional
        Multiple of the TOSA quality threshold above which the
        water-leaving reflectance is flagged invalid. Default is 2.

    Raises
    ------
    ConfigurationError
        If the networks do not fit the scheme or an option is unknown.

    Examples
    --------
    >>> net = NeuralNet.load("atmo.net")
    >>> correction = GlintCorrection(net, INVERSE_AOT_SCHEME)
    >>> result = correction.perform(pixel, temperature=12.0)
    """

    def __init__(
        self,
        atmosphere_net: NeuralNet,
        scheme: NetScheme,
        *,
        flint_net: Optional[NeuralNet] = None,
        inverse_aot_net: Optional[NeuralNet] = None,
        autoassoc_net: Optional[NeuralNet] = None,
        normalization_net: Optional[NeuralNet] = None,
        smile_auxdata: Optional[SmileCorrectionAuxdata] = None,
        output_reflectance: str = "radiance",
        derive_rw_from_path: bool = False,
        l2r_invalid_factor: float = constants.DEFAULT_L2R_INVALID_FACTOR,
    ):
        if output_reflectance not in REFLECTANCE_FACTORS:
            raise ConfigurationError(
                f"Unknown output reflectance '{output_reflectance}'. "
                f"Supported: {sorted(REFLECTANCE_FACTORS)}"
            )
        if derive_rw_from_path and not scheme.path_outputs:
            raise ConfigurationError(
                f"Scheme '{scheme.name}' has no path outputs to derive the reflectance from"
            )
        if l2r_invalid_factor < 1.0:
            raise ConfigurationError(f"l2r_invalid_factor must be >= 1, got {l2r_invalid_factor}")

        _check_net("atmosphere", atmosphere_net, TOSA_INPUT_OFFSET + TOSA_BAND_COUNT,
                   scheme.required_outputs())
        if flint_net is not None:
            _check_net("FLINT", flint_net, FLINT_TOSA_INPUT_OFFSET + TOSA_BAND_COUNT + 1,
                       scheme.required_outputs())
        if inverse_aot_net is not None:
            _check_net("inverse AOT", inverse_aot_net, TOSA_INPUT_OFFSET + TOSA_BAND_COUNT, 2)
        if autoassoc_net is not None:
            _check_net("autoassociative", autoassoc_net, TOSA_INPUT_OFFSET + TOSA_BAND_COUNT,
                       TOSA_BAND_COUNT)
        if normalization_net is not None:
            n_head = 3 if scheme.normalization_layout is NormalizationLayout.AZIMUTH_DIFFERENCE else 5
            _check_net("normalization", normalization_net, n_head + TOSA_BAND_COUNT, TOSA_BAND_COUNT)

        self.atmosphere_net = atmosphere_net
        self.scheme = scheme
        self.flint_net = flint_net
        self.inverse_aot_net = inverse_aot_net
        self.autoassoc_net = autoassoc_net
        self.normalization_net = normalization_net
        self.output_reflectance = output_reflectance
        self.derive_rw_from_path = derive_rw_from_path
        self.l2r_invalid_factor = l2r_invalid_factor
        self.tosa = Tosa(smile_auxdata=smile_auxdata)

        logger.debug(
            "Configured %s correction: atmosphere=%s flint=%s inverse_aot=%s autoassoc=%s "
            "normalization=%s smile=%s output=%s",
            scheme.name, atmosphere_net, flint_net, inverse_aot_net, autoassoc_net,
            normalization_net, smile_auxdata is not None, output_reflectance,
        )

    @property
    def reflectance_factor(self) -> float:
        """Factor converting radiance reflectance into the output reflectance."""
        return REFLECTANCE_FACTORS[self.output_reflectance]

    def perform(
        self,
        pixel: PixelSample,
        *,
        use_flint: bool = False,
        temperature: float = constants.DEFAULT_TEMPERATURE,
        salinity: float = constants.DEFAULT_SALINITY,
        tosa_oos_threshold: float = constants.DEFAULT_TOSA_OOS_THRESHOLD,
    ) -> CorrectionResult:
        """
        Correct a single pixel.

        Parameters
        ----------
        pixel : PixelSample
            Input data of the pixel.
        use_flint : bool, optional
            Use the FLINT network for pixels with a valid FLINT value.
        temperature : float, optional
            Water temperature [deg C]. Default is 15.
        salinity : float, optional
            Water salinity [PSU]. Default is 35.
        tosa_oos_threshold : float, optional
            Threshold of the TOSA quality indicator. Default is 0.05.

        Returns
        -------
        CorrectionResult
            Reflectances, aerosol and constituent values, and flags.

        Raises
        ------
        GeometryDomainError
            If the sun or view zenith angle is at or beyond 90 degrees.
        InputDataError
            If the smile correction cannot be applied to the pixel.
        ConfigurationError
            If FLINT mode is requested without a FLINT network.
        """
        view_zenith = correct_view_angle(
            pixel.view_zenith, pixel.pixel_x, pixel.nadir_column, pixel.full_resolution
        )
        view_zenith_rad = np.deg2rad(view_zenith)
        sun_zenith_rad = np.deg2rad(pixel.sun_zenith)
        azimuth_diff = azimuth_difference(pixel.view_azimuth, pixel.sun_azimuth)
        azimuth_diff_rad = np.deg2rad(azimuth_diff)
        cos_view = np.cos(view_zenith_rad)
        cos_sun = np.cos(sun_zenith_rad)
        xyz = direction_vector(view_zenith_rad, azimuth_diff_rad)

        result = CorrectionResult()
        if is_land(pixel.validation):
            result.raise_flag(LAND)
        if is_cloud_ice(pixel.validation):
            result.raise_flag(CLOUD_ICE)
        if is_toa_out_of_range(pixel.validation):
            result.raise_flag(TOA_OOR)
        if result.flag & (LAND | CLOUD_ICE) or is_l1_invalid(pixel.l1_flags):
            result.raise_flag(INPUT_INVALID)
            return result

        flint_mode = use_flint and is_flint_value_valid(pixel.flint_value)
        main_net = self.atmosphere_net
        if flint_mode:
            if self.flint_net is None:
                raise ConfigurationError("FLINT mode requested but no FLINT network configured")
            main_net = self.flint_net
            result.raise_flag(HAS_FLINT)
            result.flint_value = pixel.flint_value

        rl_tosa = self.tosa.perform(pixel, view_zenith_rad, sun_zenith_rad, azimuth_diff_rad)
        result.tosa_reflec = rl_tosa

        tosa_offset = FLINT_TOSA_INPUT_OFFSET if flint_mode else TOSA_INPUT_OFFSET
        # checked in the encoding the net is fed, log(rl * pi) for the 2012 generation
        if not main_net.inputs_in_range(self.scheme.tosa_input.encode(rl_tosa), tosa_offset):
            result.raise_flag(TOSA_OOR)
        if not main_net.inputs_in_range([pixel.sun_zenith]):
            result.raise_flag(SOLZEN)
        if not is_ancillary_data_valid(pixel.ozone, pixel.pressure):
            result.raise_flag(ANCIL)

        if self.autoassoc_net is not None and not flint_mode:
            self._compute_tosa_quality(
                result, pixel.sun_zenith, xyz, rl_tosa, temperature, salinity, tosa_oos_threshold
            )
        result.raise_flag(l2r_flags(
            pixel.cloud_flags, result.tosa_quality_indicator, tosa_oos_threshold,
            self.l2r_invalid_factor,
        ))

        if self.inverse_aot_net is not None:
            inverse_input = build_net_input(
                pixel.sun_zenith, xyz, rl_tosa, self.scheme.inverse_aot_input, temperature, salinity
            )
            inverse_output = self.inverse_aot_net.calc(inverse_input)
            result.tau_550 = float(inverse_output[0])
            result.angstrom = float(inverse_output[1])
            if not (self.inverse_aot_net.out_min[0] <= result.tau_550 <= self.inverse_aot_net.out_max[0]):
                result.raise_flag(AOT560_OOR)

        main_input = build_net_input(
            pixel.sun_zenith, xyz, rl_tosa, self.scheme.tosa_input, temperature, salinity,
            flint_value=pixel.flint_value if flint_mode else None,
        )
        reflec = self._decode_main_output(
            result, main_net, main_net.calc(main_input), rl_tosa, cos_view, cos_sun, flint_mode
        )

        factor = self.reflectance_factor
        if self.normalization_net is not None:
            normalization_input = self._normalization_input(
                reflec, pixel.sun_zenith, view_zenith, azimuth_diff, pixel.view_azimuth,
                temperature, salinity,
            )
            norm_output = self.normalization_net.calc(normalization_input)
            result.norm_reflec = self.scheme.normalization.decode(norm_output[:TOSA_BAND_COUNT]) * factor
        result.reflec = reflec * factor
        return result

    def _compute_tosa_quality(
        self,
        result: CorrectionResult,
        sun_zenith: float,
        xyz: Tuple[float, float, float],
        rl_tosa: np.ndarray,
        temperature: float,
        salinity: float,
        threshold: float,
    ):
        """Run the autoassociative network and raise TOSA_OOS."""
        convention = self.scheme.autoassoc
        auto_input = build_net_input(sun_zenith, xyz, rl_tosa, convention, temperature, salinity)
        auto_output = self.autoassoc_net.calc(auto_input)
        result.auto_tosa_reflec = convention.decode(auto_output[:TOSA_BAND_COUNT])
        result.tosa_quality_indicator = tosa_quality_indicator(rl_tosa, result.auto_tosa_reflec)
        if result.tosa_quality_indicator > threshold:
            result.raise_flag(TOSA_OOS)

    def _decode_main_output(
        self,
        result: CorrectionResult,
        net: NeuralNet,
        output: np.ndarray,
        rl_tosa: np.ndarray,
        cos_view: float,
        cos_sun: float,
        flint_mode: bool,
    ) -> np.ndarray:
        """
        Fill the result from the main network output.

        Returns the water-leaving radiance reflectance.
        """
        scheme = self.scheme
        n = TOSA_BAND_COUNT
        reflec = scheme.reflec_output.decode(output[:n])

        if scheme.path_outputs:
            path_start = scheme.path_offset
            trans_start = scheme.transmittance_offset
            result.path = scheme.reflec_output.decode(output[path_start:path_start + n])
            # the network returns Ed_boa, not the transmittance
            result.trans = np.exp(output[trans_start:trans_start + n]) / cos_sun
            if self.derive_rw_from_path:
                with np.errstate(divide="ignore", invalid="ignore"):
                    reflec = derive_reflec_from_path(
                        result.path, result.trans, rl_tosa, cos_view, cos_sun
                    )

        if scheme.aerosol_outputs:
            start = scheme.aerosol_offset
            tau_443, tau_550, tau_778, tau_865 = (float(v) for v in output[start:start + 4])
            result.tau_778 = tau_778
            result.tau_865 = tau_865
            if self.inverse_aot_net is None:
                result.tau_550 = tau_550
                result.angstrom = _angstrom(tau_443, tau_865)
            if not tau_550 <= net.out_max[start + 1] * MAX_TAU_FACTOR:
                result.raise_flag(AOT560_OOR)

        if scheme.constituent_outputs:
            start = scheme.constituent_offset
            if scheme.has_glint_output(net.output_count):
                glint_ratio = float(output[start])
                if not flint_mode:
                    result.glint_ratio = glint_ratio
                    if glint_ratio > net.out_max[start] * SUNGLINT_FACTOR:
                        result.raise_flag(SUNGLINT)
                start += 1
            result.btsm = float(np.exp(output[start]))
            result.atot = float(np.exp(output[start + 1]))

        return reflec

    def _normalization_input(
        self,
        reflec: np.ndarray,
        sun_zenith: float,
        view_zenith: float,
        azimuth_diff: float,
        view_azimuth: float,
        temperature: float,
        salinity: float,
    ) -> np.ndarray:
        if self.scheme.normalization_layout is NormalizationLayout.AZIMUTH_DIFFERENCE:
            head = [sun_zenith, view_zenith, azimuth_diff]
        else:
            head = [sun_zenith, view_zenith, view_azimuth, temperature, salinity]
        return np.concatenate([np.asarray(head, dtype=float), self.scheme.normalization.encode(reflec)])


def _check_net(role: str, net: NeuralNet, input_count: int, min_outputs: int):
    if net.input_count != input_count:
        raise DimensionError(
            f"The {role} network has {net.input_count} inputs, expected {input_count}"
        )
    if net.output_count < min_outputs:
        raise ConfigurationError(
            f"The {role} network has {net.output_count} outputs, expected at least {min_outputs}"
        )
