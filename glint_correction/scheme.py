"""
Decoding configuration of a network generation.

Trained networks changed their wiring over time: the encoding of the
TOSA reflectance fed to them, the encoding of the water-leaving
reflectance they return, the presence of path radiance, transmittance,
aerosol and water constituent outputs, and the input layout of the
normalization network. A ``NetScheme`` captures these choices so that
one orchestrator can drive every generation.

Main network output layout
--------------------------
============  ==========================================================
Outputs       Content
============  ==========================================================
0-11          water-leaving reflectance, decoded with ``reflec_output``
12-23         path reflectance, decoded with ``reflec_output``
24-35         log of the downwelling irradiance at the surface, Ed_boa
next 4        aerosol optical thickness at 443, 550, 778 and 865 nm
last 2 or 3   [glint ratio,] log b_tsm, log a_tot
============  ==========================================================

Blocks that a scheme does not declare are absent and the following
blocks move up.
"""

from dataclasses import dataclass
from enum import Enum

from glint_correction.constants import TOSA_BAND_COUNT
from glint_correction.conventions import Convention

#: Number of outputs of the aerosol block
AEROSOL_OUTPUT_COUNT = 4

#: Number of outputs of the constituent block without glint ratio
CONSTITUENT_OUTPUT_COUNT = 2


class NormalizationLayout(Enum):
    """
    Input layout of the normalization network.

    Attributes
    ----------
    AZIMUTH_DIFFERENCE
        sun zenith, view zenith, azimuth difference, reflectance.
    VIEW_AZIMUTH
        sun zenith, view zenith, view azimuth, temperature, salinity,
        reflectance.
    """

    AZIMUTH_DIFFERENCE = "azimuth_difference"
    VIEW_AZIMUTH = "view_azimuth"


@dataclass(frozen=True)
class NetScheme:
    """
    Wiring of the networks of one trained generation.

    Attributes
    ----------
    name : str
        Label used in log messages.
    tosa_input : Convention
        Encoding of the TOSA reflectance fed to the main network.
    reflec_output : Convention
        Decoding of the water-leaving and path reflectance outputs.
    autoassoc : Convention
        Encoding of the autoassociative network input and decoding of
        its output.
    inverse_aot_input : Convention
        Encoding of the TOSA reflectance fed to the inverse AOT network.
    path_outputs : bool
        Main network returns path reflectance and Ed_boa.
    aerosol_outputs : bool
        Main network returns aerosol optical thickness.
    constituent_outputs : bool
        Main network returns b_tsm and a_tot, optionally preceded by the
        glint ratio.
    normalization_layout : NormalizationLayout
        Input layout of the normalization network.
    normalization : Convention
        Encoding of the normalization input and decoding of its output.
    """

    name: str
    tosa_input: Convention = Convention.LOG
    reflec_output: Convention = Convention.LOG
    autoassoc: Convention = Convention.LOG
    inverse_aot_input: Convention = Convention.LINEAR_PI
    path_outputs: bool = False
    aerosol_outputs: bool = False
    constituent_outputs: bool = False
    normalization_layout: NormalizationLayout = NormalizationLayout.AZIMUTH_DIFFERENCE
    normalization: Convention = Convention.LOG

    @property
    def path_offset(self) -> int:
        """Index of the first path reflectance output."""
        return TOSA_BAND_COUNT

    @property
    def transmittance_offset(self) -> int:
        """Index of the first Ed_boa output."""
        return 2 * TOSA_BAND_COUNT

    @property
    def aerosol_offset(self) -> int:
        """Index of the first aerosol optical thickness output."""
        return 3 * TOSA_BAND_COUNT if self.path_outputs else TOSA_BAND_COUNT

    @property
    def constituent_offset(self) -> int:
        """Index of the first constituent output."""
        return self.aerosol_offset + (AEROSOL_OUTPUT_COUNT if self.aerosol_outputs else 0)

    def required_outputs(self) -> int:
        """Minimum number of main network outputs."""
        return self.constituent_offset + (CONSTITUENT_OUTPUT_COUNT if self.constituent_outputs else 0)

    def has_glint_output(self, output_count: int) -> bool:
        """True if a main network with ``output_count`` outputs returns the glint ratio."""
        return self.constituent_outputs and output_count > self.required_outputs()


#: 2009 generation: log inputs, path/transmittance/aerosol/constituent
#: outputs, usable with a FLINT value as last input
FLINT_SCHEME = NetScheme(
    name="flint",
    tosa_input=Convention.LOG,
    reflec_output=Convention.LOG,
    autoassoc=Convention.LOG,
    inverse_aot_input=Convention.LINEAR_PI,
    path_outputs=True,
    aerosol_outputs=True,
    constituent_outputs=True,
    normalization_layout=NormalizationLayout.AZIMUTH_DIFFERENCE,
    normalization=Convention.LOG,
)

#: 2012 generation: log(rl * pi) inputs, 12 log outputs, separate inverse
#: AOT/Angstrom network and pi-scaled autoassociative network
INVERSE_AOT_SCHEME = NetScheme(
    name="inverse_aot",
    tosa_input=Convention.LOG_PI,
    reflec_output=Convention.LOG,
    autoassoc=Convention.LINEAR_PI,
    inverse_aot_input=Convention.LINEAR_PI,
    path_outputs=False,
    aerosol_outputs=False,
    constituent_outputs=False,
    normalization_layout=NormalizationLayout.VIEW_AZIMUTH,
    normalization=Convention.LOG_PI,
)
