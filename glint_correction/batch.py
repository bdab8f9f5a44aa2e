"""
Sequential correction of many pixels.

The correction itself works on one pixel at a time. This module offers
the loop most callers write around it: progress reporting, cancellation
between pixels, and a policy for pixels that cannot be computed.
"""

import logging
from typing import Callable, Iterable, List, Optional

from tqdm import tqdm

from glint_correction import constants
from glint_correction.constants import INPUT_INVALID
from glint_correction.correction import GlintCorrection
from glint_correction.exceptions import PixelError, ProcessingCancelled
from glint_correction.pixel import CorrectionResult, PixelSample

logger = logging.getLogger(__name__)

#: Per-pixel error policies
PIXEL_ERROR_POLICIES = ("raise", "flag")


def correct_pixels(
    correction: GlintCorrection,
    pixels: Iterable[PixelSample],
    *,
    use_flint: bool = False,
    temperature: float = constants.DEFAULT_TEMPERATURE,
    salinity: float = constants.DEFAULT_SALINITY,
    tosa_oos_threshold: float = constants.DEFAULT_TOSA_OOS_THRESHOLD,
    on_pixel_error: str = "raise",
    progress: bool = False,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> List[CorrectionResult]:
    """
    Correct pixels one after the other.

    Parameters
    ----------
    correction : GlintCorrection
        Configured correction.
    pixels : iterable of PixelSample
        Pixels to correct.
    use_flint, temperature, salinity, tosa_oos_threshold
        Passed on to :meth:`GlintCorrection.perform`.
    on_pixel_error : {'raise', 'flag'}, optional
        'raise' propagates a ``PixelError``; 'flag' returns a result with
        INPUT_INVALID set for that pixel. Default is 'raise'.
    progress : bool, optional
        Show a progress bar. Default is False.
    should_cancel : callable, optional
        Polled before every pixel; processing stops when it returns True.

    Returns
    -------
    list of CorrectionResult
        One result per pixel, in input order.

    Raises
    ------
    ProcessingCancelled
        If ``should_cancel`` returned True.
    PixelError
        If a pixel fails and ``on_pixel_error`` is 'raise'.
    ConfigurationError
        Always propagated.
    """
    if on_pixel_error not in PIXEL_ERROR_POLICIES:
        raise ValueError(
            f"Unknown pixel error policy '{on_pixel_error}'. Supported: {PIXEL_ERROR_POLICIES}"
        )

    results: List[CorrectionResult] = []
    n_failed = 0
    for index, pixel in enumerate(tqdm(pixels, desc="Correcting pixels", unit="px",
                                       disable=not progress)):
        if should_cancel is not None and should_cancel():
            logger.info("Processing cancelled after %d pixels", index)
            raise ProcessingCancelled(f"Cancelled after {index} pixels")
        try:
            result = correction.perform(
                pixel,
                use_flint=use_flint,
                temperature=temperature,
                salinity=salinity,
                tosa_oos_threshold=tosa_oos_threshold,
            )
        except PixelError as err:
            if on_pixel_error == "raise":
                raise
            logger.debug("Pixel %d flagged invalid: %s", index, err)
            n_failed += 1
            result = CorrectionResult(flag=INPUT_INVALID)
        results.append(result)

    n_invalid = sum(1 for result in results if result.has_flag(INPUT_INVALID))
    logger.info(
        "Corrected %d pixels: %d invalid input, %d failed",
        len(results), n_invalid, n_failed,
    )
    return results
