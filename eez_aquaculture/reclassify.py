"""
Range reclassification
======================
Continuous raster -> suitability mask. Cells inside the inclusive band
[low, high] become 1, everything else (including NaN input) becomes NaN.
"""

import numpy as np

from .config import SuitabilityRange


def reclassify(layer, low, high=None, name=None):
    """
    Reclassify `layer` against the inclusive band [low, high].

    `low` may also be a SuitabilityRange, in which case `high` is omitted.
    Raises InvalidRangeError when low > high.
    """
    if high is None:
        band = SuitabilityRange(*low, layer=layer.name)
    else:
        band = SuitabilityRange(low, high, layer=layer.name)

    values = layer.data
    # comparisons with NaN are False, so missing cells never pass
    inside = (values >= band.low) & (values <= band.high)
    mask = np.where(inside, 1.0, np.nan)
    return layer.with_data(mask, name=name or f"{layer.name}_mask")

