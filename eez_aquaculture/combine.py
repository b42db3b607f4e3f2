"""
Suitability combination
=======================
Elementwise product of {1, NaN} masks. NaN absorbs, so a cell stays
suitable only where every criterion marks it 1.
"""

from functools import reduce

import numpy as np

from .errors import GridMismatchError
from .layers import check_same_grid


def combine_masks(*masks, name="suitability"):
    """Intersect any number of aligned masks into one composite mask."""
    if len(masks) == 1 and isinstance(masks[0], (list, tuple)):
        masks = tuple(masks[0])
    if not masks:
        raise ValueError("combine_masks needs at least one mask")
    check_same_grid(masks, GridMismatchError, stage="combine")

    product = reduce(np.multiply, (m.data for m in masks), np.ones(masks[0].shape))
    return masks[0].with_data(product, name=name)
