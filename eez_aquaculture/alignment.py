"""
Grid alignment
==============
Brings every layer onto the reference grid (the SST grid): reproject when
the CRS differs, crop to the reference extent, then nearest-neighbour
resample so no depth value is averaged or interpolated.
"""

import math

import numpy as np
from rasterio.crs import CRS
from rasterio.errors import CRSError
from rasterio.transform import Affine
from rasterio.warp import Resampling, reproject, transform_bounds

from .errors import AlignmentError
from .layers import RasterLayer, check_same_grid


def _check_crs(layer):
    crs = layer.crs
    if crs is None or not crs:
        raise AlignmentError("coordinate reference system is undefined", layer=layer.name)
    try:
        return CRS.from_user_input(crs)
    except CRSError as exc:
        raise AlignmentError(f"cannot parse CRS {crs!r}: {exc}", layer=layer.name) from exc


def crop_to_bounds(layer, bounds, pad=1):
    """
    Cut `layer` down to the cells covering `bounds` (in the layer's CRS),
    plus `pad` cells on each side so edge cells keep a nearest neighbour.
    """
    west, south, east, north = bounds
    inv = ~layer.transform
    cols, rows = zip(*[inv * (x, y) for x, y in
                       ((west, north), (east, north), (west, south), (east, south))])
    height, width = layer.shape

    col0 = max(int(math.floor(min(cols))) - pad, 0)
    col1 = min(int(math.ceil(max(cols))) + pad, width)
    row0 = max(int(math.floor(min(rows))) - pad, 0)
    row1 = min(int(math.ceil(max(rows))) + pad, height)
    if col1 <= col0 or row1 <= row0:
        raise AlignmentError("layer does not intersect the reference extent",
                             layer=layer.name)

    data = layer.data[row0:row1, col0:col1]
    transform = layer.transform * Affine.translation(col0, row0)
    return RasterLayer(data, transform, layer.crs, name=layer.name)


def _intersects(a, b):
    return a[0] < b[2] and b[0] < a[2] and a[1] < b[3] and b[1] < a[3]


def align_to_reference(layer, reference):
    """Return `layer` resampled onto the grid of `reference`."""
    ref_crs = _check_crs(reference)
    src_crs = _check_crs(layer)

    if layer.same_grid(reference):
        return layer.with_data(layer.data.copy())

    # reference extent expressed in the layer's own CRS
    try:
        ref_bounds = transform_bounds(ref_crs, src_crs, *reference.bounds, densify_pts=21)
    except CRSError as exc:
        raise AlignmentError(f"cannot transform reference extent: {exc}",
                             layer=layer.name) from exc
    if not all(np.isfinite(ref_bounds)) or not _intersects(ref_bounds, layer.bounds):
        raise AlignmentError("reprojected extent does not intersect the reference extent",
                             layer=layer.name)

    cropped = crop_to_bounds(layer, ref_bounds)

    aligned = np.full(reference.shape, np.nan, dtype=np.float64)
    reproject(
        source=np.ascontiguousarray(cropped.data),
        destination=aligned,
        src_transform=cropped.transform,
        src_crs=src_crs,
        src_nodata=np.nan,
        dst_transform=reference.transform,
        dst_crs=ref_crs,
        dst_nodata=np.nan,
        resampling=Resampling.nearest,
    )
    return RasterLayer(aligned, reference.transform, reference.crs, name=layer.name)


def align_layers(reference, *layers):
    """
    Align every layer to `reference`. Returns (reference, aligned...) and
    verifies the shared grid before handing the layers on.
    """
    _check_crs(reference)
    aligned = [reference] + [align_to_reference(layer, reference) for layer in layers]
    check_same_grid(aligned, AlignmentError)
    return tuple(aligned)
