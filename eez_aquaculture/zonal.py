"""
Zonal aggregation
=================
Sums the ground area of suitable cells inside each zone and expresses it
as a percentage of the zone's reference area.

Zones are burned onto the mask grid by cell centre. Cell areas come from
the grid itself: exact spherical band areas on geographic grids, nominal
cell size on equal-area projections, and per-cell areas measured in a local
equal-area projection for any other projected grid.
"""

import math

import numpy as np
import pandas as pd
import pyproj
from rasterio.crs import CRS
from rasterio.features import rasterize
from shapely.geometry import mapping

from . import config
from .errors import AlignmentError, DivisionUndefined, GridMismatchError

# Projection methods that preserve area but lack "equal area" in their name
EQUAL_AREA_METHODS = {"mollweide", "sinusoidal", "equal earth", "goode homolosine"}


# ============================================================================
# CELL AREA
# ============================================================================
def cell_area_km2(layer):
    """Ground area (km2) of every cell of `layer`'s grid."""
    t = layer.transform
    if t.b != 0 or t.d != 0:
        raise AlignmentError("rotated grids are not supported for area computation",
                             layer=layer.name, stage="zonal")
    crs = CRS.from_user_input(layer.crs)
    height, width = layer.shape

    if crs.is_geographic:
        rows = np.arange(height + 1)
        edges = np.clip(t.f + rows * t.e, -90.0, 90.0)
        sin_lat = np.sin(np.radians(edges))
        band = np.abs(np.diff(sin_lat))
        row_area = config.EARTH_RADIUS_KM ** 2 * math.radians(abs(t.a)) * band
        return np.repeat(row_area[:, np.newaxis], width, axis=1)

    proj = pyproj.CRS.from_user_input(crs.to_wkt())
    unit_m = proj.axis_info[0].unit_conversion_factor
    if _is_equal_area(proj):
        area = abs(t.a * t.e) * unit_m ** 2 / 1e6
        return np.full(layer.shape, area, dtype=np.float64)
    return _projected_cell_area(t, layer.shape, proj)


def _is_equal_area(proj):
    op = proj.coordinate_operation
    method = op.method_name.lower() if op is not None else ""
    return "equal area" in method or method in EQUAL_AREA_METHODS


def _projected_cell_area(t, shape, proj):
    """
    True cell areas on a projected grid that is not equal-area. Cell corners
    go through a Lambert azimuthal equal-area projection centred on the grid
    and each cell is measured there with the shoelace formula.
    """
    height, width = shape
    xs = t.c + t.a * np.arange(width + 1)
    ys = t.f + t.e * np.arange(height + 1)
    gx, gy = np.meshgrid(xs, ys)

    to_lonlat = pyproj.Transformer.from_crs(proj, "EPSG:4326", always_xy=True)
    lon0, lat0 = to_lonlat.transform(xs.mean(), ys.mean())
    laea = pyproj.CRS.from_proj4(
        f"+proj=laea +lat_0={lat0} +lon_0={lon0} +datum=WGS84 +units=m +no_defs")
    to_laea = pyproj.Transformer.from_crs(proj, laea, always_xy=True)
    ex, ey = to_laea.transform(gx, gy)

    # corners: top-left, top-right, bottom-right, bottom-left
    x = (ex[:-1, :-1], ex[:-1, 1:], ex[1:, 1:], ex[1:, :-1])
    y = (ey[:-1, :-1], ey[:-1, 1:], ey[1:, 1:], ey[1:, :-1])
    twice = sum(x[i] * y[(i + 1) % 4] - x[(i + 1) % 4] * y[i] for i in range(4))
    return np.abs(twice) / 2.0 / 1e6


def total_suitable_area(mask, cell_area=None):
    """Suitable area over the whole grid, ignoring zones."""
    if cell_area is None:
        cell_area = cell_area_km2(mask)
    return float(np.where(mask.data == 1, cell_area, 0.0).sum())


# ============================================================================
# ZONE RASTER
# ============================================================================
def rasterize_zones(zones, layer):
    """
    Burn zone polygons onto `layer`'s grid. Cell value i+1 marks the i-th
    zone (file order); 0 marks cells outside every zone. A cell belongs to
    the zone containing its centre; where zones overlap the later one wins.
    """
    if zones.crs is None:
        raise AlignmentError("zone layer has no CRS", layer="zones", stage="zonal")
    if layer.crs is not None and zones.crs != layer.crs:
        zones = zones.to_crs(layer.crs)

    shapes = [(mapping(geom), i + 1) for i, geom in enumerate(zones.geometry)
              if geom is not None and not geom.is_empty]
    if not shapes:
        return np.zeros(layer.shape, dtype=np.int32)
    return rasterize(shapes, out_shape=layer.shape, transform=layer.transform,
                     fill=0, all_touched=False, dtype="int32")


# ============================================================================
# AGGREGATION
# ============================================================================
def suitable_percent(suitable_area, reference_area):
    """suitable / reference * 100; DivisionUndefined for zero or missing reference."""
    if reference_area is None or pd.isna(reference_area) or reference_area <= 0:
        raise DivisionUndefined(f"reference area is {reference_area}")
    return suitable_area / reference_area * 100.0


def zonal_suitable_area(mask, zones, id_field=config.ZONE_ID_FIELD,
                        area_field=config.ZONE_AREA_FIELD,
                        zone_index=None, cell_area=None):
    """
    Suitable area per zone.

    Returns (table, zone_area) where `table` has one row per zone with
    region_id, suitable_area_km2, reference_area_km2 and suitable_percent,
    and `zone_area` is a raster holding each zone's suitable area on every
    cell of that zone.
    """
    if zone_index is None:
        zone_index = rasterize_zones(zones, mask)
    if cell_area is None:
        cell_area = cell_area_km2(mask)
    for label, grid in (("zones", zone_index), ("cell_area", cell_area)):
        if grid.shape != mask.shape:
            raise GridMismatchError(f"{label} grid {grid.shape} does not match mask "
                                    f"{mask.shape}", layer=label, stage="zonal")

    n_zones = len(zones)
    weights = np.where(mask.data == 1, cell_area, 0.0)
    sums = np.bincount(zone_index.ravel(), weights=weights.ravel(),
                       minlength=n_zones + 1)

    # zones that own at least one cell
    present = np.unique(zone_index[zone_index > 0])
    zonal = pd.DataFrame({"zone": present, "suitable_area_km2": sums[present]})

    table = pd.DataFrame({
        "zone": np.arange(1, n_zones + 1),
        "region_id": zones[id_field].to_numpy(),
        "reference_area_km2": zones[area_field].to_numpy(dtype=np.float64),
    })
    table = table.merge(zonal, on="zone", how="left")
    table["suitable_area_km2"] = table["suitable_area_km2"].fillna(0.0)

    percents = []
    for row in table.itertuples(index=False):
        try:
            percents.append(suitable_percent(row.suitable_area_km2, row.reference_area_km2))
        except DivisionUndefined:
            print(f"  Zone {row.region_id}: reference area {row.reference_area_km2} "
                  f"-> percentage undefined")
            percents.append(np.nan)
            continue
        if percents[-1] > 100.0:
            print(f"  Zone {row.region_id}: suitable area exceeds reference area "
                  f"({percents[-1]:.1f}%)")
    table["suitable_percent"] = percents

    lookup = np.full(n_zones + 1, np.nan)
    lookup[1:] = table["suitable_area_km2"].to_numpy()
    zone_area = mask.with_data(lookup[zone_index], name="zone_suitable_area")

    return table[config.TABLE_COLUMNS], zone_area
