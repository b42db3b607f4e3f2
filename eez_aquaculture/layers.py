"""
Raster layers, zone polygons and file I/O
=========================================
A RasterLayer is a 2-D float grid with its affine transform and CRS.
Nodata is always NaN in memory; file nodata sentinels are converted on load
and written back out as NaN.
"""

import warnings
from pathlib import Path

import geopandas as gpd
import numpy as np
import rasterio
from rasterio.coords import BoundingBox
from rasterio.transform import array_bounds

from . import config
from .errors import InputDataError

# Grid equality tolerance, as a fraction of one cell
GRID_TOLERANCE = 1e-9


def _coeffs(t):
    return (t.a, t.b, t.c, t.d, t.e, t.f)


class RasterLayer:
    """Single-band raster held in memory."""

    def __init__(self, data, transform, crs, name="raster"):
        data = np.asarray(data, dtype=np.float64)
        if data.ndim != 2:
            raise ValueError(f"raster '{name}' must be 2-D, got shape {data.shape}")
        self.data = data
        self.transform = transform
        self.crs = crs
        self.name = name

    # --- grid geometry ---
    @property
    def shape(self):
        return self.data.shape

    @property
    def res(self):
        return (abs(self.transform.a), abs(self.transform.e))

    @property
    def bounds(self):
        west, south, east, north = array_bounds(self.shape[0], self.shape[1],
                                                self.transform)
        return BoundingBox(west, south, east, north)

    @property
    def nodata(self):
        return np.nan

    def same_grid(self, other):
        """Structural grid equality: CRS, shape and cell alignment."""
        if self.shape != other.shape:
            return False
        if self.crs != other.crs:
            return False
        tol = GRID_TOLERANCE * max(min(self.res), 1e-12)
        return np.allclose(_coeffs(self.transform), _coeffs(other.transform),
                           rtol=0, atol=tol)

    def with_data(self, data, name=None):
        """New layer on the same grid."""
        return RasterLayer(data, self.transform, self.crs,
                           name=name if name is not None else self.name)

    def freeze(self):
        self.data.setflags(write=False)
        return self

    def valid_count(self):
        return int(np.count_nonzero(~np.isnan(self.data)))

    def __repr__(self):
        return (f"RasterLayer({self.name!r}, shape={self.shape}, "
                f"res=({self.res[0]:g}, {self.res[1]:g}), crs={self.crs})")


def check_same_grid(layers, error, stage=None):
    """Raise `error` unless every layer shares the grid of the first one."""
    layers = list(layers)
    reference = layers[0]
    for layer in layers[1:]:
        if not reference.same_grid(layer):
            raise error(
                f"grid of '{layer.name}' {layer.shape} res={layer.res} "
                f"does not match '{reference.name}' {reference.shape} res={reference.res}",
                layer=layer.name, stage=stage)


# ============================================================================
# READERS
# ============================================================================
def read_raster(path, name=None):
    """Read band 1 of a raster file as a RasterLayer (nodata -> NaN)."""
    path = Path(path)
    if not path.exists():
        raise InputDataError(f"raster file not found: {path}", layer=name or path.stem)
    with rasterio.open(path) as src:
        band = src.read(1, masked=True)
        data = band.astype(np.float64).filled(np.nan)
        return RasterLayer(data, src.transform, src.crs, name=name or path.stem)


def load_sst_stack(directory, pattern=config.SST_PATTERN, kelvin=True):
    """
    Load every per-time-step SST raster in `directory` and return their
    cell-wise mean (NaN-aware) as one layer, in degC.
    """
    directory = Path(directory)
    files = sorted(directory.glob(pattern))
    if not files:
        raise InputDataError(f"no files matching '{pattern}' in {directory}", layer="sst")

    steps = [read_raster(f, name=f.stem) for f in files]
    reference = steps[0]
    for step in steps[1:]:
        if not reference.same_grid(step):
            raise InputDataError(
                f"time step '{step.name}' is not on the grid of '{reference.name}'",
                layer="sst")

    stack = np.stack([s.data for s in steps])
    with warnings.catch_warnings():
        # cells that are NaN in every step stay NaN
        warnings.simplefilter("ignore", category=RuntimeWarning)
        mean = np.nanmean(stack, axis=0)
    if kelvin:
        mean = mean - config.SST_KELVIN_OFFSET
    return reference.with_data(mean, name="sst")


def load_bathymetry(path):
    """Bathymetry as elevation in metres (negative below sea level)."""
    return read_raster(path, name="depth")


def load_zones(path, id_field=config.ZONE_ID_FIELD, area_field=config.ZONE_AREA_FIELD):
    """Read the zone polygon file and check its identifier/area fields."""
    path = Path(path)
    if not path.exists():
        raise InputDataError(f"zone file not found: {path}", layer="zones")
    zones = gpd.read_file(path)
    return validate_zones(zones, id_field, area_field)


def validate_zones(zones, id_field=config.ZONE_ID_FIELD, area_field=config.ZONE_AREA_FIELD):
    missing = [f for f in (id_field, area_field) if f not in zones.columns]
    if missing:
        raise InputDataError(f"zone layer lacks field(s) {missing}", layer="zones")
    dupes = zones[id_field][zones[id_field].duplicated()].unique().tolist()
    if dupes:
        raise InputDataError(f"duplicate region identifiers {dupes}", layer="zones")
    return zones.reset_index(drop=True)


# ============================================================================
# WRITERS
# ============================================================================
def write_raster(layer, path):
    """Write a layer as a float32 GeoTIFF with NaN nodata."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    profile = dict(driver="GTiff", height=layer.shape[0], width=layer.shape[1],
                   count=1, dtype="float32", crs=layer.crs,
                   transform=layer.transform, nodata=np.nan)
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(layer.data.astype(np.float32), 1)
    return path
