import geopandas as gpd
import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin
from shapely.geometry import box

from eez_aquaculture.layers import RasterLayer

# ETRS89-LAEA: equal-area, metres, so a 1000 m cell is exactly 1 km2
LAEA = "EPSG:3035"
WEST, NORTH = 4_000_000.0, 3_000_000.0
CELL = 1000.0

nan = np.nan

# 4x4 synthetic grid: mean SST (degC) and elevation (m, negative below sea level)
TEMPERATURE = np.array([
    [5.0, 11.0, 20.0, 30.0],
    [31.0, 15.0, 24.0, 25.0],
    [10.0, 12.0, nan, 28.0],
    [22.0, 18.0, 9.0, 29.5],
])
ELEVATION = np.array([
    [-10.0, -70.0, -71.0, 0.0],
    [-50.0, -150.0, -200.0, -5.0],
    [5.0, -30.0, -20.0, -201.0],
    [-69.9, -100.0, -60.0, nan],
])


def make_layer(data, name="raster", crs=LAEA, west=WEST, north=NORTH, res=CELL):
    data = np.asarray(data, dtype=np.float64)
    return RasterLayer(data, from_origin(west, north, res, res),
                       rasterio.crs.CRS.from_user_input(crs), name=name)


def grid_box(layer):
    b = layer.bounds
    return box(b.left, b.bottom, b.right, b.top)


def write_tif(path, layer, nodata=None):
    profile = dict(driver="GTiff", height=layer.shape[0], width=layer.shape[1],
                   count=1, dtype="float32", crs=layer.crs,
                   transform=layer.transform, nodata=nodata)
    data = layer.data.astype(np.float32)
    if nodata is not None:
        data = np.where(np.isnan(data), nodata, data).astype(np.float32)
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(data, 1)
    return path


@pytest.fixture
def sst():
    return make_layer(TEMPERATURE, name="sst")


@pytest.fixture
def depth():
    return make_layer(ELEVATION, name="depth")


@pytest.fixture
def whole_zone(sst):
    return gpd.GeoDataFrame({"rgn": ["Whole Grid"], "area_km2": [16.0]},
                            geometry=[grid_box(sst)], crs=LAEA)


@pytest.fixture
def quadrant_zones(sst):
    b = sst.bounds
    mx, my = (b.left + b.right) / 2, (b.bottom + b.top) / 2
    geoms = [
        box(b.left, my, mx, b.top),
        box(mx, my, b.right, b.top),
        box(b.left, b.bottom, mx, my),
        box(mx, b.bottom, b.right, my),
    ]
    return gpd.GeoDataFrame({"rgn": ["NW", "NE", "SW", "SE"],
                             "area_km2": [4.0, 4.0, 4.0, 4.0]},
                            geometry=geoms, crs=LAEA)


@pytest.fixture
def data_dir(tmp_path, sst, depth, whole_zone):
    """On-disk copy of the synthetic inputs in the default file layout."""
    sst_dir = tmp_path / "sst"
    sst_dir.mkdir()
    # two years (degC) whose mean is TEMPERATURE
    write_tif(sst_dir / "average_annual_sst_2008.tif", sst.with_data(sst.data - 1.0), nodata=-9999)
    write_tif(sst_dir / "average_annual_sst_2009.tif", sst.with_data(sst.data + 1.0), nodata=-9999)
    write_tif(tmp_path / "depth.tif", depth, nodata=-32768)
    whole_zone.to_file(tmp_path / "wc_regions_clean.shp")
    return tmp_path
