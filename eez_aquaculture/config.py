"""
Run configuration and species presets
=====================================
Paths resolve against DATA_DIR / OUTPUT_DIR, which can be moved with the
EEZ_AQUA_DATA_DIR and EEZ_AQUA_OUTPUT_DIR environment variables.
"""

import os
from collections import namedtuple
from pathlib import Path

from .errors import InvalidRangeError

# ============================================================================
# CONFIGURATION
# ============================================================================
DATA_DIR = Path(os.environ.get("EEZ_AQUA_DATA_DIR", "data"))
OUTPUT_DIR = Path(os.environ.get("EEZ_AQUA_OUTPUT_DIR", "outputs"))

ZONES_FILE = "wc_regions_clean.shp"
DEPTH_FILE = "depth.tif"
SST_SUBDIR = "sst"
SST_PATTERN = "average_annual_sst_*.tif"

# --- Zone attribute fields ---
ZONE_ID_FIELD = "rgn"
ZONE_AREA_FIELD = "area_km2"

# --- Units ---
SST_KELVIN_OFFSET = 273.15      # SST rasters are distributed in Kelvin
EARTH_RADIUS_KM = 6371.0088     # IUGG mean radius

# Output table columns
TABLE_COLUMNS = ["region_id", "suitable_area_km2",
                 "reference_area_km2", "suitable_percent"]


# ============================================================================
# TOLERANCE BANDS
# ============================================================================
class SuitabilityRange(namedtuple("SuitabilityRange", ["low", "high"])):
    """Inclusive tolerance band [low, high] for one environmental variable."""

    __slots__ = ()

    def __new__(cls, low, high, layer=None):
        low, high = float(low), float(high)
        if low != low or high != high:
            raise InvalidRangeError(f"range bounds must be numbers, got ({low}, {high})",
                                    layer=layer)
        if low > high:
            raise InvalidRangeError(f"min {low:g} is greater than max {high:g}",
                                    layer=layer)
        return super().__new__(cls, low, high)

    @property
    def width(self):
        return self.high - self.low

    def __str__(self):
        return f"{self.low:g}-{self.high:g}"


def depth_to_elevation(depth_range):
    """
    Convert a depth band in positive metres below the surface to the
    elevation band the bathymetry raster is stored in (negative down).

    Depth 0-70 m becomes elevation -70..0 m; both ends stay inclusive.
    """
    return SuitabilityRange(-depth_range.high, -depth_range.low, layer="depth")


SpeciesProfile = namedtuple("SpeciesProfile", ["name", "temperature", "depth"])


def make_species(name, temp_min, temp_max, depth_min, depth_max):
    """Build a SpeciesProfile; temperatures in degC, depths in metres below surface."""
    return SpeciesProfile(
        name=name,
        temperature=SuitabilityRange(temp_min, temp_max, layer="sst"),
        depth=SuitabilityRange(depth_min, depth_max, layer="depth"),
    )


# --- Species presets (temperature degC, depth m below surface) ---
SPECIES = {
    "oyster":        make_species("oyster", 11, 30, 0, 70),
    "rainbow trout": make_species("rainbow trout", 10, 24, 0, 200),
}


def get_species(name):
    key = name.strip().lower()
    if key not in SPECIES:
        known = ", ".join(sorted(SPECIES))
        raise KeyError(f"unknown species '{name}' (known: {known})")
    return SPECIES[key]


def slugify(name):
    return "_".join(name.strip().lower().split())
