"""
Species suitability pipeline
============================
An AnalysisContext holds one dataset load: the aligned SST and depth
layers, the zone polygons, and the zone/cell-area grids derived from them.
All of it is read-only after construction. Each species call reclassifies
from scratch, so nothing computed for one tolerance band leaks into the next.
"""

from collections import namedtuple
from pathlib import Path

from . import config
from .alignment import align_layers
from .combine import combine_masks
from .config import depth_to_elevation, get_species, make_species
from .layers import load_bathymetry, load_sst_stack, load_zones, validate_zones
from .reclassify import reclassify
from .zonal import cell_area_km2, rasterize_zones, zonal_suitable_area

SuitabilityResult = namedtuple(
    "SuitabilityResult", ["species", "table", "suitability", "zone_area"])


class AnalysisContext:
    """Aligned base layers for one analysis run."""

    def __init__(self, sst, depth, zones, id_field=config.ZONE_ID_FIELD,
                 area_field=config.ZONE_AREA_FIELD):
        self.id_field = id_field
        self.area_field = area_field
        self.zones = validate_zones(zones, id_field, area_field)

        # SST defines the common grid
        sst, depth = align_layers(sst, depth)
        self.sst = sst.with_data(sst.data.copy()).freeze()
        self.depth = depth.freeze()

        self.zone_index = rasterize_zones(self.zones, self.sst)
        self.zone_index.setflags(write=False)
        self.cell_area = cell_area_km2(self.sst)
        self.cell_area.setflags(write=False)

    @classmethod
    def from_files(cls, data_dir=None, sst_dir=None, depth_path=None, zones_path=None,
                   sst_pattern=config.SST_PATTERN, kelvin=True, **kwargs):
        data_dir = Path(data_dir) if data_dir is not None else config.DATA_DIR
        sst = load_sst_stack(sst_dir or data_dir / config.SST_SUBDIR,
                             pattern=sst_pattern, kelvin=kelvin)
        depth = load_bathymetry(depth_path or data_dir / config.DEPTH_FILE)
        zones = load_zones(zones_path or data_dir / config.ZONES_FILE,
                           kwargs.get("id_field", config.ZONE_ID_FIELD),
                           kwargs.get("area_field", config.ZONE_AREA_FIELD))
        return cls(sst, depth, zones, **kwargs)

    def suitability_mask(self, species):
        """Composite mask for a SpeciesProfile."""
        sst_mask = reclassify(self.sst, species.temperature, name="sst_mask")
        depth_mask = reclassify(self.depth, depth_to_elevation(species.depth),
                                name="depth_mask")
        return combine_masks(sst_mask, depth_mask, name=f"{species.name} suitability")

    def run(self, species):
        mask = self.suitability_mask(species)
        table, zone_area = zonal_suitable_area(
            mask, self.zones, self.id_field, self.area_field,
            zone_index=self.zone_index, cell_area=self.cell_area)
        return SuitabilityResult(species, table, mask, zone_area)


def compute_suitability(context, temp_min, temp_max, depth_min, depth_max, species_name):
    """
    Suitable area per zone for one species.

    Temperatures are degC; depths are metres below the surface (0 = surface),
    both bands inclusive at either end.
    """
    species = make_species(species_name, temp_min, temp_max, depth_min, depth_max)
    return context.run(species)


def run_species(context, name):
    """Run a preset from config.SPECIES."""
    return context.run(get_species(name))


def run_all_species(context, names=None):
    names = list(names) if names is not None else list(config.SPECIES)
    return {name: run_species(context, name) for name in names}
