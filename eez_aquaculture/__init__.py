"""
EEZ aquaculture suitability
===========================
Reclassifies mean sea-surface temperature and bathymetry against a species'
tolerance bands and sums the suitable area inside each EEZ region.
"""

from .alignment import align_layers, align_to_reference
from .combine import combine_masks
from .config import SPECIES, SpeciesProfile, SuitabilityRange, make_species
from .errors import (AlignmentError, DivisionUndefined, GridMismatchError,
                     InputDataError, InvalidRangeError, SuitabilityError)
from .layers import RasterLayer, load_bathymetry, load_sst_stack, load_zones
from .pipeline import (AnalysisContext, SuitabilityResult, compute_suitability,
                       run_all_species, run_species)
from .reclassify import reclassify
from .zonal import cell_area_km2, rasterize_zones, total_suitable_area, zonal_suitable_area

__version__ = "0.1.0"
