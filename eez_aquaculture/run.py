"""
West Coast EEZ Aquaculture Suitability - batch run
==================================================
Loads mean SST, bathymetry and EEZ regions once, then computes suitable
area per region for each requested species and writes the table, the two
derived rasters and a map per species.
"""

import argparse
import io
import sys
import warnings
from pathlib import Path

from . import config
from .config import get_species, make_species, slugify
from .errors import SuitabilityError
from .layers import write_raster
from .pipeline import AnalysisContext
from .render import render_suitability_maps, render_suitability_raster
from .zonal import total_suitable_area


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Suitable marine aquaculture area per EEZ region from SST and depth")
    parser.add_argument("--data-dir", type=Path, default=config.DATA_DIR,
                        help=f"input directory (default: {config.DATA_DIR})")
    parser.add_argument("--output-dir", type=Path, default=config.OUTPUT_DIR,
                        help=f"output directory (default: {config.OUTPUT_DIR})")
    parser.add_argument("--species", action="append", default=None,
                        help=f"preset species, repeatable ({', '.join(sorted(config.SPECIES))})")
    parser.add_argument("--custom", nargs=5, action="append", default=None,
                        metavar=("NAME", "TEMP_MIN", "TEMP_MAX", "DEPTH_MIN", "DEPTH_MAX"),
                        help="custom species: degC band and depth band in metres below surface")
    parser.add_argument("--sst-units", choices=["kelvin", "celsius"], default="kelvin",
                        help="units of the SST rasters (default: kelvin)")
    parser.add_argument("--no-maps", action="store_true", help="skip map rendering")
    return parser.parse_args(argv)


def requested_species(args):
    profiles = []
    for name in args.species or []:
        profiles.append(get_species(name))
    for name, tmin, tmax, dmin, dmax in args.custom or []:
        profiles.append(make_species(name, float(tmin), float(tmax),
                                     float(dmin), float(dmax)))
    if not profiles:
        profiles = list(config.SPECIES.values())
    return profiles


def write_outputs(result, output_dir, zones, maps=True):
    slug = slugify(result.species.name)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = {
        "table": output_dir / f"{slug}_suitable_area.csv",
        "suitability": output_dir / f"{slug}_suitability.tif",
        "zone_area": output_dir / f"{slug}_zone_area.tif",
    }
    result.table.to_csv(paths["table"], index=False)
    write_raster(result.suitability, paths["suitability"])
    write_raster(result.zone_area, paths["zone_area"])
    if maps:
        paths["map"] = render_suitability_maps(
            result, zones, output_dir / f"{slug}_suitability_map.png")
        paths["cells"] = render_suitability_raster(
            result, output_dir / f"{slug}_suitable_cells.png")
    return paths


def print_report(result, context):
    species = result.species
    table = result.table
    total = total_suitable_area(result.suitability, context.cell_area)
    print(f"\n  {species.name.upper()}: SST {species.temperature} degC, "
          f"depth {species.depth} m")
    print(f"  {'Region':<28}{'Suitable km2':>14}{'Region km2':>14}{'Percent':>10}")
    print(f"  {'-' * 66}")
    for row in table.itertuples(index=False):
        pct = "n/a" if row.suitable_percent != row.suitable_percent \
            else f"{row.suitable_percent:.2f}%"
        print(f"  {str(row.region_id):<28}{row.suitable_area_km2:>14,.1f}"
              f"{row.reference_area_km2:>14,.0f}{pct:>10}")
    print(f"  {'-' * 66}")
    print(f"  {'All regions':<28}{table['suitable_area_km2'].sum():>14,.1f}")
    print(f"  Grid total (no zones):      {total:,.1f} km2")


def main(argv=None):
    args = parse_args(argv)
    try:
        profiles = requested_species(args)
    except (KeyError, SuitabilityError) as exc:
        print(f"ERROR: {exc}")
        return 1

    print("=" * 70)
    print("AQUACULTURE SUITABILITY BY EEZ REGION")
    print("=" * 70)

    try:
        print("\n[1/3] Loading and aligning SST, bathymetry and EEZ regions...")
        context = AnalysisContext.from_files(args.data_dir,
                                             kelvin=args.sst_units == "kelvin")
        res = context.sst.res
        print(f"  Grid: {context.sst.shape[1]}x{context.sst.shape[0]} cells, "
              f"res {res[0]:g} x {res[1]:g}, CRS {context.sst.crs}")
        print(f"  Regions: {len(context.zones)}")
        print(f"  Valid SST cells: {context.sst.valid_count():,}  "
              f"valid depth cells: {context.depth.valid_count():,}")

        print(f"\n[2/3] Computing suitability for {len(profiles)} species...")
        results = [context.run(p) for p in profiles]
        for result in results:
            print_report(result, context)

        print("\n[3/3] Writing outputs...")
        for result in results:
            paths = write_outputs(result, args.output_dir, context.zones,
                                  maps=not args.no_maps)
            for kind, path in paths.items():
                print(f"  {kind:<12} {path}")
    except SuitabilityError as exc:
        print(f"\nERROR in stage '{exc.stage}'"
              + (f" (layer '{exc.layer}')" if exc.layer else "") + f": {exc.message}")
        return 1

    print("\nAnalysis complete.")
    return 0


def cli():
    warnings.filterwarnings("ignore")
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
    sys.exit(main())


if __name__ == "__main__":
    cli()
