"""
Suitable-area maps
==================
Two-panel choropleth per species: (A) absolute suitable area per zone,
(B) percentage of zone area. Consumes a SuitabilityResult and the zone
polygons only; nothing here feeds back into the numeric pipeline.
"""

from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from matplotlib.colors import LinearSegmentedColormap
import numpy as np

from . import config

AREA_COLORS = ["#F7FCF5", "#C7E9C0", "#74C476", "#238B45", "#004529"]
PCT_COLORS = ["#F7FBFF", "#C6DBEF", "#6BAED6", "#2171B5", "#08306B"]
NO_DATA_COLOR = "#D9D9D9"


def _zone_frame(result, zones, id_field):
    frame = zones[[id_field, zones.geometry.name]].merge(
        result.table, left_on=id_field, right_on="region_id", how="left")
    return frame.to_crs("EPSG:4326") if frame.crs is not None else frame


def _panel(ax, frame, column, cmap, label, title):
    ax.set_facecolor("#AED9E0")
    frame.plot(ax=ax, column=column, cmap=cmap, edgecolor="#555555", linewidth=0.6,
               legend=True, legend_kwds={"label": label, "shrink": 0.6},
               missing_kwds={"color": NO_DATA_COLOR, "hatch": "///"},
               zorder=2)
    frame.boundary.plot(ax=ax, color="#1E5AA8", linewidth=1.0, linestyle="--", zorder=3)

    for geom, region in zip(frame.geometry, frame["region_id"]):
        if geom is None or geom.is_empty:
            continue
        pt = geom.representative_point()
        ax.annotate(str(region), xy=(pt.x, pt.y), ha="center", fontsize=7.5,
                    color="#1A1A2E", zorder=5)

    ax.set_title(title, fontsize=13, fontweight="bold", pad=10)
    ax.set_xlabel("Longitude", fontsize=10)
    ax.set_ylabel("Latitude", fontsize=10)
    ax.tick_params(labelsize=8)
    ax.grid(True, linestyle=":", alpha=0.3, color="#666666")


def render_suitability_maps(result, zones, output_png, id_field=config.ZONE_ID_FIELD):
    """Draw and save the two-panel map; returns the output path."""
    output_png = Path(output_png)
    species = result.species
    frame = _zone_frame(result, zones, id_field)

    cmap_area = LinearSegmentedColormap.from_list("suit_area", AREA_COLORS, N=256)
    cmap_pct = LinearSegmentedColormap.from_list("suit_pct", PCT_COLORS, N=256)

    fig, (ax_area, ax_pct) = plt.subplots(1, 2, figsize=(18, 10), facecolor="white")

    _panel(ax_area, frame, "suitable_area_km2", cmap_area, "Suitable area (km2)",
           "A. Suitable Area by EEZ Region")
    _panel(ax_pct, frame, "suitable_percent", cmap_pct, "Suitable area (% of region)",
           "B. Percent of EEZ Region Suitable")

    # --- Summary box ---
    table = result.table
    total = table["suitable_area_km2"].sum()
    best = table.loc[table["suitable_area_km2"].idxmax()] if len(table) else None
    summary_text = (
        f"{species.name.title()}\n"
        f"{'-' * 28}\n"
        f"SST:    {species.temperature} degC\n"
        f"Depth:  {species.depth} m\n"
        f"{'-' * 28}\n"
        f"Suitable: {total:,.0f} km2\n"
    )
    if best is not None:
        summary_text += f"Top:      {best['region_id']}"
    props = dict(boxstyle="round,pad=0.6", facecolor="white", alpha=0.92,
                 edgecolor="#999999", linewidth=0.8)
    ax_area.text(0.02, 0.02, summary_text, transform=ax_area.transAxes, fontsize=9,
                 va="bottom", ha="left", bbox=props, fontfamily="monospace", zorder=10)

    if table["suitable_percent"].isna().any():
        ax_pct.legend(handles=[mpatches.Patch(facecolor=NO_DATA_COLOR, hatch="///",
                                              edgecolor="#555555",
                                              label="Percentage undefined")],
                      loc="lower left", fontsize=8, framealpha=0.92)

    fig.suptitle(f"{species.name.title()} Aquaculture Suitability by EEZ Region",
                 fontsize=17, fontweight="bold", color="#1A1A2E")
    fig.text(0.5, 0.02,
             "Suitability: mean SST within tolerance AND depth within tolerance | "
             "area from cell-centre zone membership",
             ha="center", fontsize=7.5, color="#666666", style="italic")

    output_png.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_png, dpi=200, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    return output_png


def render_suitability_raster(result, output_png):
    """Quick-look of the composite mask with the per-zone area layer behind it."""
    output_png = Path(output_png)
    mask = result.suitability
    b = mask.bounds
    extent = [b.left, b.right, b.bottom, b.top]

    fig, ax = plt.subplots(1, 1, figsize=(10, 10), facecolor="white")
    ax.set_facecolor("#AED9E0")
    cmap_area = LinearSegmentedColormap.from_list("zone_area", PCT_COLORS, N=256)
    cmap_area.set_bad(alpha=0)
    im = ax.imshow(result.zone_area.data, extent=extent, origin="upper",
                   cmap=cmap_area, interpolation="nearest", zorder=1)
    suitable = np.ma.masked_invalid(mask.data)
    ax.imshow(suitable, extent=extent, origin="upper",
              cmap=LinearSegmentedColormap.from_list("suit", ["#238B45", "#238B45"]),
              interpolation="nearest", alpha=0.85, zorder=2)
    fig.colorbar(im, ax=ax, shrink=0.6, label="Zone suitable area (km2)")
    ax.legend(handles=[mpatches.Patch(facecolor="#238B45", label="Suitable cell")],
              loc="lower left", fontsize=9)
    ax.set_title(f"{result.species.name.title()} - Suitable Cells",
                 fontsize=14, fontweight="bold", pad=12)

    output_png.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_png, dpi=200, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    return output_png
