import numpy as np
import pytest

from conftest import ELEVATION, TEMPERATURE
from eez_aquaculture.config import SPECIES, make_species
from eez_aquaculture.errors import InvalidRangeError
from eez_aquaculture.pipeline import (AnalysisContext, compute_suitability,
                                      run_all_species, run_species)


def expected_cells(temp, depth):
    with np.errstate(invalid="ignore"):
        inside = ((TEMPERATURE >= temp[0]) & (TEMPERATURE <= temp[1])
                  & (ELEVATION >= -depth[1]) & (ELEVATION <= -depth[0]))
    return int(inside.sum())


@pytest.fixture
def context(sst, depth, whole_zone):
    return AnalysisContext(sst, depth, whole_zone)


def test_oyster_scenario(context):
    result = compute_suitability(context, 11, 30, 0, 70, "oyster")
    row = result.table.iloc[0]
    assert expected_cells((11, 30), (0, 70)) == 5
    assert row["region_id"] == "Whole Grid"
    assert row["suitable_area_km2"] == pytest.approx(5.0)
    assert row["reference_area_km2"] == 16.0
    assert row["suitable_percent"] == pytest.approx(5 / 16 * 100)


def test_rainbow_trout_scenario(context):
    oyster = compute_suitability(context, 11, 30, 0, 70, "oyster")
    trout = compute_suitability(context, 10, 24, 0, 200, "rainbow trout")
    area = trout.table.iloc[0]["suitable_area_km2"]
    assert area == pytest.approx(expected_cells((10, 24), (0, 200)))
    assert area == pytest.approx(7.0)
    assert area >= oyster.table.iloc[0]["suitable_area_km2"]


def test_wider_band_never_loses_area(context):
    narrow = compute_suitability(context, 12, 25, 10, 60, "narrow")
    wide = compute_suitability(context, 10, 30, 0, 200, "wide")
    assert (wide.table["suitable_area_km2"].to_numpy()
            >= narrow.table["suitable_area_km2"].to_numpy()).all()


def test_boundary_cells_inclusive(context):
    mask = context.run(SPECIES["oyster"]).suitability.data
    assert mask[0, 1] == 1      # 11 degC at exactly -70 m
    assert mask[0, 3] == 1      # 30 degC at the surface
    assert np.isnan(mask[0, 2])  # -71 m
    assert np.isnan(mask[3, 3])  # no depth value


def test_preset_matches_parameters(context):
    preset = run_species(context, "Oyster")
    explicit = compute_suitability(context, 11, 30, 0, 70, "oyster")
    assert preset.table.equals(explicit.table)


def test_repeat_calls_are_identical(context):
    first = compute_suitability(context, 11, 30, 0, 70, "oyster")
    compute_suitability(context, 10, 24, 0, 200, "rainbow trout")
    again = compute_suitability(context, 11, 30, 0, 70, "oyster")
    assert first.table.equals(again.table)
    assert np.array_equal(first.suitability.data, again.suitability.data, equal_nan=True)
    assert np.array_equal(first.zone_area.data, again.zone_area.data, equal_nan=True)
    assert first.suitability.data is not again.suitability.data


def test_base_layers_read_only(context, sst):
    assert not context.sst.data.flags.writeable
    assert not context.depth.data.flags.writeable
    assert not context.zone_index.flags.writeable
    with pytest.raises(ValueError):
        context.sst.data[0, 0] = 99.0
    # the caller's layer is left alone
    assert sst.data.flags.writeable


def test_derived_rasters(context):
    result = run_species(context, "oyster")
    assert result.suitability.same_grid(context.sst)
    assert result.zone_area.same_grid(context.sst)
    assert np.allclose(result.zone_area.data, 5.0)


def test_invalid_band(context):
    with pytest.raises(InvalidRangeError) as err:
        compute_suitability(context, 30, 11, 0, 70, "backwards")
    assert err.value.layer == "sst"
    with pytest.raises(InvalidRangeError) as err:
        compute_suitability(context, 11, 30, 70, 0, "backwards")
    assert err.value.layer == "depth"


def test_run_all_species(context):
    results = run_all_species(context)
    assert set(results) == set(SPECIES)
    assert results["rainbow trout"].species.name == "rainbow trout"


def test_unknown_species(context):
    with pytest.raises(KeyError):
        run_species(context, "kelp")


def test_from_files(data_dir):
    context = AnalysisContext.from_files(data_dir, kelvin=False)
    assert np.allclose(context.sst.data, TEMPERATURE, equal_nan=True)
    assert np.array_equal(context.depth.data, ELEVATION.astype(np.float32), equal_nan=True)
    result = context.run(make_species("oyster", 11, 30, 0, 70))
    assert result.table.iloc[0]["suitable_area_km2"] == pytest.approx(5.0)
