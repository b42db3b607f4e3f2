import numpy as np
import pytest

from conftest import ELEVATION, make_layer
from eez_aquaculture.config import SuitabilityRange
from eez_aquaculture.errors import InvalidRangeError
from eez_aquaculture.reclassify import reclassify


def test_both_ends_inclusive():
    layer = make_layer([[10.0, 11.0, 30.0, 30.5]])
    mask = reclassify(layer, 11, 30)
    assert np.isnan(mask.data[0, 0])
    assert mask.data[0, 1] == 1
    assert mask.data[0, 2] == 1
    assert np.isnan(mask.data[0, 3])


def test_nan_input_never_suitable(sst):
    mask = reclassify(sst, -1000, 1000)
    assert np.isnan(mask.data[2, 2])
    assert mask.valid_count() == 15


def test_degenerate_band():
    layer = make_layer([[4.0, 5.0, 6.0, np.nan]])
    mask = reclassify(layer, 5, 5)
    assert np.array_equal(mask.data, [[np.nan, 1.0, np.nan, np.nan]], equal_nan=True)


def test_mask_matches_band_everywhere():
    rng = np.random.default_rng(7)
    values = rng.uniform(-50, 50, size=(30, 30))
    values[rng.random((30, 30)) < 0.1] = np.nan
    layer = make_layer(values)
    for low, high in [(-10, 10), (0, 0), (-50, 50), (20, 21)]:
        mask = reclassify(layer, low, high).data
        inside = (values >= low) & (values <= high)
        assert np.all(mask[inside] == 1)
        assert np.all(np.isnan(mask[~inside]))


def test_only_one_and_nan_in_output(depth):
    mask = reclassify(depth, SuitabilityRange(-70, 0))
    values = mask.data[~np.isnan(mask.data)]
    assert set(values.tolist()) == {1.0}


def test_inverted_range_rejected(sst):
    with pytest.raises(InvalidRangeError) as err:
        reclassify(sst, 30, 11)
    assert err.value.stage == "reclassify"
    assert err.value.layer == "sst"


def test_nan_bound_rejected(sst):
    with pytest.raises(InvalidRangeError):
        reclassify(sst, np.nan, 11)


def test_grid_is_preserved(sst):
    mask = reclassify(sst, 11, 30)
    assert mask.same_grid(sst)
    assert mask.name == "sst_mask"


def test_input_not_modified(depth):
    before = depth.data.copy()
    reclassify(depth, -70, 0)
    assert np.array_equal(depth.data, before, equal_nan=True)
    assert np.array_equal(ELEVATION, before, equal_nan=True)
