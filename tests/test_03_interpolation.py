"""
Interpolated fields: bilinear, inverse distance and nearest lookups, normalization, rendering
"""
import itertools

import numpy as np
import pytest
from PIL import Image

from imagecombine.errors import DegenerateFieldError, DegenerateFieldWarning
from imagecombine.field import (
    BilinearStrategy,
    InterpolatedField,
    InverseDistanceStrategy,
    NearestStrategy,
    create_strategy,
)


def create_field(strategy='bilinear', rate=10, width=45, height=32, seed=1):
    """Random field; 45x32 at rate 10 gives a 4 row x 5 column grid"""
    rng = np.random.default_rng(seed)
    data = rng.random((height // rate + 1, width // rate + 1))
    return InterpolatedField(data, rate, width, height, strategy=strategy)


def test_empty_grid_shape():
    field = InterpolatedField.empty(100, 61, 20)
    assert field.shape == (61 // 20 + 1, 100 // 20 + 1)
    assert np.all(field.data == 0.0)


def test_bilinear_exact_at_anchors():
    """Every anchor inside the image returns its stored value exactly"""
    field = create_field()
    rows, cols = field.shape
    for iy in range(rows):
        for ix in range(cols):
            x, y = ix * field.rate, iy * field.rate
            if x < field.original_width and y < field.original_height:
                assert field.at(x, y) == field.data[iy, ix]


def test_bilinear_midpoints():
    data = np.array([[0.0, 1.0], [2.0, 3.0]])
    field = InterpolatedField(data, 10, 11, 11)

    assert field.at(5, 0) == pytest.approx(0.5)
    assert field.at(0, 5) == pytest.approx(1.0)
    assert field.at(5, 5) == pytest.approx(1.5)
    assert field.at(2, 7) == pytest.approx(0.2 + 0.7 * 2.0)


def test_bilinear_clamps_at_edges():
    """Past the last anchor the edge cells repeat instead of extrapolating"""
    data = np.array([[0.0, 1.0], [2.0, 3.0]])
    field = InterpolatedField(data, 10, 20, 20)

    assert field.at(15, 0) == 1.0
    assert field.at(0, 15) == 2.0
    assert field.at(19, 19) == 3.0
    assert field.at(15, 5) == pytest.approx(2.0)


def test_all_in_bounds_lookups_stay_in_grid():
    """Corners, edges and the full interior never index outside the sparse grid"""
    for width, height, rate in [(45, 32, 10), (50, 50, 1), (101, 7, 3), (64, 64, 16)]:
        data = np.random.default_rng(width).random((height // rate + 1, width // rate + 1))
        for strategy in ('bilinear', 'idw', 'nearest'):
            field = InterpolatedField(data, rate, width, height, strategy=strategy)
            for x, y in itertools.product((0, width // 2, width - 1), (0, height // 2, height - 1)):
                value = field.at(x, y)
                assert data.min() - 1e-12 <= value <= data.max() + 1e-12


def test_out_of_bounds_lookup_rejected():
    field = create_field()
    with pytest.raises(ValueError):
        field.at(45, 0)
    with pytest.raises(ValueError):
        field.at(0, -1)


def test_idw_exact_anchor():
    field = create_field('idw')
    assert field.at(10, 20) == field.data[2, 1]


def test_idw_two_nearest_weighting():
    """Between two anchors the closer one dominates with weight 1/distance"""
    data = np.array([[0.0, 1.0, 5.0], [7.0, 9.0, 11.0]])
    field = InterpolatedField(data, 10, 21, 11, strategy='idw')

    # (3, 0): anchors (0,0) at distance 3 and (10,0) at distance 7
    expected = (0.0 / 3 + 1.0 / 7) / (1 / 3 + 1 / 7)
    assert field.at(3, 0) == pytest.approx(expected)


def test_idw_power_and_neighbors():
    data = np.array([[0.0, 1.0, 5.0], [7.0, 9.0, 11.0]])
    strategy = InverseDistanceStrategy(power=2.0, neighbors=1)
    field = InterpolatedField(data, 10, 21, 11, strategy=strategy)
    assert field.at(3, 0) == pytest.approx(0.0)
    assert field.at(8, 0) == pytest.approx(1.0)


def test_nearest_lookup():
    data = np.array([[0.0, 1.0], [2.0, 3.0]])
    field = InterpolatedField(data, 10, 20, 20, strategy='nearest')
    assert field.at(9, 9) == 0.0
    assert field.at(10, 9) == 1.0
    assert field.at(19, 19) == 3.0


@pytest.mark.parametrize('strategy', ['bilinear', 'idw', 'nearest'])
def test_render_matches_point_lookup(strategy):
    """The parallel dense render agrees with at() for every pixel"""
    field = create_field(strategy, rate=7, width=30, height=22)
    dense = field.to_array()
    assert dense.shape == (22, 30)
    for y in range(22):
        for x in range(30):
            assert dense[y, x] == pytest.approx(field.at(x, y), abs=1e-12)


def test_normalize_range_and_idempotence():
    field = create_field()
    field.data = field.data * 40.0 + 3.0

    field.normalize()
    assert field.data.min() == 0.0
    assert field.data.max() == 1.0

    once = field.data.copy()
    field.normalize()
    np.testing.assert_array_equal(field.data, once)


def test_normalize_uniform_field():
    field = InterpolatedField(np.full((3, 4), 0.2), 5, 16, 11)
    with pytest.warns(DegenerateFieldWarning) as record:
        field.normalize()
    assert record[0].filename == __file__
    assert np.all(field.data == 0.5)

    strict_field = InterpolatedField(np.full((3, 4), 0.2), 5, 16, 11)
    with pytest.raises(DegenerateFieldError):
        strict_field.normalize(strict=True)
    assert np.all(strict_field.data == 0.2)


def test_grayscale_image():
    data = np.array([[0.0, 1.0], [0.5, 0.25]])
    field = InterpolatedField(data, 10, 11, 11)
    image = field.to_grayscale_image()

    assert isinstance(image, Image.Image)
    assert image.mode == 'L'
    assert image.size == (11, 11)
    pixels = np.array(image)
    assert pixels[0, 0] == 0
    assert pixels[0, 10] == 255
    assert pixels[10, 0] == 128
    assert pixels[10, 10] == 64


def test_strategy_resolution():
    assert isinstance(create_strategy('bilinear'), BilinearStrategy)
    assert isinstance(create_strategy(None), BilinearStrategy)
    assert isinstance(create_strategy('nearest'), NearestStrategy)
    custom = InverseDistanceStrategy(power=3.0)
    assert create_strategy(custom) is custom
    with pytest.raises(ValueError):
        create_strategy('bicubic')


def test_invalid_field_construction():
    with pytest.raises(ValueError):
        InterpolatedField(np.zeros((2, 2)), 0, 10, 10)
    with pytest.raises(ValueError):
        InterpolatedField(np.zeros(4), 1, 10, 10)
