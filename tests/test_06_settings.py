"""
Settings validation and JSON persistence, image coercion helpers
"""
import json

import numpy as np
import pytest
from PIL import Image

from imagecombine.errors import ConfigurationError, DimensionMismatchError, ImageCombineError
from imagecombine.settings import DEFAULT_SETTINGS, CombineSettings, load_settings, save_settings
from imagecombine.tools.image_tools import as_rgba_array, get_pil_save_kwargs, image_size, pixel_at


def test_defaults():
    assert DEFAULT_SETTINGS.rate_divisor == 50
    assert DEFAULT_SETTINGS.radius_divisor == 30
    assert DEFAULT_SETTINGS.bright_threshold == 0.9
    assert DEFAULT_SETTINGS.shadow_threshold == 0.3
    assert DEFAULT_SETTINGS.highlight_threshold == 0.8
    assert DEFAULT_SETTINGS.base_ratio == 0.5
    assert DEFAULT_SETTINGS.highlight_floor_ratio == 0.2
    assert DEFAULT_SETTINGS.jpeg_quality == 100
    assert DEFAULT_SETTINGS.validated() == DEFAULT_SETTINGS


@pytest.mark.parametrize('overrides', [
    {'rate_divisor': 0},
    {'radius_divisor': -1},
    {'bright_threshold': 1.0},
    {'shadow_threshold': 0.0},
    {'highlight_threshold': 1.5},
    {'base_ratio': -0.1},
    {'highlight_floor_ratio': 1.2},
    {'idw_power': 0.0},
    {'idw_neighbors': 0},
    {'jpeg_quality': 0},
    {'jpeg_quality': 101},
])
def test_invalid_values_rejected(overrides):
    with pytest.raises(ConfigurationError):
        CombineSettings(**overrides).validated()


def test_configuration_error_is_value_error():
    """Callers catching ValueError or the package base class both see config problems"""
    with pytest.raises(ValueError):
        CombineSettings(rate_divisor=0).validated()
    with pytest.raises(ImageCombineError):
        CombineSettings(rate_divisor=0).validated()
    assert issubclass(DimensionMismatchError, ImageCombineError)


def test_json_round_trip(tmp_path):
    settings = CombineSettings(rate_divisor=25, shadow_threshold=0.25, idw_neighbors=4, jpeg_quality=90)
    path = tmp_path / "nested" / "settings.json"

    save_settings(settings, path)

    assert load_settings(path) == settings
    assert json.loads(path.read_text())['rate_divisor'] == 25


def test_partial_and_unknown_keys(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({'base_ratio': 0.6, 'unused_option': True}))

    settings = load_settings(path)

    assert settings.base_ratio == 0.6
    assert settings.rate_divisor == DEFAULT_SETTINGS.rate_divisor


def test_from_dict_coerces_numbers():
    settings = CombineSettings.from_dict({'rate_divisor': '40', 'bright_threshold': '0.85'})
    assert settings.rate_divisor == 40
    assert settings.bright_threshold == 0.85


def test_from_dict_bad_input():
    with pytest.raises(ConfigurationError):
        CombineSettings.from_dict([1, 2, 3])
    with pytest.raises(ConfigurationError):
        CombineSettings.from_dict({'rate_divisor': 'fifty'})


def test_malformed_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ConfigurationError):
        load_settings(path)


def test_as_rgba_array_from_rgb_and_gray():
    rgb = np.zeros((4, 5, 3), dtype=np.uint8)
    rgb[1, 2] = (10, 20, 30)
    rgba = as_rgba_array(rgb)
    assert rgba.shape == (4, 5, 4)
    assert pixel_at(rgba, 2, 1) == (10, 20, 30, 255)
    assert image_size(rgba) == (5, 4)

    gray = as_rgba_array(np.full((3, 3), 77, dtype=np.uint8))
    assert pixel_at(gray, 0, 0) == (77, 77, 77, 255)


def test_as_rgba_array_float_and_pil(tmp_path):
    floats = np.full((2, 2, 3), 0.5)
    assert pixel_at(as_rgba_array(floats), 0, 0) == (128, 128, 128, 255)

    path = tmp_path / "img.png"
    Image.new('RGB', (6, 3), (1, 2, 3)).save(path)
    from_path = as_rgba_array(path)
    assert image_size(from_path) == (6, 3)
    assert pixel_at(as_rgba_array(str(path)), 5, 2) == (1, 2, 3, 255)


def test_as_rgba_array_is_frozen_copy():
    source = np.zeros((2, 2, 4), dtype=np.uint8)
    frozen = as_rgba_array(source)
    assert not frozen.flags.writeable
    assert source.flags.writeable
    with pytest.raises(ValueError):
        frozen[0, 0, 0] = 1


def test_as_rgba_array_rejects_bad_shape():
    with pytest.raises(ValueError):
        as_rgba_array(np.zeros((2, 2, 2), dtype=np.uint8))


def test_save_kwargs(tmp_path):
    assert get_pil_save_kwargs(tmp_path / "a.jpeg", 95) == {'quality': 95}
    assert get_pil_save_kwargs(tmp_path / "a.JPG") == {'quality': 100}
    assert get_pil_save_kwargs(tmp_path / "a.png") == {'compress_level': 3}
    assert get_pil_save_kwargs(tmp_path / "a.bmp") == {}


def test_non_utf8_settings_file(tmp_path):
    path = tmp_path / "binary.json"
    path.write_bytes(b"\xff\xfe\x00garbage")
    with pytest.raises(ConfigurationError):
        load_settings(path)


def test_as_rgba_array_16bit_png(tmp_path):
    """16-bit greyscale keeps its level: the low byte is dropped, not clipped to white"""
    path = tmp_path / "grey16.png"
    Image.fromarray(np.full((10, 10), 32768, dtype=np.uint16)).save(path)

    rgba = as_rgba_array(path)

    assert pixel_at(rgba, 0, 0) == (128, 128, 128, 255)
    assert pixel_at(as_rgba_array(Image.open(path)), 9, 9) == (128, 128, 128, 255)


def test_as_rgba_array_16bit_array():
    deep = np.zeros((2, 3, 3), dtype=np.uint16)
    deep[0, 0] = (65535, 32768, 255)
    deep[1, 2] = (256, 511, 0)

    rgba = as_rgba_array(deep)

    assert pixel_at(rgba, 0, 0) == (255, 128, 0, 255)
    assert pixel_at(rgba, 2, 1) == (1, 1, 0, 255)
