import warnings
from pathlib import Path
from typing import Tuple, Union

import numpy
from PIL import Image

"""
Image boundary helpers: coercion to the immutable RGBA array used by the core, and saving
"""

DEFAULT_JPEG_QUALITY = 100
DEFAULT_PNG_COMPRESS_LEVEL = 3

ImageLike = Union[Image.Image, numpy.ndarray, Path, str]

# Pillow modes holding one 16-bit (or wider integer) channel, e.g. 16-bit greyscale PNG
SIXTEEN_BIT_MODES = ('I', 'I;16', 'I;16L', 'I;16B', 'I;16N')

def as_rgba_array(image: ImageLike) -> numpy.ndarray:
	"""
	Coerce an image into a read-only H x W x 4 uint8 RGBA array.

	16-bit data (Pillow 'I;16'/'I' images, uint16 or int16 arrays) is scaled
	down to 8 bits by dropping the low byte.

	Args:
		image: PIL image, numpy array (greyscale, RGB or RGBA; uint8, uint16 or float in [0, 1]) or file path

	Returns:
		C-contiguous uint8 array addressed [y, x, channel], not writeable
	"""
	if isinstance(image, (Path, str)):
		with Image.open(image) as opened:
			opened.load()
			image = opened.copy()

	if isinstance(image, Image.Image):
		if image.mode in SIXTEEN_BIT_MODES:
			image = numpy.clip(numpy.array(image, dtype=numpy.int64), 0, 65535).astype(numpy.uint16)
		else:
			if image.mode != 'RGBA':
				image = image.convert('RGBA')
			image = numpy.array(image, dtype=numpy.uint8)

	array = numpy.asarray(image)
	if array.dtype.itemsize == 2 and numpy.issubdtype(array.dtype, numpy.integer):
		array = (numpy.clip(array, 0, 65535).astype(numpy.uint16) >> 8).astype(numpy.uint8)
	elif numpy.issubdtype(array.dtype, numpy.integer):
		array = numpy.clip(array, 0, 255).astype(numpy.uint8)
	elif array.dtype != numpy.uint8:
		if array.size and array.max() > 1.0:
			warnings.warn("Image values > 1.0 detected, treating as 8-bit")
			array = numpy.clip(array, 0, 255).astype(numpy.uint8)
		else:
			array = numpy.clip(numpy.rint(array * 255.0), 0, 255).astype(numpy.uint8)

	if array.ndim == 2:
		array = numpy.stack([array] * 3, axis=2)
	if array.ndim != 3 or array.shape[2] not in (3, 4):
		raise ValueError(f"Unsupported image shape: {array.shape}")
	if array.shape[2] == 3:
		alpha = numpy.full(array.shape[:2] + (1,), 255, dtype=numpy.uint8)
		array = numpy.concatenate([array, alpha], axis=2)

	# Own the buffer so freezing it never touches the caller's array
	array = numpy.array(array, dtype=numpy.uint8, order='C', copy=True)
	array.flags.writeable = False
	return array

def image_size(image: numpy.ndarray) -> Tuple[int, int]:
	"""(width, height) of an RGBA array"""
	return image.shape[1], image.shape[0]

def pixel_at(image: numpy.ndarray, x: int, y: int) -> Tuple[int, int, int, int]:
	"""RGBA tuple at (x, y), origin top-left"""
	r, g, b, a = image[y, x]
	return int(r), int(g), int(b), int(a)

def get_pil_save_kwargs(output_path: Path, jpeg_quality: int = DEFAULT_JPEG_QUALITY) -> dict:
	"""
	Get appropriate save kwargs based on output file format.

	Args:
		output_path: Path to the output file
		jpeg_quality: Quality for JPEG output

	Returns:
		Dictionary of kwargs to pass to PIL Image.save()
	"""
	ext = output_path.suffix.lower()

	if ext in ['.jpg', '.jpeg']:
		return {'quality': jpeg_quality}
	elif ext == '.png':
		return {'compress_level': DEFAULT_PNG_COMPRESS_LEVEL}
	else:
		return {}

def save_image(image: Image.Image, output_path: Union[Path, str], jpeg_quality: int = DEFAULT_JPEG_QUALITY) -> Path:
	"""Save an image, flattening alpha for formats that cannot store it"""
	output_path = Path(output_path)
	if output_path.suffix.lower() in ['.jpg', '.jpeg'] and image.mode not in ['L', 'RGB']:
		image = image.convert('RGB')
	image.save(output_path, **get_pil_save_kwargs(output_path, jpeg_quality))
	return output_path

if __name__ == '__main__':
	print('__main__ not supported in modules.')
