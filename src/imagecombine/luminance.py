import math
from typing import Sequence

import numpy

"""
Perceived brightness of RGB pixels
"""

# Channel weights of the perceived brightness formula sqrt(0.299 R^2 + 0.587 G^2 + 0.114 B^2)
RED_WEIGHT = 0.299
GREEN_WEIGHT = 0.587
BLUE_WEIGHT = 0.114

def luminance(pixel: Sequence[int]) -> float:
	"""
	Perceived brightness of a single 8-bit pixel.

	Args:
		pixel: (R, G, B) or (R, G, B, A) with channels in [0, 255]. Alpha is ignored.

	Returns:
		Brightness in [0, 1]; 0 for black, 1 for white up to float rounding
	"""
	r = pixel[0] / 255.0
	g = pixel[1] / 255.0
	b = pixel[2] / 255.0
	return math.sqrt(RED_WEIGHT * (r * r) + GREEN_WEIGHT * (g * g) + BLUE_WEIGHT * (b * b))

def luminance_map(image: numpy.ndarray) -> numpy.ndarray:
	"""
	Per-pixel brightness of an RGB(A) image.

	Args:
		image: H x W x 3 or H x W x 4 uint8 array

	Returns:
		H x W float64 array in [0, 1], addressed [y, x] like the input
	"""
	rgb = image[:, :, :3].astype(numpy.float64) / 255.0
	r = rgb[:, :, 0]
	g = rgb[:, :, 1]
	b = rgb[:, :, 2]
	return numpy.sqrt(RED_WEIGHT * (r * r) + GREEN_WEIGHT * (g * g) + BLUE_WEIGHT * (b * b))
