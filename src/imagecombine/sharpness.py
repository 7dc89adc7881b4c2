from typing import Callable, Optional, Tuple, Union

import numpy as np
from numba import njit, prange

from imagecombine.errors import ConfigurationError
from imagecombine.field import InterpolatedField, ScalarFieldStrategy, create_strategy
from imagecombine.luminance import luminance_map
from imagecombine.settings import DEFAULT_SETTINGS, CombineSettings
from imagecombine.tools.image_tools import ImageLike, as_rgba_array

"""
Sharpness sampling - local luminance variance on a downsampled grid
"""

@njit
def window_variance(lum_map, cx, cy, radius):
	"""
	Population variance of the luminance window [c - radius, c + radius) around
	(cx, cy), clipped to the image bounds.
	"""
	height, width = lum_map.shape
	start_y = max(cy - radius, 0)
	end_y = min(cy + radius, height)
	start_x = max(cx - radius, 0)
	end_x = min(cx + radius, width)

	count = (end_y - start_y) * (end_x - start_x)
	if count <= 0:
		return 0.0

	# Shift by the first sample so a flat window yields exactly 0
	shift = lum_map[start_y, start_x]
	total = 0.0
	for y in range(start_y, end_y):
		for x in range(start_x, end_x):
			total += lum_map[y, x] - shift
	mean = total / count

	sq_dev = 0.0
	for y in range(start_y, end_y):
		for x in range(start_x, end_x):
			d = (lum_map[y, x] - shift) - mean
			sq_dev += d * d
	return sq_dev / count

@njit(parallel=True)
def sample_variance_grid(lum_map, rate, radius):
	"""
	Sparse grid of local variances, one anchor every `rate` pixels.

	The grid has (height // rate + 1) x (width // rate + 1) cells. Anchors
	cover [0, width // rate) x [0, height // rate); the trailing row and
	column stay 0.
	"""
	height, width = lum_map.shape
	rows = height // rate
	cols = width // rate
	data = np.zeros((rows + 1, cols + 1), dtype=np.float64)

	# Each row of anchors is independent
	for cy in prange(rows):
		for cx in range(cols):
			data[cy, cx] = window_variance(lum_map, cx * rate, cy * rate, radius)
	return data

def sampling_parameters(width: int, settings: CombineSettings = DEFAULT_SETTINGS) -> Tuple[int, int]:
	"""
	Downsample rate and window radius for an image of the given width.

	Raises:
		ConfigurationError: if either parameter truncates to zero (e.g. width < 50 with defaults)
	"""
	rate = width // settings.rate_divisor
	radius = width // settings.radius_divisor
	if rate < 1:
		raise ConfigurationError(
			f"Image width {width} is too small for sharpness sampling: "
			f"downsample rate width // {settings.rate_divisor} is {rate} "
			f"(need width >= {settings.rate_divisor})"
		)
	if radius < 1:
		raise ConfigurationError(
			f"Image width {width} is too small for sharpness sampling: "
			f"window radius width // {settings.radius_divisor} is {radius}"
		)
	return rate, radius

class SharpnessSampler:
	"""
	Estimates where an image is in focus.

	Low local luminance variance marks flat or blurred regions, high variance
	marks texture and focused detail. The variance is sampled on a sparse grid
	and read back through an InterpolatedField normalized to [0, 1].

	Parameters
	----------
	settings : CombineSettings, optional
		Sampling divisors and interpolation parameters.
	interpolation : str or ScalarFieldStrategy, default='bilinear'
		Lookup strategy of the returned field.
	progress : callable, optional
		Called with a short message at each stage.
	"""

	def __init__(
		self,
		settings: Optional[CombineSettings] = None,
		interpolation: Union[str, ScalarFieldStrategy] = 'bilinear',
		progress: Optional[Callable[[str], None]] = None
	):
		self.settings = (settings or DEFAULT_SETTINGS).validated()
		if interpolation == 'idw':
			self.strategy = create_strategy(
				'idw',
				power=self.settings.idw_power,
				neighbors=self.settings.idw_neighbors
			)
		else:
			self.strategy = create_strategy(interpolation)
		self._progress = progress

	def _report(self, message: str):
		if self._progress is not None:
			self._progress(message)

	def sampling_parameters(self, width: int) -> Tuple[int, int]:
		return sampling_parameters(width, self.settings)

	def sample(self, lum_map: np.ndarray) -> np.ndarray:
		"""Raw (unnormalized) sparse variance grid of a luminance map"""
		rate, radius = self.sampling_parameters(lum_map.shape[1])
		return sample_variance_grid(np.ascontiguousarray(lum_map, dtype=np.float64), rate, radius)

	def analyze(self, image: ImageLike) -> InterpolatedField:
		"""
		Build the normalized importance field of an image.

		Parameters
		----------
		image : PIL.Image, np.ndarray, Path, or str
			Source image

		Returns
		-------
		InterpolatedField
			Field over the full image resolution with values in [0, 1]
		"""
		rgba = as_rgba_array(image)
		height, width = rgba.shape[:2]
		rate, radius = self.sampling_parameters(width)

		self._report(f"computing luminance ({width}x{height})")
		lum_map = luminance_map(rgba)

		self._report(f"sampling sharpness (rate={rate}, radius={radius})")
		data = sample_variance_grid(lum_map, rate, radius)

		field = InterpolatedField(data, rate, width, height, strategy=self.strategy)
		# Warn at the caller of analyze, not here
		field.normalize(stacklevel=3)
		self._report("sharpness field normalized")
		return field

def interpolated_blur_detect(image: ImageLike, **kwargs) -> InterpolatedField:
	"""Quick function to compute an importance field with default settings"""
	return SharpnessSampler(**kwargs).analyze(image)
