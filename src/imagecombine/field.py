import warnings
from typing import Union

import numpy as np
from PIL import Image
from numba import njit, prange

from imagecombine.errors import DegenerateFieldError, DegenerateFieldWarning

"""
Continuous scalar fields reconstructed from a sparse, downsampled grid
"""

@njit
def bilinear_at(data, rate, x, y):
	"""
	Bilinear lookup of source pixel (x, y) on a grid sampled every `rate` pixels.

	Floor/ceil indices are clamped to the last row/column, so edge cells repeat.
	An axis whose two indices coincide uses the cell value directly.
	"""
	rows, cols = data.shape
	gx = x / rate
	gy = y / rate

	x0 = min(int(np.floor(gx)), cols - 1)
	x1 = min(int(np.ceil(gx)), cols - 1)
	y0 = min(int(np.floor(gy)), rows - 1)
	y1 = min(int(np.ceil(gy)), rows - 1)

	if x0 == x1:
		top = data[y0, x0]
		bottom = data[y1, x0]
	else:
		tx = (gx - x0) / (x1 - x0)
		top = data[y0, x0] * (1.0 - tx) + data[y0, x1] * tx
		bottom = data[y1, x0] * (1.0 - tx) + data[y1, x1] * tx

	if y0 == y1:
		return top
	ty = (gy - y0) / (y1 - y0)
	return top * (1.0 - ty) + bottom * ty

@njit
def inverse_distance_at(data, rate, x, y, power, neighbors):
	"""
	Inverse distance weighting over the `neighbors` closest anchors.

	Anchors sit at (ix * rate, iy * rate). A query on an anchor returns its value.
	"""
	rows, cols = data.shape
	n = rows * cols
	distances = np.empty(n, dtype=np.float64)
	values = np.empty(n, dtype=np.float64)

	k = 0
	for iy in range(rows):
		for ix in range(cols):
			dx = x - ix * rate
			dy = y - iy * rate
			dist = np.sqrt(dx * dx + dy * dy)
			if dist == 0.0:
				return data[iy, ix]
			distances[k] = dist
			values[k] = data[iy, ix]
			k += 1

	order = np.argsort(distances, kind='mergesort')
	count = min(neighbors, n)

	weighted_sum = 0.0
	denominator = 0.0
	for i in range(count):
		weight = 1.0 / distances[order[i]] ** power
		weighted_sum += values[order[i]] * weight
		denominator += weight

	return weighted_sum / denominator

@njit
def nearest_at(data, rate, x, y):
	"""Value of the cell containing (x, y), without interpolation"""
	rows, cols = data.shape
	return data[min(y // rate, rows - 1), min(x // rate, cols - 1)]

@njit(parallel=True)
def render_bilinear(data, rate, width, height):
	out = np.empty((height, width), dtype=np.float64)
	for y in prange(height):
		for x in range(width):
			out[y, x] = bilinear_at(data, rate, x, y)
	return out

@njit(parallel=True)
def render_inverse_distance(data, rate, width, height, power, neighbors):
	out = np.empty((height, width), dtype=np.float64)
	for y in prange(height):
		for x in range(width):
			out[y, x] = inverse_distance_at(data, rate, x, y, power, neighbors)
	return out

@njit(parallel=True)
def render_nearest(data, rate, width, height):
	out = np.empty((height, width), dtype=np.float64)
	for y in prange(height):
		for x in range(width):
			out[y, x] = nearest_at(data, rate, x, y)
	return out

class ScalarFieldStrategy:
	"""
	Lookup policy of an InterpolatedField.

	Subclasses implement a single-point lookup and a full-resolution render.
	Both must agree pixel for pixel.
	"""
	name = None

	def at(self, data: np.ndarray, rate: int, x: int, y: int) -> float:
		raise NotImplementedError

	def render(self, data: np.ndarray, rate: int, width: int, height: int) -> np.ndarray:
		raise NotImplementedError

	def __repr__(self):
		return f"{type(self).__name__}()"

class BilinearStrategy(ScalarFieldStrategy):
	"""Bilinear interpolation between the four surrounding anchors (default)"""
	name = 'bilinear'

	def at(self, data, rate, x, y):
		return float(bilinear_at(data, rate, x, y))

	def render(self, data, rate, width, height):
		return render_bilinear(data, rate, width, height)

class InverseDistanceStrategy(ScalarFieldStrategy):
	"""
	Inverse distance weighting over the closest anchors.

	Scans every anchor per query, so rendering a full field is O(pixels x anchors).
	"""
	name = 'idw'

	def __init__(self, power: float = 1.0, neighbors: int = 2):
		if power <= 0:
			raise ValueError("power must be positive")
		if neighbors < 1:
			raise ValueError("neighbors must be at least 1")
		self.power = float(power)
		self.neighbors = int(neighbors)

	def at(self, data, rate, x, y):
		return float(inverse_distance_at(data, rate, x, y, self.power, self.neighbors))

	def render(self, data, rate, width, height):
		return render_inverse_distance(data, rate, width, height, self.power, self.neighbors)

	def __repr__(self):
		return f"InverseDistanceStrategy(power={self.power}, neighbors={self.neighbors})"

class NearestStrategy(ScalarFieldStrategy):
	"""Blocky lookup of the enclosing cell"""
	name = 'nearest'

	def at(self, data, rate, x, y):
		return float(nearest_at(data, rate, x, y))

	def render(self, data, rate, width, height):
		return render_nearest(data, rate, width, height)

STRATEGIES = {
	'bilinear': BilinearStrategy,
	'idw': InverseDistanceStrategy,
	'nearest': NearestStrategy,
}

def create_strategy(strategy: Union[str, ScalarFieldStrategy, None] = 'bilinear', **params) -> ScalarFieldStrategy:
	"""Resolve a strategy name (or pass through an instance)"""
	if strategy is None:
		return BilinearStrategy()
	if isinstance(strategy, ScalarFieldStrategy):
		return strategy
	if strategy not in STRATEGIES:
		raise ValueError(f"Invalid interpolation: {strategy}. Must be one of {', '.join(STRATEGIES)}")
	if strategy == 'idw':
		return InverseDistanceStrategy(**params)
	return STRATEGIES[strategy]()

class InterpolatedField:
	"""
	Sparse grid of samples taken every `rate` source pixels, read back as a
	continuous field over the original resolution.

	Parameters
	----------
	data : np.ndarray
		2D grid of samples, addressed [row, column]. Copied on construction.
	rate : int
		Spacing in source pixels between adjacent anchors. Must be >= 1.
	original_width, original_height : int
		Size of the source image the field covers.
	strategy : str or ScalarFieldStrategy, default='bilinear'
		'bilinear', 'idw' or 'nearest', or a strategy instance.
	"""

	def __init__(
		self,
		data: np.ndarray,
		rate: int,
		original_width: int,
		original_height: int,
		strategy: Union[str, ScalarFieldStrategy, None] = 'bilinear'
	):
		data = np.array(data, dtype=np.float64)
		if data.ndim != 2 or data.size == 0:
			raise ValueError(f"Field data must be a non-empty 2D grid, got shape {data.shape}")
		if rate < 1:
			raise ValueError(f"rate must be at least 1, got {rate}")
		if original_width < 1 or original_height < 1:
			raise ValueError("original dimensions must be positive")

		self.data = data
		self.rate = int(rate)
		self.original_width = int(original_width)
		self.original_height = int(original_height)
		self.strategy = create_strategy(strategy)

	@classmethod
	def empty(cls, width: int, height: int, rate: int, strategy: Union[str, ScalarFieldStrategy, None] = 'bilinear') -> "InterpolatedField":
		"""Zeroed field with one anchor every `rate` pixels plus a trailing row and column"""
		if rate < 1:
			raise ValueError(f"rate must be at least 1, got {rate}")
		data = np.zeros((height // rate + 1, width // rate + 1), dtype=np.float64)
		return cls(data, rate, width, height, strategy=strategy)

	@property
	def shape(self):
		return self.data.shape

	def at(self, x: int, y: int) -> float:
		"""Field value at source pixel (x, y)"""
		if not (0 <= x < self.original_width and 0 <= y < self.original_height):
			raise ValueError(
				f"({x}, {y}) is outside the {self.original_width}x{self.original_height} field"
			)
		return self.strategy.at(self.data, self.rate, int(x), int(y))

	def normalize(self, strict: bool = False, stacklevel: int = 2) -> "InterpolatedField":
		"""
		Rescale the grid in place so its minimum maps to 0 and its maximum to 1.

		A uniform grid has no range to rescale: it becomes a constant 0.5 field
		(with a DegenerateFieldWarning), or raises DegenerateFieldError when strict.
		stacklevel is passed to warnings.warn so wrappers can point the warning at their caller.
		"""
		low = float(self.data.min())
		high = float(self.data.max())
		if high == low:
			if strict:
				raise DegenerateFieldError(f"Cannot normalize a uniform field (every value is {low})")
			warnings.warn(
				f"Uniform field (every value is {low}), using a constant 0.5 instead",
				DegenerateFieldWarning,
				stacklevel=stacklevel
			)
			self.data.fill(0.5)
			return self

		self.data = (self.data - low) / (high - low)
		return self

	def to_array(self) -> np.ndarray:
		"""Dense H x W float64 field at the original resolution"""
		return self.strategy.render(self.data, self.rate, self.original_width, self.original_height)

	def to_grayscale_image(self) -> Image.Image:
		"""Render the field as an 8-bit greyscale image, value v -> round(v * 255)"""
		dense = self.to_array()
		gray = np.clip(np.rint(dense * 255.0), 0, 255).astype(np.uint8)
		return Image.fromarray(gray)

	def __repr__(self):
		rows, cols = self.data.shape
		return (
			f"InterpolatedField({cols}x{rows} anchors, rate={self.rate}, "
			f"original={self.original_width}x{self.original_height}, strategy={self.strategy!r})"
		)
