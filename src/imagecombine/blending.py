from typing import Optional, Sequence, Tuple

import numpy as np
from numba import njit, prange

from imagecombine.errors import DimensionMismatchError
from imagecombine.luminance import luminance, luminance_map
from imagecombine.settings import DEFAULT_SETTINGS, CombineSettings
from imagecombine.sharpness import SharpnessSampler

"""
Per-pixel blending of two images - luminance and importance-mask policies
"""

MODES = ('luminance', 'mask')

RGBA = Tuple[int, int, int, int]

@njit
def luminance_ratio(lum1, lum2, bright_threshold, shadow_threshold, highlight_threshold, base_ratio, highlight_floor_ratio):
	"""
	Weight of the first pixel given both luminances.

	- a bright first pixel dominates with its own luminance as the ratio
	- a dark second pixel tapers the ratio linearly from base_ratio down to 0
	- a bright second pixel eases the ratio from base_ratio down to highlight_floor_ratio
	"""
	ratio = base_ratio
	if lum1 > bright_threshold:
		ratio = lum1
	elif lum2 < shadow_threshold:
		ratio = (base_ratio / shadow_threshold) * lum2
	elif lum2 > highlight_threshold:
		# Line through (highlight_threshold, base_ratio) and (1.0, highlight_floor_ratio)
		m = (highlight_floor_ratio - base_ratio) / (1.0 - highlight_threshold)
		c = highlight_floor_ratio - m
		ratio = m * lum2 + c
	return ratio

@njit
def mask_ratio(importance1, importance2):
	return (importance1 + (1.0 - importance2)) / 2.0

@njit
def mix_channel(v1, v2, ratio):
	"""Mix two 8-bit channels in the 16-bit domain, truncating back to 8 bits"""
	c1 = np.int64(v1) * 257
	c2 = np.int64(v2) * 257
	mixed = c1 * ratio + c2 * (1.0 - ratio)
	return min(np.int64(mixed) >> 8, 255)

@njit
def mix_alpha(a1, a2):
	# Not alpha compositing: the 16-bit sum shifted back and wrapped to 8 bits
	return ((np.int64(a1) * 257 + np.int64(a2) * 257) >> 8) & 0xFF

@njit(parallel=True)
def combine_luminance_kernel(img1, img2, lum1, lum2, bright_threshold, shadow_threshold, highlight_threshold, base_ratio, highlight_floor_ratio):
	height, width = lum1.shape
	out = np.empty((height, width, 4), dtype=np.uint8)
	for y in prange(height):
		for x in range(width):
			ratio = luminance_ratio(
				lum1[y, x], lum2[y, x],
				bright_threshold, shadow_threshold, highlight_threshold,
				base_ratio, highlight_floor_ratio
			)
			for c in range(3):
				out[y, x, c] = mix_channel(img1[y, x, c], img2[y, x, c], ratio)
			out[y, x, 3] = mix_alpha(img1[y, x, 3], img2[y, x, 3])
	return out

@njit(parallel=True)
def combine_mask_kernel(img1, img2, importance1, importance2):
	height, width = importance1.shape
	out = np.empty((height, width, 4), dtype=np.uint8)
	for y in prange(height):
		for x in range(width):
			ratio = mask_ratio(importance1[y, x], importance2[y, x])
			for c in range(3):
				out[y, x, c] = mix_channel(img1[y, x, c], img2[y, x, c], ratio)
			out[y, x, 3] = mix_alpha(img1[y, x, 3], img2[y, x, 3])
	return out

def _luminance_ratio(lum1: float, lum2: float, settings: CombineSettings) -> float:
	return float(luminance_ratio(
		lum1, lum2,
		settings.bright_threshold, settings.shadow_threshold, settings.highlight_threshold,
		settings.base_ratio, settings.highlight_floor_ratio
	))

def _mix(c1: Sequence[int], c2: Sequence[int], ratio: float) -> RGBA:
	return (
		int(mix_channel(c1[0], c2[0], ratio)),
		int(mix_channel(c1[1], c2[1], ratio)),
		int(mix_channel(c1[2], c2[2], ratio)),
		int(mix_alpha(c1[3], c2[3])),
	)

def blend_luminance(c1: Sequence[int], c2: Sequence[int], settings: CombineSettings = DEFAULT_SETTINGS) -> RGBA:
	"""
	Blend two RGBA pixels, weighting by their luminance.

	Args:
		c1: First pixel (R, G, B, A), the dominant one
		c2: Second pixel (R, G, B, A)
		settings: Threshold policy

	Returns:
		Blended (R, G, B, A)
	"""
	ratio = _luminance_ratio(luminance(c1), luminance(c2), settings)
	return _mix(c1, c2, ratio)

def blend_mask(c1: Sequence[int], c2: Sequence[int], importance1: float, importance2: float) -> RGBA:
	"""
	Blend two RGBA pixels by their importance values in [0, 1].

	importance1=1, importance2=0 returns c1; importance1=0, importance2=1 returns c2.
	"""
	return _mix(c1, c2, float(mask_ratio(importance1, importance2)))

def check_dimensions(image1: np.ndarray, image2: np.ndarray):
	if image1.shape[:2] != image2.shape[:2]:
		raise DimensionMismatchError(
			(image1.shape[1], image1.shape[0]),
			(image2.shape[1], image2.shape[0])
		)

def combine_luminance(image1: np.ndarray, image2: np.ndarray, settings: CombineSettings = DEFAULT_SETTINGS) -> np.ndarray:
	"""Luminance-mode blend of two same-sized RGBA arrays into a new RGBA array"""
	check_dimensions(image1, image2)
	return combine_luminance_kernel(
		image1, image2,
		luminance_map(image1), luminance_map(image2),
		settings.bright_threshold, settings.shadow_threshold, settings.highlight_threshold,
		settings.base_ratio, settings.highlight_floor_ratio
	)

def combine_mask(image1: np.ndarray, image2: np.ndarray, importance1: np.ndarray, importance2: np.ndarray) -> np.ndarray:
	"""
	Mask-mode blend of two same-sized RGBA arrays.

	Args:
		image1, image2: H x W x 4 uint8 arrays
		importance1, importance2: dense H x W importance fields in [0, 1]
	"""
	check_dimensions(image1, image2)
	for importance in (importance1, importance2):
		if importance.shape != image1.shape[:2]:
			raise DimensionMismatchError(
				(image1.shape[1], image1.shape[0]),
				(importance.shape[1], importance.shape[0])
			)
	return combine_mask_kernel(
		image1, image2,
		np.ascontiguousarray(importance1, dtype=np.float64),
		np.ascontiguousarray(importance2, dtype=np.float64)
	)

def combine(
	image1: np.ndarray,
	image2: np.ndarray,
	mode: str = 'luminance',
	settings: Optional[CombineSettings] = None,
	sampler: Optional[SharpnessSampler] = None
) -> np.ndarray:
	"""
	Combine two same-sized RGBA arrays into a new one.

	Args:
		image1: First (dominant) image
		image2: Second image
		mode: 'luminance' or 'mask'
		settings: Policy constants (defaults if omitted)
		sampler: SharpnessSampler used in mask mode (one built from settings if omitted)

	Returns:
		H x W x 4 uint8 array
	"""
	if mode not in MODES:
		raise ValueError(f"Invalid mode: {mode}. Must be one of {', '.join(MODES)}")
	settings = (settings or DEFAULT_SETTINGS).validated()
	check_dimensions(image1, image2)

	if mode == 'luminance':
		return combine_luminance(image1, image2, settings)

	if sampler is None:
		sampler = SharpnessSampler(settings)
	field1 = sampler.analyze(image1)
	field2 = sampler.analyze(image2)
	return combine_mask(image1, image2, field1.to_array(), field2.to_array())
