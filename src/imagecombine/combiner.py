from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from PIL import Image

from imagecombine.blending import MODES, combine
from imagecombine.field import InterpolatedField, ScalarFieldStrategy
from imagecombine.settings import CombineSettings
from imagecombine.sharpness import SharpnessSampler
from imagecombine.tools.image_tools import ImageLike, as_rgba_array, save_image

"""
Image Combiner - Public API

Facade that runs load -> analyze -> combine -> save for the three actions:
luminance combine, mask (subject) combine and mask-only rendering.
"""

ACTIONS = MODES + ('mask-only',)

class ImageCombiner:
	"""
	Blend two photographs into one, favouring what is bright or what is in focus.

	Two policies are available:

	- 'luminance' weights each pixel pair by perceived brightness. Bright
	  areas of the first image win, dark areas of the second image win, bright
	  areas of the second image are softened.
	- 'mask' estimates where each image is sharp (local luminance variance on a
	  downsampled grid, interpolated back to full size) and favours the sharper
	  source at every pixel.

	Parameters
	----------
	settings : CombineSettings, optional
		Thresholds, sampling divisors and output quality. Defaults if omitted.

	interpolation : str or ScalarFieldStrategy, default='bilinear'
		How the sparse sharpness grid is read back at full resolution.
		'bilinear' - smooth, default
		'idw' - inverse distance weighting of the nearest anchors (slow)
		'nearest' - blocky, value of the enclosing cell

	progress : callable, optional
		Receives a short message at each pipeline stage.

	Examples
	--------
	>>> from PIL import Image
	>>> combiner = ImageCombiner()
	>>> output = combiner.combine(Image.open("a.jpg"), Image.open("b.jpg"), mode='mask')
	>>> output.convert('RGB').save("combined.jpg", quality=100)

	>>> # Visualize what the sampler considers in focus
	>>> combiner.create_mask(Image.open("a.jpg")).save("mask.png")
	"""

	def __init__(
		self,
		settings: Optional[CombineSettings] = None,
		interpolation: Union[str, ScalarFieldStrategy] = 'bilinear',
		progress: Optional[Callable[[str], None]] = None
	):
		self.settings = (settings or CombineSettings()).validated()
		self._progress = progress
		self.sampler = SharpnessSampler(self.settings, interpolation=interpolation, progress=progress)

	@property
	def interpolation(self) -> ScalarFieldStrategy:
		return self.sampler.strategy

	def _report(self, message: str):
		if self._progress is not None:
			self._progress(message)

	def analyze(self, image: ImageLike) -> InterpolatedField:
		"""Normalized importance field of an image"""
		return self.sampler.analyze(image)

	def combine(self, image1: ImageLike, image2: ImageLike, mode: str = 'luminance') -> Image.Image:
		"""
		Combine two images of identical size.

		Parameters
		----------
		image1 : PIL.Image, np.ndarray, Path, or str
			First image, the dominant one
		image2 : PIL.Image, np.ndarray, Path, or str
			Second image

		mode : str, default='luminance'
			'luminance' or 'mask'

		Returns
		-------
		PIL.Image
			New RGBA image
		"""
		if mode not in MODES:
			raise ValueError(f"Invalid mode: {mode}. Must be one of {', '.join(MODES)}")

		self._report(f"combining by {mode}")
		output = combine(as_rgba_array(image1), as_rgba_array(image2), mode, self.settings, self.sampler)
		self._report("combining complete")
		return Image.fromarray(output)

	def create_mask(self, image: ImageLike) -> Image.Image:
		"""Greyscale rendering of an image's importance field (white = in focus)"""
		field = self.analyze(image)
		self._report("rendering mask")
		return field.to_grayscale_image()

	def process_files(
		self,
		input_paths: Sequence[Union[Path, str]],
		output_path: Union[Path, str],
		mode: str = 'luminance'
	) -> Path:
		"""
		Convenience method to run one action from files to a file.

		Parameters
		----------
		input_paths : sequence of Path or str
			Two images for 'luminance' and 'mask', one for 'mask-only'
		output_path : Path or str
			Output image file path. JPEG output uses settings.jpeg_quality.
		mode : str, default='luminance'
			'luminance', 'mask' or 'mask-only'
		"""
		if mode not in ACTIONS:
			raise ValueError(f"Invalid mode: {mode}. Must be one of {', '.join(ACTIONS)}")
		needed = 1 if mode == 'mask-only' else 2
		if len(input_paths) != needed:
			raise ValueError(f"{mode}: {len(input_paths)} images provided, need {needed}")

		images = []
		for path in input_paths:
			self._report(f"loading {Path(path).name}")
			images.append(as_rgba_array(path))

		if mode == 'mask-only':
			output = self.create_mask(images[0])
		else:
			output = self.combine(images[0], images[1], mode=mode)

		self._report(f"saving {Path(output_path).name}")
		return save_image(output, output_path, jpeg_quality=self.settings.jpeg_quality)

def combine_images(image1: ImageLike, image2: ImageLike, mode: str = 'luminance', **kwargs) -> Image.Image:
	"""
	Quick function to combine two images with default settings.

	This is a convenience wrapper around ImageCombiner for one-off usage.

	Examples
	--------
	>>> from PIL import Image
	>>> output = combine_images(Image.open("a.png"), Image.open("b.png"), mode='mask')
	>>> output.save("combined.png")
	"""
	return ImageCombiner(**kwargs).combine(image1, image2, mode=mode)

def create_importance_mask(image: ImageLike, **kwargs) -> Image.Image:
	"""Quick function to render the greyscale importance mask of one image"""
	return ImageCombiner(**kwargs).create_mask(image)
