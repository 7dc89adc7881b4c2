from .combiner import ImageCombiner, combine_images, create_importance_mask
from .errors import ConfigurationError, DegenerateFieldError, DegenerateFieldWarning, DimensionMismatchError, ImageCombineError
from .field import BilinearStrategy, InterpolatedField, InverseDistanceStrategy, NearestStrategy, ScalarFieldStrategy
from .settings import CombineSettings, load_settings, save_settings
from .sharpness import SharpnessSampler, interpolated_blur_detect

"""
imagecombine - Sharpness-aware blending of two photographs

Combines two images either by a luminance policy or by per-pixel importance
fields estimated from local sharpness (luminance variance on a downsampled
grid, interpolated back to full resolution).
"""

__version__ = "0.1.0"

__all__ = [
	"ImageCombiner",
	"combine_images",
	"create_importance_mask",
	"SharpnessSampler",
	"interpolated_blur_detect",
	"InterpolatedField",
	"ScalarFieldStrategy",
	"BilinearStrategy",
	"InverseDistanceStrategy",
	"NearestStrategy",
	"CombineSettings",
	"load_settings",
	"save_settings",
	"ImageCombineError",
	"ConfigurationError",
	"DimensionMismatchError",
	"DegenerateFieldError",
	"DegenerateFieldWarning",
]
