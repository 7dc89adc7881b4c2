"""
Error kinds raised by the combine pipeline
"""

class ImageCombineError(Exception):
	"""Base class for all imagecombine errors"""

class ConfigurationError(ImageCombineError, ValueError):
	"""Invalid settings or sampling parameters derived from them (e.g. a zero downsample rate)"""

class DimensionMismatchError(ImageCombineError, ValueError):
	"""Two images passed to combine do not share the same dimensions"""

	def __init__(self, size1, size2):
		self.size1 = tuple(size1)
		self.size2 = tuple(size2)
		super().__init__(
			f"Images must have identical dimensions, got {self.size1[0]}x{self.size1[1]} "
			f"and {self.size2[0]}x{self.size2[1]}"
		)

class DegenerateFieldError(ImageCombineError, ArithmeticError):
	"""Normalization found a uniform sparse grid (max == min)"""

class DegenerateFieldWarning(UserWarning):
	"""Uniform sparse grid replaced by a constant field"""
