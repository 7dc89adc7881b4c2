import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

from imagecombine.errors import ConfigurationError

"""
Policy constants for sharpness sampling, interpolation and blending
"""

@dataclass(frozen=True)
class CombineSettings:
	"""
	Named policy constants used across the pipeline.

	Parameters
	----------
	rate_divisor : int, default=50
		Downsample rate is ``width // rate_divisor``.
	radius_divisor : int, default=30
		Variance window half-width is ``width // radius_divisor``.
	bright_threshold : float, default=0.9
		First pixel luminance above which it dominates (ratio = lum1).
	shadow_threshold : float, default=0.3
		Second pixel luminance below which the first image tapers out.
	highlight_threshold : float, default=0.8
		Second pixel luminance above which the ratio eases toward highlight_floor_ratio.
	base_ratio : float, default=0.5
		Ratio used when no threshold applies.
	highlight_floor_ratio : float, default=0.2
		Ratio reached when the second pixel is pure white.
	idw_power : float, default=1.0
		Distance exponent for inverse-distance interpolation.
	idw_neighbors : int, default=2
		Number of nearest anchors used by inverse-distance interpolation.
	jpeg_quality : int, default=100
		Quality used when writing JPEG output.
	"""
	rate_divisor: int = 50
	radius_divisor: int = 30
	bright_threshold: float = 0.9
	shadow_threshold: float = 0.3
	highlight_threshold: float = 0.8
	base_ratio: float = 0.5
	highlight_floor_ratio: float = 0.2
	idw_power: float = 1.0
	idw_neighbors: int = 2
	jpeg_quality: int = 100

	def validated(self) -> "CombineSettings":
		"""Return a copy with coerced types, raising ConfigurationError on invalid values"""
		rate_divisor = int(self.rate_divisor)
		radius_divisor = int(self.radius_divisor)
		if rate_divisor < 1:
			raise ConfigurationError(f"rate_divisor must be at least 1, got {rate_divisor}")
		if radius_divisor < 1:
			raise ConfigurationError(f"radius_divisor must be at least 1, got {radius_divisor}")

		# Thresholds are luminance levels strictly inside (0, 1)
		for name in ('bright_threshold', 'shadow_threshold', 'highlight_threshold'):
			value = float(getattr(self, name))
			if not 0.0 < value < 1.0:
				raise ConfigurationError(f"{name} must be in (0, 1), got {value}")

		for name in ('base_ratio', 'highlight_floor_ratio'):
			value = float(getattr(self, name))
			if not 0.0 <= value <= 1.0:
				raise ConfigurationError(f"{name} must be in [0, 1], got {value}")

		if float(self.idw_power) <= 0.0:
			raise ConfigurationError(f"idw_power must be positive, got {self.idw_power}")
		if int(self.idw_neighbors) < 1:
			raise ConfigurationError(f"idw_neighbors must be at least 1, got {self.idw_neighbors}")
		if not 1 <= int(self.jpeg_quality) <= 100:
			raise ConfigurationError(f"jpeg_quality must be between 1 and 100, got {self.jpeg_quality}")

		return CombineSettings(
			rate_divisor=rate_divisor,
			radius_divisor=radius_divisor,
			bright_threshold=float(self.bright_threshold),
			shadow_threshold=float(self.shadow_threshold),
			highlight_threshold=float(self.highlight_threshold),
			base_ratio=float(self.base_ratio),
			highlight_floor_ratio=float(self.highlight_floor_ratio),
			idw_power=float(self.idw_power),
			idw_neighbors=int(self.idw_neighbors),
			jpeg_quality=int(self.jpeg_quality)
		)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self.validated())

	@staticmethod
	def from_dict(data: Dict[str, Any]) -> "CombineSettings":
		if not isinstance(data, dict):
			raise ConfigurationError(f"Settings must be a JSON object, got {type(data).__name__}")
		known = {f.name for f in fields(CombineSettings)}
		try:
			settings = CombineSettings(**{k: v for k, v in data.items() if k in known})
			return settings.validated()
		except (TypeError, ValueError) as e:
			if isinstance(e, ConfigurationError):
				raise
			raise ConfigurationError(f"Invalid settings value: {e}") from e

DEFAULT_SETTINGS = CombineSettings()

def load_settings(path: Union[Path, str]) -> CombineSettings:
	"""Load settings from a JSON file. Unknown keys are ignored, missing keys keep their defaults."""
	path = Path(path)
	try:
		with open(path, 'r', encoding='utf-8') as f:
			raw = json.load(f)
	except (json.JSONDecodeError, UnicodeDecodeError) as e:
		raise ConfigurationError(f"Could not parse settings file {path}: {e}") from e
	return CombineSettings.from_dict(raw)

def save_settings(settings: CombineSettings, path: Union[Path, str]) -> None:
	path = Path(path)
	path.parent.mkdir(parents=True, exist_ok=True)
	with open(path, 'w', encoding='utf-8') as f:
		json.dump(settings.to_dict(), f, indent=2, sort_keys=True)
