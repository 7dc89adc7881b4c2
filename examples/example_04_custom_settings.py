from pathlib import Path

import numpy as np
from PIL import Image

from imagecombine import CombineSettings, ImageCombiner, load_settings, save_settings

def custom_settings():
	"""Finer sampling and a softer shadow taper, persisted to JSON"""
	base = Path(__file__).parent
	settings_path = base / f"{Path(__file__).stem}.json"
	input_paths = [base / "example_04_first.png", base / "example_04_second.png"]
	output_path = base / f"{Path(__file__).stem}.jpeg"

	settings = CombineSettings(rate_divisor=100, radius_divisor=40, shadow_threshold=0.2)
	save_settings(settings, settings_path)
	print(f"Saved settings to {settings_path.name}")

	rng = np.random.default_rng(3)
	for path in input_paths:
		Image.fromarray(rng.integers(0, 256, size=(150, 200, 3), dtype=np.uint8)).save(path)

	combiner = ImageCombiner(settings=load_settings(settings_path))
	combiner.process_files(input_paths, output_path, mode='mask')
	print(f"Saved {output_path.name}")
	print("Done!")

if __name__ == "__main__":
	custom_settings()
