from pathlib import Path

import numpy as np
from PIL import Image

from imagecombine import ImageCombiner

def render_masks():
	"""Render the importance field of one image with each interpolation"""
	size = 200
	yy, xx = np.mgrid[0:size, 0:size]
	# Noise inside a disc, flat grey outside
	rng = np.random.default_rng(0)
	pixels = np.full((size, size), 120, dtype=np.uint8)
	disc = (xx - 100) ** 2 + (yy - 100) ** 2 < 60 ** 2
	pixels[disc] = rng.integers(0, 256, size=disc.sum(), dtype=np.uint8)
	image = Image.fromarray(pixels).convert('RGB')

	for interpolation in ('bilinear', 'nearest', 'idw'):
		output_path = Path(__file__).parent / f"{Path(__file__).stem}_{interpolation}.png"
		print(f"Rendering {interpolation} mask...")
		mask = ImageCombiner(interpolation=interpolation).create_mask(image)
		mask.save(output_path)
		print(f"Saved {output_path.name}")

	print("Done!")

if __name__ == "__main__":
	render_masks()
