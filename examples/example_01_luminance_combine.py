from pathlib import Path

import numpy as np
from PIL import Image

from imagecombine import ImageCombiner

def create_gradients(size=256):
	"""Horizontal and vertical colour gradients, same size"""
	ramp = np.linspace(0, 255, size).astype(np.uint8)
	first = np.zeros((size, size, 3), dtype=np.uint8)
	second = np.zeros((size, size, 3), dtype=np.uint8)
	first[:, :, 0] = ramp[np.newaxis, :]
	first[:, :, 1] = ramp[np.newaxis, :] // 2
	second[:, :, 2] = ramp[:, np.newaxis]
	second[:, :, 1] = ramp[:, np.newaxis] // 3
	return Image.fromarray(first), Image.fromarray(second)

def luminance_combine():
	"""Blend two images, letting bright areas of the first win"""
	output_path = Path(__file__).parent / f"{Path(__file__).stem}.png"

	print("Creating test gradients...")
	first, second = create_gradients()

	print("Combining by luminance...")
	combiner = ImageCombiner()
	output = combiner.combine(first, second, mode='luminance')

	print(f"Saving to {output_path.name}...")
	output.save(output_path)
	print("Done!")

if __name__ == "__main__":
	luminance_combine()
