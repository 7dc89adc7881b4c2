from pathlib import Path

import numpy as np
from PIL import Image

from imagecombine import ImageCombiner

def create_focus_pair(size=256):
	"""Same striped scene, left half in focus in one shot and right half in the other"""
	yy, xx = np.mgrid[0:size, 0:size]
	stripes = ((np.sin(xx * 0.8) * np.cos(yy * 0.5) + 1.0) * 127.5).astype(np.uint8)
	# A crude blur: the local mean of a 5 pixel box
	padded = np.pad(stripes.astype(np.float64), 2, mode='edge')
	blurred = sum(padded[dy:dy + size, dx:dx + size] for dy in range(5) for dx in range(5)) / 25.0
	blurred = blurred.astype(np.uint8)

	half = size // 2
	left_sharp = blurred.copy()
	left_sharp[:, :half] = stripes[:, :half]
	right_sharp = blurred.copy()
	right_sharp[:, half:] = stripes[:, half:]
	return Image.fromarray(left_sharp).convert('RGB'), Image.fromarray(right_sharp).convert('RGB')

def subject_combine():
	"""Keep whichever shot is in focus at each pixel"""
	output_path = Path(__file__).parent / f"{Path(__file__).stem}.png"

	print("Creating a focus-bracketed pair...")
	first, second = create_focus_pair()

	print("Combining by importance mask...")
	combiner = ImageCombiner(progress=lambda message: print(f"  {message}"))
	output = combiner.combine(first, second, mode='mask')

	print(f"Saving to {output_path.name}...")
	output.save(output_path)
	print("Done!")

if __name__ == "__main__":
	subject_combine()
