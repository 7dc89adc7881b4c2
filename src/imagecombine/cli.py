import argparse
import sys
import time
import warnings
from pathlib import Path

import numba
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from imagecombine.combiner import ACTIONS, ImageCombiner
from imagecombine.errors import DegenerateFieldWarning, ImageCombineError
from imagecombine.field import STRATEGIES
from imagecombine.settings import CombineSettings, load_settings

"""
imagecombine CLI - combine two images, or render the importance mask of one
"""

console = Console()
err_console = Console(stderr=True)

DEFAULT_OUTPUT = 'outImg.jpeg'

def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		prog='imagecombine',
		description='Blend two images by luminance or by estimated subject sharpness',
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog="""
Examples:
  # Luminance blend (bright areas of the first image win)
  imagecombine first.jpg second.jpg

  # Favour whichever image is in focus at each pixel
  imagecombine first.jpg second.jpg --mode mask -o subject.jpg

  # Show what the sharpness sampler considers important
  imagecombine photo.jpg --mode mask-only -o mask.png

Modes:
  luminance (default, 2 images) | mask (2 images) | mask-only (1 image)
  Images must share the same dimensions and be at least 50 pixels wide.
        """
	)

	parser.add_argument('images', type=str, nargs='+', help='Input image file(s)')
	parser.add_argument('-o', '--output', type=str, default=DEFAULT_OUTPUT,
						help=f'Output image file (default: {DEFAULT_OUTPUT})')
	parser.add_argument('--mode', type=str, choices=list(ACTIONS), default='luminance',
						help='Action to run (default: luminance)')
	parser.add_argument('--interpolation', type=str, choices=list(STRATEGIES), default='bilinear',
						help='How the sparse sharpness grid is read back (default: bilinear)')
	parser.add_argument('--config', type=str, default=None,
						help='JSON settings file overriding thresholds and sampling divisors')
	parser.add_argument('--threads', type=int, default=None,
						help='Worker threads for the parallel loops (default: all cores)')
	parser.add_argument('-y', '--yes', action='store_true', help='Overwrite the output file without asking')
	return parser

def main(argv=None) -> int:
	"""Main CLI entry point"""
	args = build_parser().parse_args(argv)

	needed = 1 if args.mode == 'mask-only' else 2
	if len(args.images) != needed:
		err_console.print(f"[red]Error:[/red] {args.mode}: {len(args.images)} images provided, need {needed}")
		return 1

	input_paths = [Path(p) for p in args.images]
	for path in input_paths:
		if not path.exists():
			err_console.print(f"[red]Error:[/red] Input file [bright_yellow]{escape(str(path))}[/bright_yellow] not found")
			return 1

	settings = CombineSettings()
	if args.config:
		config_path = Path(args.config)
		if not config_path.exists():
			err_console.print(f"[red]Error:[/red] Config file [bright_yellow]{escape(str(config_path))}[/bright_yellow] not found")
			return 1
		try:
			settings = load_settings(config_path)
		except ImageCombineError as e:
			err_console.print(f"[red]Error:[/red] {escape(str(e))}")
			return 1

	if args.threads is not None:
		if args.threads < 1:
			err_console.print(f"[red]Error:[/red] --threads must be at least 1, got {args.threads}")
			return 1
		numba.set_num_threads(min(args.threads, numba.config.NUMBA_NUM_THREADS))

	output_path = Path(args.output)
	if output_path.exists() and not args.yes:
		response = input(f"Output file '{args.output}' exists. Overwrite? [y/N] ")
		if response.lower() != 'y':
			console.print("Cancelled.")
			return 0

	config_table = Table.grid(padding=(0, 2))
	config_table.add_column(style="cyan", justify="right")
	config_table.add_column(style="white")
	config_table.add_row("Inputs:", ", ".join(escape(p.name) for p in input_paths))
	config_table.add_row("Mode:", args.mode)
	if args.mode != 'luminance':
		config_table.add_row("Interpolation:", args.interpolation)
	config_table.add_row("Output:", f"[bright_yellow]{escape(str(output_path))}[/bright_yellow]")
	config_table.add_row("Threads:", str(numba.get_num_threads()))
	if args.config:
		config_table.add_row("Settings:", escape(args.config))

	console.print()
	console.print(Panel(config_table, title="[bold]Image Combine[/bold]", border_style="blue"))

	start_time = time.time()
	progress_columns = [
		SpinnerColumn(),
		TextColumn("[progress.description]{task.description}"),
		TimeElapsedColumn()
	]

	try:
		with warnings.catch_warnings(record=True) as caught:
			warnings.simplefilter('always', DegenerateFieldWarning)
			with Progress(*progress_columns, console=console, transient=True) as progress:
				task = progress.add_task("[green]Starting...", total=None)

				def report(message: str):
					progress.update(task, description=f"[green]{escape(message)}")

				combiner = ImageCombiner(settings=settings, interpolation=args.interpolation, progress=report)
				combiner.process_files(input_paths, output_path, mode=args.mode)
	except ImageCombineError as e:
		err_console.print(f"[red]Error:[/red] {escape(str(e))}")
		return 1
	except OSError as e:
		err_console.print(f"[red]Error:[/red] Could not read or write image: {escape(str(e))}")
		return 1

	for warning in caught:
		console.print(f"[yellow]Warning:[/yellow] {escape(str(warning.message))}")

	elapsed = time.time() - start_time
	console.print(f"[green]Done![/green] Saved [bright_yellow]{escape(str(output_path))}[/bright_yellow] in {elapsed:.1f}s")
	return 0

if __name__ == '__main__':
	sys.exit(main())
