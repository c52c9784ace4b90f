import os
import sys
import time
from argparse import ArgumentParser
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
VERBOSE = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import numpy as np

# Imports for visualization
import PIL.Image
from tqdm import tqdm

from smoothbrot import (
    GridSpec,
    ProgressCounter,
    SamplingConfigError,
    get_palette,
    preset_names,
    render,
    sample_grid,
    validate_sampling,
)
from smoothbrot.colors import DEFAULT_CLAMP_PERCENTILE, validate_clamp_percentile
from smoothbrot.palette import DEFAULT_COLORMAP_STOPS


def build_parser():
    parser = ArgumentParser(description='Render the Mandelbrot set with smooth coloring and supersampling.')

    parser.add_argument('path', nargs='?', type=str, default=None,
                        help='Output file path to use instead of the image preview window.')

    parser.add_argument('-x', '--x-res', type=int,
                        dest='x_res', help='width of the generated image',
                        metavar='X_RES', default=800)

    parser.add_argument('-y', '--y-res', type=int,
                        dest='y_res', help='height of the generated image',
                        metavar='Y_RES', default=800)

    parser.add_argument('-r', '--real-offset', type=float,
                        dest='real_offset', help='location of the frame center on the real axis',
                        metavar='REAL_OFFSET', default=-0.5)

    parser.add_argument('-c', '--imaginary-offset', type=float,
                        dest='imaginary_offset', help='location of the frame center on the imaginary axis',
                        metavar='IMAGINARY_OFFSET', default=0.0)

    parser.add_argument('-z', '--zoom', type=float,
                        dest='zoom', help='pixels per unit distance on the complex plane',
                        metavar='ZOOM', default=300.0)

    parser.add_argument('-t', '--threshold', type=float,
                        dest='threshold', help='modulus past which the sequence is assumed to diverge (must exceed 1)',
                        metavar='THRESHOLD', default=2.0)

    parser.add_argument('-i', '--max-iterations', type=int,
                        dest='max_iterations', help='number of iterations before assuming the sequence does not diverge',
                        metavar='MAX_ITERATIONS', default=100)

    parser.add_argument('-s', '--samples', type=int,
                        dest='samples', help='jittered samples per pixel; 1 disables anti-aliasing',
                        metavar='SAMPLES', default=4)

    parser.add_argument('-w', '--workers', type=int,
                        dest='workers', help='number of worker threads to run the calculation on',
                        metavar='WORKERS', default=os.cpu_count() or 1)

    parser.add_argument('--seed', type=int,
                        dest='seed', help='seed for the supersampling jitter, for reproducible renders',
                        metavar='SEED', default=None)

    parser.add_argument('-p', '--palette', type=str, choices=preset_names(),
                        dest='palette', help='built-in palette used to colorize the fractal',
                        default='viridis')

    parser.add_argument('--colormap', type=str,
                        dest='colormap', help='matplotlib colormap to colorize the fractal (e.g. "inferno"); overrides --palette',
                        metavar='COLORMAP', default=None)

    parser.add_argument('--palette-stops', type=int,
                        dest='palette_stops', help='number of color stops sampled from --colormap',
                        metavar='STOPS', default=DEFAULT_COLORMAP_STOPS)

    parser.add_argument('--clamp-percentile', type=float,
                        dest='clamp_percentile', help='fraction of diverging samples stretched across the palette, in (0, 1]',
                        metavar='PERCENTILE', default=DEFAULT_CLAMP_PERCENTILE)

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for the output image. Any extension supported by Pillow; inferred from PATH by default.',
                        metavar='FORMAT', default=None)

    parser.add_argument('--no-progress', dest='no_progress', action='store_true',
                        help='do not display the sampling progress bar')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging.')

    return parser


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def resolve_output_path(opt, parser: ArgumentParser) -> tuple[Path | None, str]:
    """Resolve the output file and its image format from the CLI options."""

    image_format = (opt.format or "").lower().lstrip(".")
    if opt.path is None:
        if opt.format:
            parser.error("--format is only valid when an output path is given.")
        return None, ""

    output_path = Path(opt.path).expanduser()
    if output_path.exists() and output_path.is_dir():
        parser.error("the output path must point to a file, not a directory.")

    suffix = output_path.suffix.lower().lstrip(".")
    if image_format:
        if not suffix:
            output_path = output_path.with_suffix(f".{image_format}")
        elif suffix != image_format:
            parser.error(f"output extension .{suffix} does not match --format {image_format}.")
    else:
        image_format = suffix or "png"
        if not suffix:
            output_path = output_path.with_suffix(".png")

    return output_path.resolve(), image_format


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    output_path, image_format = resolve_output_path(opt, parser)

    spec = GridSpec(
        x_res=opt.x_res,
        y_res=opt.y_res,
        zoom=opt.zoom,
        real_offset=opt.real_offset,
        imaginary_offset=opt.imaginary_offset,
    )

    try:
        validate_sampling(spec, opt.threshold, opt.max_iterations, opt.samples, opt.workers)
        validate_clamp_percentile(opt.clamp_percentile)
        if opt.colormap is not None:
            palette = get_palette(opt.colormap, opt.palette_stops)
        else:
            palette = get_palette(opt.palette)
    except SamplingConfigError as exc:
        parser.error(str(exc))

    log("Grid: %dx%d, zoom %g, centered on (%g, %g)" % (
        spec.x_res, spec.y_res, spec.zoom, spec.real_offset, spec.imaginary_offset))
    log("Threshold %g, %d iterations, %d samples per pixel, %d workers" % (
        opt.threshold, opt.max_iterations, opt.samples, opt.workers))
    log("Palette: %s (%d stops)" % (palette.name, len(palette)))

    total_cells = spec.x_res * spec.y_res
    start = time.perf_counter()
    with tqdm(total=total_cells, unit="px", desc="Sampling", disable=opt.no_progress) as bar:
        progress = ProgressCounter(bar.update)
        grid = sample_grid(
            spec,
            opt.threshold,
            opt.max_iterations,
            opt.samples,
            opt.workers,
            seed=opt.seed,
            progress=progress,
        )
    sampled = time.perf_counter()
    print("Sampled {0} pixels in {1:.3f}s".format(progress.total, sampled - start))

    diverged = int(np.count_nonzero(grid.diverged))
    log("%d of %d pixels diverged" % (diverged, total_cells))

    frame_array = render(grid, palette, opt.clamp_percentile)
    image = PIL.Image.fromarray(frame_array)
    print("Rendered image in {0:.3f}s".format(time.perf_counter() - sampled))

    if output_path is None:
        log("No output path given, opening preview window")
        image.show()
    else:
        write_single_image(image, output_path, image_format)
        print("Saved {0}".format(output_path))

    return image


if __name__ == '__main__':
    main()
