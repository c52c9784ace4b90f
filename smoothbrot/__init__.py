"""Public API for supersampled, smoothly colored Mandelbrot grids."""

from .colors import DID_NOT_DIVERGE, ColorRange, build_range, color_of, render, scale_value
from .errors import (
    InvalidClampPercentile,
    InvalidIterationBudget,
    InvalidOffset,
    InvalidPalette,
    InvalidResolution,
    InvalidSampleCount,
    InvalidThreshold,
    InvalidWorkerCount,
    InvalidZoom,
    SamplingConfigError,
)
from .grid import ProgressCounter, ResultGrid, sample_grid
from .palette import Palette, PresetPalette, get_palette, preset_names, sample_palette
from .sampler import (
    GridSpec,
    pixel_to_complex,
    sample_mandelbrot,
    super_sample_mandelbrot,
    validate_sampling,
)

__all__ = [
    "ColorRange",
    "DID_NOT_DIVERGE",
    "GridSpec",
    "InvalidClampPercentile",
    "InvalidIterationBudget",
    "InvalidOffset",
    "InvalidPalette",
    "InvalidResolution",
    "InvalidSampleCount",
    "InvalidThreshold",
    "InvalidWorkerCount",
    "InvalidZoom",
    "Palette",
    "PresetPalette",
    "ProgressCounter",
    "ResultGrid",
    "SamplingConfigError",
    "build_range",
    "color_of",
    "get_palette",
    "pixel_to_complex",
    "preset_names",
    "render",
    "sample_grid",
    "sample_mandelbrot",
    "sample_palette",
    "scale_value",
    "super_sample_mandelbrot",
    "validate_sampling",
]
