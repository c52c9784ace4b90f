"""Percentile normalization of escape estimates and conversion to an RGB raster."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import InvalidClampPercentile
from .grid import ResultGrid
from .palette import RGB, Palette, sample_palette, sample_palette_array

DID_NOT_DIVERGE: RGB = (0, 0, 0)
DEFAULT_CLAMP_PERCENTILE = 0.99


@dataclass(frozen=True)
class ColorRange:
    """Range of escape estimates stretched across the palette."""

    min: float
    max: float


def validate_clamp_percentile(clamp_percentile: float) -> None:
    if not (math.isfinite(clamp_percentile) and 0.0 < clamp_percentile <= 1.0):
        raise InvalidClampPercentile(
            f"clamp percentile must be in (0, 1], got {clamp_percentile}"
        )


def build_range(grid: ResultGrid, clamp_percentile: float = DEFAULT_CLAMP_PERCENTILE) -> ColorRange:
    """Compute the color range from the smallest diverging value and a high percentile.

    Values above the percentile rank are clamped to the top of the palette so
    a handful of outliers cannot compress the rest of the gradient. A grid
    without any diverging cell yields ``ColorRange(0.0, 0.0)``.
    """

    validate_clamp_percentile(clamp_percentile)
    values = np.sort(grid.diverging_values())
    if values.size == 0:
        return ColorRange(0.0, 0.0)
    rank = int(math.floor((values.size - 1) * clamp_percentile))
    rank = min(max(rank, 0), values.size - 1)
    return ColorRange(float(values[0]), float(values[rank]))


def scale_value(value: float, color_range: ColorRange) -> float:
    if color_range.min == color_range.max:
        return 0.0
    clamped = min(max(value, color_range.min), color_range.max)
    return (clamped - color_range.min) / (color_range.max - color_range.min)


def color_of(value: Optional[float], color_range: ColorRange, palette: Palette) -> RGB:
    if value is None:
        return DID_NOT_DIVERGE
    return sample_palette(palette, scale_value(value, color_range))


def render(
    grid: ResultGrid,
    palette: Palette,
    clamp_percentile: float = DEFAULT_CLAMP_PERCENTILE,
) -> np.ndarray:
    """Color every cell of ``grid``.

    Returns a ``(y_res, x_res, 3)`` uint8 array ready for
    ``PIL.Image.fromarray``; ``image[y, x]`` is the color of ``grid[x, y]``.
    """

    color_range = build_range(grid, clamp_percentile)
    values = grid.values.T
    diverged = ~np.isnan(values)

    if color_range.min == color_range.max:
        t = np.zeros_like(values)
    else:
        clamped = np.clip(np.where(diverged, values, color_range.min), color_range.min, color_range.max)
        t = (clamped - color_range.min) / (color_range.max - color_range.min)

    image = sample_palette_array(palette, t)
    image[~diverged] = DID_NOT_DIVERGE
    return image
