"""Sampling primitives for escape-time Mandelbrot grids."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from numba import njit

from .errors import (
    InvalidIterationBudget,
    InvalidOffset,
    InvalidResolution,
    InvalidSampleCount,
    InvalidThreshold,
    InvalidWorkerCount,
    InvalidZoom,
)

LOG_2 = math.log(2.0)
NO_JITTER = (0.0, 0.0)


@dataclass(frozen=True)
class GridSpec:
    """Resolution and placement of the sampling grid on the complex plane.

    ``zoom`` is measured in pixels per unit distance on the plane, and the
    offsets give the point that ends up in the middle of the frame.
    """

    x_res: int
    y_res: int
    zoom: float
    real_offset: float = 0.0
    imaginary_offset: float = 0.0

    @property
    def center(self) -> complex:
        return complex(self.x_res / self.zoom / 2.0, self.y_res / self.zoom / 2.0)

    @property
    def offset(self) -> complex:
        return complex(self.real_offset, self.imaginary_offset)


def validate_spec(spec: GridSpec) -> None:
    if int(spec.x_res) <= 0 or int(spec.y_res) <= 0:
        raise InvalidResolution(f"resolution must be positive, got {spec.x_res}x{spec.y_res}")
    if not (math.isfinite(spec.zoom) and spec.zoom > 0):
        raise InvalidZoom(f"zoom must be a positive finite number, got {spec.zoom}")
    if not (math.isfinite(spec.real_offset) and math.isfinite(spec.imaginary_offset)):
        raise InvalidOffset(
            f"offset must be finite, got ({spec.real_offset}, {spec.imaginary_offset})"
        )


def validate_sampling(
    spec: GridSpec,
    threshold: float,
    max_iterations: int,
    sample_count: int = 1,
    worker_count: int = 1,
) -> None:
    """Reject an invalid configuration before any grid is allocated."""

    validate_spec(spec)
    if not (math.isfinite(threshold) and threshold > 1.0):
        raise InvalidThreshold(f"threshold must be a finite number greater than 1, got {threshold}")
    if max_iterations < 0:
        raise InvalidIterationBudget(f"max_iterations must not be negative, got {max_iterations}")
    if sample_count < 1:
        raise InvalidSampleCount(f"sample_count must be at least 1, got {sample_count}")
    if worker_count < 1:
        raise InvalidWorkerCount(f"worker_count must be at least 1, got {worker_count}")


def pixel_to_complex(x: int, y: int, spec: GridSpec, jitter: tuple[float, float] = NO_JITTER) -> complex:
    """Convert a grid cell, plus a jitter in pixel widths, to a point on the complex plane."""

    center = spec.center
    return complex(
        (x + jitter[0]) / spec.zoom + spec.real_offset - center.real,
        (y + jitter[1]) / spec.zoom + spec.imaginary_offset - center.imag,
    )


@njit(nogil=True)
def smooth_iteration(iteration, modulus, log_threshold):
    """Continuous escape count for an orbit that first exceeded the threshold at ``iteration``.

    The log-log correction lies in (0, 1] while ``modulus`` stays below the
    squared threshold; larger jumps, which only happen when ``c`` itself is
    far outside the threshold, are capped so the estimate never drops below
    ``iteration``.
    """

    correction = math.log(math.log(modulus) / log_threshold) / LOG_2
    return iteration + 1.0 - min(correction, 1.0)


@njit(nogil=True)
def escape_time(re, im, threshold, log_threshold, max_iterations):
    """Compiled escape loop; ``NaN`` means the orbit did not diverge."""

    z_re = 0.0
    z_im = 0.0
    for iteration in range(1, max_iterations + 1):
        z_re, z_im = z_re * z_re - z_im * z_im + re, 2.0 * z_re * z_im + im
        modulus = math.hypot(z_re, z_im)
        # NaN fails every comparison, so it lands here as well.
        if not modulus <= threshold:
            if math.isfinite(modulus):
                return smooth_iteration(iteration, modulus, log_threshold)
            return 0.0
    return np.nan


@njit(nogil=True)
def cell_average(x, y, jitters, zoom, offset_re, offset_im, center_re, center_im, threshold, log_threshold, max_iterations):
    """Mean escape time of the diverging draws at ``jitters`` (pixel widths) around a cell."""

    total = 0.0
    diverged_samples = 0
    for k in range(jitters.shape[0]):
        re = (x + jitters[k, 0]) / zoom + offset_re - center_re
        im = (y + jitters[k, 1]) / zoom + offset_im - center_im
        sample = escape_time(re, im, threshold, log_threshold, max_iterations)
        if not np.isnan(sample):
            total += sample
            diverged_samples += 1
    if diverged_samples == 0:
        return np.nan
    return total / diverged_samples


@njit(nogil=True)
def sample_column_span(
    x, y_start, y_stop, jitters, zoom, offset_re, offset_im, center_re, center_im,
    threshold, log_threshold, max_iterations, column,
):
    """Fill ``column[y_start:y_stop]``; ``jitters`` holds one row of draws per cell of the column."""

    for y in range(y_start, y_stop):
        column[y] = cell_average(
            x, y, jitters[y], zoom, offset_re, offset_im, center_re, center_im,
            threshold, log_threshold, max_iterations,
        )


def plane_arguments(spec: GridSpec) -> tuple[float, float, float, float, float]:
    """Scalars the compiled kernels use to map cells, in the order they take them."""

    center = spec.center
    return float(spec.zoom), float(spec.real_offset), float(spec.imaginary_offset), center.real, center.imag


def sample_mandelbrot(c: complex, threshold: float, max_iterations: int) -> Optional[float]:
    """Sample the Mandelbrot set at ``c``.

    Returns the smoothed number of iterations before the orbit escaped, or
    ``None`` if it stayed within ``threshold`` for ``max_iterations`` steps.
    """

    value = escape_time(c.real, c.imag, float(threshold), math.log(threshold), int(max_iterations))
    if math.isnan(value):
        return None
    return value


def super_sample_mandelbrot(
    x: int,
    y: int,
    sample_count: int,
    spec: GridSpec,
    threshold: float,
    max_iterations: int,
    rng: Optional[np.random.Generator] = None,
) -> Optional[float]:
    """Average the diverging samples drawn inside one cell.

    A single sample is taken at the unjittered cell position. With more
    samples each draw is jittered uniformly within the cell footprint using
    ``rng``; only draws that diverge contribute to the mean.
    https://en.wikipedia.org/wiki/Supersampling
    """

    if sample_count <= 1:
        return sample_mandelbrot(pixel_to_complex(x, y, spec), threshold, max_iterations)

    if rng is None:
        rng = np.random.default_rng()
    jitters = np.ascontiguousarray(rng.uniform(-0.5, 0.5, size=(sample_count, 2)), dtype=np.float64)

    value = cell_average(
        x, y, jitters, *plane_arguments(spec),
        float(threshold), math.log(threshold), int(max_iterations),
    )
    if math.isnan(value):
        return None
    return value
