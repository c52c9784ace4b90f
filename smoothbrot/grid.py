"""Parallel population of the Mandelbrot result grid."""

from __future__ import annotations

import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .sampler import GridSpec, plane_arguments, sample_column_span, validate_sampling

PROGRESS_BATCH = 100


@dataclass(frozen=True)
class ResultGrid:
    """Escape estimates for every cell, stored column-major as ``values[x, y]``.

    Cells that did not diverge hold ``NaN``; diverging cells always hold a
    finite, non-negative estimate.
    """

    values: np.ndarray

    @property
    def x_res(self) -> int:
        return int(self.values.shape[0])

    @property
    def y_res(self) -> int:
        return int(self.values.shape[1])

    @property
    def diverged(self) -> np.ndarray:
        return ~np.isnan(self.values)

    def diverging_values(self) -> np.ndarray:
        return self.values[self.diverged]

    def __getitem__(self, index: tuple[int, int]) -> Optional[float]:
        value = self.values[index]
        if np.isnan(value):
            return None
        return float(value)

    def to_list(self) -> list[list[Optional[float]]]:
        return [[self[x, y] for y in range(self.y_res)] for x in range(self.x_res)]


class ProgressCounter:
    """Running total of sampled cells shared between workers.

    ``listener`` is called with each increment, e.g. ``tqdm.update``.
    """

    def __init__(self, listener: Optional[Callable[[int], object]] = None) -> None:
        self._lock = threading.Lock()
        self._total = 0
        self._listener = listener

    @property
    def total(self) -> int:
        return self._total

    def increment(self, amount: int) -> None:
        if amount <= 0:
            return
        with self._lock:
            self._total += amount
            if self._listener is not None:
                self._listener(amount)


def _sample_column(
    x: int,
    column: np.ndarray,
    spec: GridSpec,
    threshold: float,
    max_iterations: int,
    sample_count: int,
    rng: Optional[np.random.Generator],
    progress: Optional[ProgressCounter],
) -> None:
    y_res = int(spec.y_res)
    if rng is None:
        jitters = np.zeros((y_res, 1, 2), dtype=np.float64)
    else:
        jitters = rng.uniform(-0.5, 0.5, size=(y_res, sample_count, 2))

    plane = plane_arguments(spec)
    log_threshold = math.log(threshold)
    # The compiled span releases the GIL; spans bound the size of progress updates.
    for y_start in range(0, y_res, PROGRESS_BATCH):
        y_stop = min(y_start + PROGRESS_BATCH, y_res)
        sample_column_span(
            x, y_start, y_stop, jitters, *plane,
            float(threshold), log_threshold, int(max_iterations), column,
        )
        if progress is not None:
            progress.increment(y_stop - y_start)


def sample_grid(
    spec: GridSpec,
    threshold: float,
    max_iterations: int,
    sample_count: int = 1,
    worker_count: int = 1,
    *,
    seed: Optional[int] = None,
    progress: Optional[ProgressCounter] = None,
) -> ResultGrid:
    """Sample every cell of ``spec`` on a pool of ``worker_count`` threads.

    Each column is one task and writes only its own slice of the grid, so no
    locking is needed on the grid itself. The column kernel is compiled with
    ``nogil`` so the threads run it concurrently. Every column draws its jitter from
    its own generator spawned from ``seed``, which keeps seeded runs identical
    whatever the number of workers.
    """

    validate_sampling(spec, threshold, max_iterations, sample_count, worker_count)

    x_res = int(spec.x_res)
    y_res = int(spec.y_res)
    values = np.empty((x_res, y_res), dtype=np.float64)

    if sample_count > 1:
        seeds = np.random.SeedSequence(seed).spawn(x_res)
        rngs = [np.random.default_rng(s) for s in seeds]
    else:
        rngs = [None] * x_res

    with ThreadPoolExecutor(max_workers=worker_count, thread_name_prefix="smoothbrot") as executor:
        futures = [
            executor.submit(
                _sample_column,
                x,
                values[x],
                spec,
                threshold,
                max_iterations,
                sample_count,
                rngs[x],
                progress,
            )
            for x in range(x_res)
        ]
        for future in futures:
            future.result()

    values.setflags(write=False)
    return ResultGrid(values=values)
