from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import PIL.Image

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--x-res", "160", "--y-res", "120", "--zoom", "48", "--samples", "2", "--seed", "7", "--no-progress"]


@dataclass
class Expected:
    path: Path
    size: tuple[int, int] = (160, 120)


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]
    clean: list[Path] | None = None

    def full_args(self) -> list[str]:
        return [sys.executable, "mandel.py", *self.args]


def _example(name: str, filename: str, *args: str, size: tuple[int, int] = (160, 120)) -> Example:
    output = EXAMPLES_ROOT / name / filename
    return Example(
        name=name,
        args=[*BASE_ARGS, *args, str(output)],
        expected=[Expected(output, size)],
        clean=[EXAMPLES_ROOT / name],
    )


EXAMPLES: list[Example] = [
    _example("max-iterations", "high-iterations.png", "--max-iterations", "1000"),
    _example("x-res", "wide-resolution.png", "--x-res", "240", size=(240, 120)),
    _example("y-res", "short-resolution.png", "--y-res", "96", size=(160, 96)),
    _example("real-offset", "seahorse-valley.png", "--real-offset", "-0.745", "--imaginary-offset", "0.1", "--zoom", "2000"),
    _example("zoom", "period-three.png", "--real-offset", "-1.7548", "--zoom", "4000"),
    _example("threshold", "large-threshold.png", "--threshold", "1000"),
    _example("samples", "no-antialiasing.png", "--samples", "1"),
    _example("workers", "single-worker.png", "--workers", "1"),
    _example("palette", "aurora.png", "--palette", "aurora"),
    _example("black-white", "black-white.png", "--palette", "black-white"),
    _example("colormap", "inferno.png", "--colormap", "inferno", "--palette-stops", "16"),
    _example("clamp-percentile", "full-range.png", "--clamp-percentile", "1.0"),
    _example("format", "fractal.jpg", "--format", "jpg"),
    _example("verbose", "diagnostic.png", "--verbose"),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    clean = example.clean or []
    _ensure_clean(clean)
    for expected in example.expected:
        expected.path.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if not expected.path.is_file():
            raise RuntimeError(f"Expected file {expected.path} was not created")
        with PIL.Image.open(expected.path) as image:
            if image.size != expected.size:
                raise RuntimeError(f"{expected.path} is {image.size}, expected {expected.size}")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        completed = subprocess.run(example.full_args(), check=True)
        if completed.returncode != 0:
            raise RuntimeError(f"Example {example.name} failed with {completed.returncode}")
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
