"""Color palettes and palette interpolation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np
from matplotlib import colormaps as _mpl_colormaps

from .errors import InvalidPalette

RGB = tuple[int, int, int]

DEFAULT_COLORMAP_STOPS = 9


def hex_to_rgb(hex_color: str) -> RGB:
    trimmed = hex_color.strip().lstrip("#")
    if len(trimmed) != 6:
        raise InvalidPalette(f"colors must be in the form #RRGGBB, got {hex_color!r}")
    try:
        return tuple(int(trimmed[i:i + 2], 16) for i in (0, 2, 4))  # type: ignore[return-value]
    except ValueError as exc:
        raise InvalidPalette(f"color {hex_color!r} must contain only hexadecimal digits") from exc


@dataclass(frozen=True)
class Palette:
    """An ordered, immutable sequence of RGB color stops."""

    name: str
    stops: tuple[RGB, ...]

    def __post_init__(self) -> None:
        if len(self.stops) < 2:
            raise InvalidPalette(f"palette {self.name!r} needs at least two stops, got {len(self.stops)}")
        for stop in self.stops:
            if len(stop) != 3 or any(not 0 <= channel <= 255 for channel in stop):
                raise InvalidPalette(f"palette {self.name!r} has an invalid stop {stop!r}")

    def __len__(self) -> int:
        return len(self.stops)

    @classmethod
    def from_hex(cls, name: str, hex_colors: Sequence[str]) -> "Palette":
        return cls(name, tuple(hex_to_rgb(color) for color in hex_colors))

    @classmethod
    def from_colormap(cls, name: str, stop_count: int = DEFAULT_COLORMAP_STOPS) -> "Palette":
        """Build a palette by sampling a matplotlib colormap at evenly spaced stops."""

        try:
            cmap = _mpl_colormaps[name]
        except KeyError as exc:
            raise InvalidPalette(f"unknown colormap {name!r}") from exc
        if stop_count < 2:
            raise InvalidPalette(f"a colormap palette needs at least two stops, got {stop_count}")
        rgba = np.asarray(cmap(np.linspace(0.0, 1.0, stop_count)), dtype=np.float64)
        channels = np.uint8(np.clip(np.round(rgba[:, :3] * 255), 0, 255))
        return cls(name, tuple(tuple(int(c) for c in row) for row in channels))  # type: ignore[misc]

    def as_array(self) -> np.ndarray:
        return np.array(self.stops, dtype=np.float64)


class PresetPalette(Enum):
    """Built-in palettes selectable by name."""

    VIRIDIS = (
        "#000000", "#440c54", "#47337e", "#365c8d", "#277f8e", "#1ea187", "#49c26c", "#9eda3a", "#fde725",
    )
    BLACK_WHITE = ("#ffffff", "#000000")
    AURORA = (
        "#001a33", "#003d66", "#007f7f", "#00b34d", "#b3ef00", "#ffd966", "#ff6600", "#99004d", "#330033",
    )

    @property
    def palette(self) -> Palette:
        return Palette.from_hex(self.cli_name, self.value)

    @property
    def cli_name(self) -> str:
        return self.name.lower().replace("_", "-")


def preset_names() -> list[str]:
    return [preset.cli_name for preset in PresetPalette]


def get_palette(name: str, stop_count: int = DEFAULT_COLORMAP_STOPS) -> Palette:
    """Resolve a preset palette name, falling back to a matplotlib colormap."""

    key = name.strip().upper().replace("-", "_")
    if key in PresetPalette.__members__:
        return PresetPalette[key].palette
    return Palette.from_colormap(name.strip(), stop_count)


def sample_palette(palette: Palette, t: float) -> RGB:
    """Interpolate the palette at ``t`` in [0, 1]."""

    stops = palette.stops
    scaled_t = min(max(t, 0.0), 1.0) * (len(stops) - 1)
    index = int(scaled_t)
    next_index = min(index + 1, len(stops) - 1)
    local_t = scaled_t - index
    low = stops[index]
    high = stops[next_index]
    return tuple(  # type: ignore[return-value]
        int(min(max(low[k] + (high[k] - low[k]) * local_t, 0.0), 255.0)) for k in range(3)
    )


def sample_palette_array(palette: Palette, t: np.ndarray) -> np.ndarray:
    """Vectorized :func:`sample_palette`; returns uint8 RGB with a trailing channel axis."""

    stops = palette.as_array()
    scaled_t = np.clip(np.asarray(t, dtype=np.float64), 0.0, 1.0) * (len(stops) - 1)
    index = np.floor(scaled_t).astype(np.intp)
    next_index = np.minimum(index + 1, len(stops) - 1)
    local_t = (scaled_t - index)[..., np.newaxis]
    low = stops[index]
    high = stops[next_index]
    return np.uint8(np.clip(low + (high - low) * local_t, 0.0, 255.0))
