from pathlib import Path
import sys

import numpy as np
import pytest

# Add repo root to path
ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from smoothbrot import (
    DID_NOT_DIVERGE,
    ColorRange,
    GridSpec,
    InvalidClampPercentile,
    InvalidPalette,
    Palette,
    PresetPalette,
    ResultGrid,
    build_range,
    color_of,
    get_palette,
    render,
    sample_grid,
    sample_palette,
    scale_value,
)


@pytest.fixture
def ramp_grid():
    """Grid holding the values 1..100."""
    return ResultGrid(values=np.arange(1.0, 101.0).reshape(10, 10))


@pytest.fixture
def black_white():
    return PresetPalette.BLACK_WHITE.palette


def test_range_clamps_high_percentile(ramp_grid):
    assert build_range(ramp_grid, 0.99) == ColorRange(1.0, 99.0)
    assert build_range(ramp_grid, 1.0) == ColorRange(1.0, 100.0)
    assert build_range(ramp_grid, 0.5) == ColorRange(1.0, 50.0)


def test_range_ignores_cells_that_did_not_diverge():
    values = np.array([[np.nan, 4.0, 2.0], [np.nan, np.nan, 8.0]])
    assert build_range(ResultGrid(values=values), 1.0) == ColorRange(2.0, 8.0)


def test_outliers_do_not_stretch_the_range():
    values = np.concatenate([np.linspace(1.0, 10.0, 999), [5000.0]]).reshape(40, 25)
    color_range = build_range(ResultGrid(values=values), 0.99)
    assert color_range.max <= 10.0


def test_empty_grid_falls_back_to_zero_range():
    grid = ResultGrid(values=np.full((4, 3), np.nan))
    assert build_range(grid, 0.99) == ColorRange(0.0, 0.0)


def test_tiny_grids_clamp_the_percentile_rank():
    single = ResultGrid(values=np.array([[np.nan, 7.5]]))
    assert build_range(single, 0.99) == ColorRange(7.5, 7.5)

    pair = ResultGrid(values=np.array([[3.0, 9.0]]))
    assert build_range(pair, 0.01) == ColorRange(3.0, 3.0)


@pytest.mark.parametrize("percentile", [0.0, -0.5, 1.5, float("nan")])
def test_invalid_clamp_percentile(ramp_grid, percentile):
    with pytest.raises(InvalidClampPercentile):
        build_range(ramp_grid, percentile)


@pytest.mark.parametrize("preset", list(PresetPalette))
def test_did_not_diverge_color_is_fixed(preset):
    for color_range in (ColorRange(0.0, 0.0), ColorRange(1.0, 5.0), ColorRange(-3.0, 100.0)):
        assert color_of(None, color_range, preset.palette) == DID_NOT_DIVERGE
    assert DID_NOT_DIVERGE == (0, 0, 0)


@pytest.mark.parametrize("preset", list(PresetPalette))
def test_degenerate_range_uses_first_stop(preset):
    palette = preset.palette
    color_range = ColorRange(4.2, 4.2)
    assert scale_value(4.2, color_range) == 0.0
    assert color_of(4.2, color_range, palette) == palette.stops[0]
    assert color_of(100.0, color_range, palette) == palette.stops[0]


def test_range_end_points_map_to_end_stops():
    palette = PresetPalette.AURORA.palette
    color_range = ColorRange(2.0, 12.0)
    assert color_of(2.0, color_range, palette) == palette.stops[0]
    assert color_of(12.0, color_range, palette) == palette.stops[-1]
    assert color_of(1.0, color_range, palette) == palette.stops[0]
    assert color_of(50.0, color_range, palette) == palette.stops[-1]


def test_channels_interpolate_independently(black_white):
    assert color_of(2.0, ColorRange(1.0, 3.0), black_white) == (127, 127, 127)

    palette = Palette("test", ((0, 100, 200), (100, 100, 0), (200, 0, 0)))
    assert sample_palette(palette, 0.25) == (50, 100, 100)
    assert sample_palette(palette, 0.75) == (150, 50, 0)


def test_render_matches_color_of():
    rng = np.random.default_rng(7)
    values = rng.uniform(1.0, 30.0, size=(9, 6))
    values[rng.uniform(size=values.shape) < 0.3] = np.nan
    grid = ResultGrid(values=values)
    palette = PresetPalette.VIRIDIS.palette

    image = render(grid, palette, 0.9)
    color_range = build_range(grid, 0.9)

    assert image.shape == (6, 9, 3)
    assert image.dtype == np.uint8
    for x in range(9):
        for y in range(6):
            assert tuple(int(c) for c in image[y, x]) == color_of(grid[x, y], color_range, palette)


def test_render_degenerate_range_is_first_stop_or_background():
    grid = ResultGrid(values=np.array([[np.nan, 3.0], [3.0, np.nan]]))
    palette = PresetPalette.AURORA.palette
    image = render(grid, palette, 0.99)

    assert tuple(image[1, 0]) == palette.stops[0]
    assert tuple(image[0, 1]) == palette.stops[0]
    assert tuple(image[0, 0]) == DID_NOT_DIVERGE
    assert tuple(image[1, 1]) == DID_NOT_DIVERGE


def test_zero_iteration_budget_renders_uniform_background():
    grid = sample_grid(GridSpec(x_res=5, y_res=4, zoom=1.0), 2.0, 0)
    image = render(grid, PresetPalette.BLACK_WHITE.palette, 0.99)

    assert image.shape == (4, 5, 3)
    assert not image.any()


def test_preset_palettes_resolve_by_name():
    viridis = get_palette("viridis")
    assert viridis.stops[0] == (0, 0, 0)
    assert len(viridis) == 9
    assert get_palette("black-white").stops == ((255, 255, 255), (0, 0, 0))
    assert get_palette("Aurora") == PresetPalette.AURORA.palette


def test_matplotlib_colormap_palette():
    palette = get_palette("inferno", 5)
    assert len(palette) == 5
    assert palette.name == "inferno"
    assert all(0 <= channel <= 255 for stop in palette.stops for channel in stop)

    mpl_viridis = Palette.from_colormap("viridis", 3)
    assert mpl_viridis.stops[0] == (68, 1, 84)


def test_unknown_palette_is_rejected():
    with pytest.raises(InvalidPalette):
        get_palette("definitely-not-a-colormap")


@pytest.mark.parametrize(
    "stops",
    [
        ((0, 0, 0),),
        ((0, 0, 0), (256, 0, 0)),
        ((0, 0, 0), (0, -1, 0)),
        ((0, 0, 0), (0, 0)),
    ],
)
def test_invalid_palette_stops(stops):
    with pytest.raises(InvalidPalette):
        Palette("bad", stops)


def test_invalid_hex_colors():
    with pytest.raises(InvalidPalette):
        Palette.from_hex("bad", ["#000000", "#12345"])
    with pytest.raises(InvalidPalette):
        Palette.from_hex("bad", ["#000000", "#zzzzzz"])
    with pytest.raises(InvalidPalette):
        Palette.from_colormap("viridis", 1)
