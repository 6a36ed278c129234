"""
Tests for the heightmap grid.
"""

import numpy as np
import pytest

from py_heightmap.core.heightmap import HeightmapGrid


class TestConstruction:
    """Creating heightmaps."""

    def test_empty_grid_is_zero_filled(self):
        grid = HeightmapGrid(5, 3)

        assert grid.width == 5
        assert grid.height == 3
        assert grid.size == 15
        assert grid.pixels.shape == (3, 5)
        assert grid.pixels.dtype == np.int16
        assert np.all(grid.pixels == 0)
        assert grid.invert_colours is False

    @pytest.mark.parametrize("width,height", [(0, 1), (1, 0), (65536, 1), (1, 70000)])
    def test_rejects_bad_dimensions(self, width, height):
        with pytest.raises(ValueError):
            HeightmapGrid(width, height)

    def test_accepts_max_dimension(self):
        grid = HeightmapGrid(65535, 1)
        assert grid.size == 65535

    def test_from_rows(self):
        grid = HeightmapGrid.from_rows([[1, 2, 3], [4, 5, 6]])

        assert (grid.width, grid.height) == (3, 2)
        assert grid.get(2, 0) == 3
        assert grid.get(0, 1) == 4

    def test_from_rows_requires_2d(self):
        with pytest.raises(ValueError):
            HeightmapGrid.from_rows([1, 2, 3])

    def test_from_rows_rejects_out_of_range_values(self):
        with pytest.raises(ValueError):
            HeightmapGrid.from_rows([[0, 40000]])

    def test_from_flat_is_row_major(self):
        grid = HeightmapGrid.from_flat([1, 2, 3, 4, 5, 6], 3, 2)

        assert grid.to_rows() == [[1, 2, 3], [4, 5, 6]]
        assert grid.get(1, 1) == 5

    def test_from_flat_length_mismatch(self):
        with pytest.raises(ValueError):
            HeightmapGrid.from_flat([1, 2, 3], 2, 2)


class TestPixelAccess:
    """Reading and writing pixels."""

    def test_get_set(self):
        grid = HeightmapGrid(4, 3)
        grid.set(3, 2, -120)

        assert grid.get(3, 2) == -120
        assert grid[3, 2] == -120
        assert grid.pixels[2, 3] == -120

    def test_index_assignment(self):
        grid = HeightmapGrid(2, 2)
        grid[1, 0] = 42
        assert grid.get(1, 0) == 42

    def test_set_saturates(self):
        grid = HeightmapGrid(2, 2)
        grid.set(0, 0, 40000)
        grid.set(1, 0, -40000)
        grid.set(0, 1, 10.4)

        assert grid.get(0, 0) == 32767
        assert grid.get(1, 0) == -32768
        assert grid.get(0, 1) == 10

    @pytest.mark.parametrize("x,y", [(4, 0), (0, 3), (-1, 0), (0, -1)])
    def test_out_of_range_fails_fast(self, x, y):
        grid = HeightmapGrid(4, 3)
        with pytest.raises(IndexError):
            grid.get(x, y)
        with pytest.raises(IndexError):
            grid.set(x, y, 1)

    def test_fill_span_stops_at_row_end(self):
        grid = HeightmapGrid(6, 2)
        grid.fill_span(1, 4, 10, 7)

        assert grid.to_rows() == [[0] * 6, [0, 0, 0, 0, 7, 7]]

    def test_set_pixels_flat_and_2d(self):
        grid = HeightmapGrid(2, 2)
        grid.set_pixels([1, 2, 3, 4])
        assert grid.to_rows() == [[1, 2], [3, 4]]

        grid.set_pixels([[5, 6], [7, 8]])
        assert grid.to_flat().tolist() == [5, 6, 7, 8]

    def test_bulk_float_input_rounds_like_set(self):
        values = [10.7, -10.7, 2.5, 32767.4]
        single = HeightmapGrid(4, 1)
        for x, value in enumerate(values):
            single.set(x, 0, value)

        assert HeightmapGrid.from_rows([values]) == single
        assert HeightmapGrid.from_flat(values, 4, 1) == single

        bulk = HeightmapGrid(4, 1)
        bulk.set_pixels(np.array(values))
        assert bulk.to_flat().tolist() == [11, -11, 2, 32767]

    def test_set_pixels_wrong_shape(self):
        grid = HeightmapGrid(2, 2)
        with pytest.raises(ValueError):
            grid.set_pixels([1, 2, 3])
        with pytest.raises(ValueError):
            grid.set_pixels([[1, 2, 3], [4, 5, 6]])

    def test_to_flat_is_a_copy(self):
        grid = HeightmapGrid.from_rows([[1, 2]])
        flat = grid.to_flat()
        flat[0] = 99
        assert grid.get(0, 0) == 1


class TestBilinearSampling:
    """Sub-pixel reconstruction."""

    def test_exact_at_integer_positions(self):
        rng = np.random.default_rng(7)
        grid = HeightmapGrid.from_rows(rng.integers(-1000, 1000, size=(7, 10)))

        for y in range(grid.height):
            for x in range(grid.width):
                assert grid.sample_bilinear(x / grid.width, y / grid.height) == grid.get(x, y)

    def test_interpolation_law(self):
        grid = HeightmapGrid.from_rows([[100, 200], [300, 400]])

        # Continuous position (0.5, 0.5): top lerp 150, bottom lerp 350
        assert grid.sample_bilinear(0.25, 0.25) == pytest.approx(250.0)

    def test_interpolates_along_one_axis(self):
        grid = HeightmapGrid.from_rows([[100, 200], [300, 400]])

        assert grid.sample_bilinear(0.25, 0.0) == pytest.approx(150.0)
        assert grid.sample_bilinear(0.0, 0.25) == pytest.approx(200.0)

    def test_far_boundary_clamps(self):
        grid = HeightmapGrid.from_rows([[100, 200], [300, 400]])

        assert grid.sample_bilinear(1.0, 1.0) == 400.0
        assert grid.sample_bilinear(1.0, 0.25) == pytest.approx(300.0)
        assert grid.sample_bilinear(0.75, 1.0) == pytest.approx(400.0)

    def test_single_pixel_grid(self):
        grid = HeightmapGrid.from_rows([[12]])
        assert grid.sample_bilinear(0.5, 0.5) == 12.0


class TestGrayscale:
    """Grayscale encoding rules."""

    def test_normalizes_to_unit_range(self):
        grid = HeightmapGrid.from_rows([[0, 10], [20, 40]])
        np.testing.assert_allclose(grid.to_grayscale(), [0.0, 0.25, 0.5, 1.0])

    def test_invert_colours(self):
        grid = HeightmapGrid.from_rows([[0, 10], [20, 40]], invert_colours=True)
        np.testing.assert_allclose(grid.to_grayscale(), [1.0, 0.75, 0.5, 0.0])

    @pytest.mark.parametrize("invert", [False, True])
    def test_flat_terrain_is_fully_bright(self, invert):
        grid = HeightmapGrid.from_rows([[-5, -5], [-5, -5]], invert_colours=invert)
        np.testing.assert_array_equal(grid.to_grayscale(), np.ones(4))

    def test_negative_values(self):
        grid = HeightmapGrid.from_rows([[-32768, 0, 32767]])
        shades = grid.to_grayscale()
        assert shades[0] == 0.0
        assert shades[2] == 1.0
        assert 0.49 < shades[1] < 0.51

    def test_image(self):
        grid = HeightmapGrid.from_rows([[0, 10, 20], [20, 40, 0]])
        image = grid.to_image()

        assert image.mode == "L"
        assert image.size == (3, 2)


class TestEquality:
    """Grid comparison."""

    def test_equal_grids(self):
        assert HeightmapGrid.from_rows([[1, 2]]) == HeightmapGrid.from_flat([1, 2], 2, 1)

    def test_different_values(self):
        assert HeightmapGrid.from_rows([[1, 2]]) != HeightmapGrid.from_rows([[1, 3]])

    def test_different_shape(self):
        assert HeightmapGrid.from_rows([[1, 2]]) != HeightmapGrid.from_rows([[1], [2]])
