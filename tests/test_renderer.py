"""Tests for the band renderer and image output."""

import threading

import numpy as np
import pytest
from PIL import Image

from prismtrace.vec3 import Point3, Color
from prismtrace.materials import emissive
from prismtrace.shapes import Sphere
from prismtrace.camera import Camera
from prismtrace.scene import Scene, RenderContext
from prismtrace.scenes import create_demo_scene, create_single_sphere_scene
from prismtrace.settings import RenderSettings
from prismtrace.renderer import (
    Band, Renderer, ImageWriteError, render_scene, get_platform_info
)


def small_context(width=8, height=6, **settings_kwargs):
    scene, camera = create_single_sphere_scene(width=width, height=height)
    settings = RenderSettings(width=width, height=height, **settings_kwargs)
    return RenderContext(scene, camera, settings)


class TestBands:
    """Test row-band partitioning."""

    def test_even_split(self):
        bands = Renderer.generate_bands(16, 4)
        assert [(b.start_row, b.end_row) for b in bands] == [(0, 4), (4, 8), (8, 12), (12, 16)]

    def test_remainder_goes_to_first_bands(self):
        bands = Renderer.generate_bands(10, 4)
        assert [b.rows for b in bands] == [3, 3, 2, 2]

    @pytest.mark.parametrize("height, num_bands", [(1, 1), (7, 3), (512, 16), (100, 7), (5, 5)])
    def test_rows_covered_once(self, height, num_bands):
        bands = Renderer.generate_bands(height, num_bands)
        rows = [y for b in bands for y in range(b.start_row, b.end_row)]
        assert rows == list(range(height))
        assert len(bands) == num_bands
        assert max(b.rows for b in bands) - min(b.rows for b in bands) <= 1

    def test_more_bands_than_rows(self):
        bands = Renderer.generate_bands(3, 8)
        assert [b.rows for b in bands] == [1, 1, 1]

    def test_band_indices(self):
        bands = Renderer.generate_bands(9, 3)
        assert [b.index for b in bands] == [0, 1, 2]
        assert bands[1] == Band(1, 3, 6)


class TestRender:
    """Test rendering a full image."""

    def test_image_shape_and_dtype(self):
        image = Renderer().render(small_context(num_bands=2, num_threads=1))
        assert image.shape == (6, 8, 3)
        assert image.dtype == np.float64

    def test_every_pixel_matches_render_pixel(self):
        context = small_context(num_bands=3, num_threads=1)
        renderer = Renderer()
        image = renderer.render(context)
        for y in range(context.settings.height):
            for x in range(context.settings.width):
                assert np.allclose(image[y, x], renderer.render_pixel(context, x, y).to_array())

    def test_threaded_matches_serial(self):
        serial = Renderer().render(small_context(num_bands=4, num_threads=1))
        threaded = Renderer().render(small_context(num_bands=4, num_threads=4))
        assert np.array_equal(serial, threaded)

    def test_empty_scene_is_background(self):
        camera = Camera.look_at(Point3(0, 0, 5), Point3(0, 0, 0), width=4, height=4)
        settings = RenderSettings(width=4, height=4, num_bands=2, background_color=Color(0.1, 0.2, 0.3))
        image = Renderer().render(RenderContext(Scene(), camera, settings))
        assert np.allclose(image, [0.1, 0.2, 0.3])

    def test_sphere_covers_center(self):
        camera = Camera.look_at(Point3(0, 0, 5), Point3(0, 0, 0), vfov=45, width=9, height=9)
        scene = Scene([Sphere(Point3(0, 0, 0), 1.0, emissive(Color(0, 1, 0)))])
        image = Renderer().render(RenderContext(scene, camera, RenderSettings(width=9, height=9)))
        assert np.allclose(image[4, 4], [0, 1, 0])
        assert np.allclose(image[0, 0], [0, 0, 0])

    def test_render_scene_helper(self):
        scene, camera = create_single_sphere_scene(width=4, height=4)
        image = render_scene(scene, camera, RenderSettings(width=4, height=4, num_bands=2))
        assert image.shape == (4, 4, 3)

    def test_mismatched_camera_rejected(self):
        scene, camera = create_single_sphere_scene(width=4, height=4)
        with pytest.raises(ValueError):
            RenderContext(scene, camera, RenderSettings(width=8, height=8))

    def test_demo_scene_renders(self):
        scene, camera = create_demo_scene(width=6, height=4)
        image = Renderer().render(RenderContext(scene, camera, RenderSettings(width=6, height=4, num_bands=2)))
        assert np.isfinite(image).all()
        assert image.max() > 0.0


class TestCallbacks:
    """Test progress, band and completion notifications."""

    def test_progress_reaches_one(self):
        progress = []
        renderer = Renderer()
        renderer.set_progress_callback(progress.append)
        renderer.render(small_context(num_bands=3, num_threads=1))
        assert progress == pytest.approx([1 / 3, 2 / 3, 1.0])

    def test_progress_monotonic_when_threaded(self):
        progress = []
        lock = threading.Lock()

        def record(value):
            with lock:
                progress.append(value)

        renderer = Renderer()
        renderer.set_progress_callback(record)
        renderer.render(small_context(num_bands=6, num_threads=3))
        assert progress == pytest.approx([i / 6 for i in range(1, 7)])

    def test_band_callback_gets_finished_rows(self):
        seen = {}

        def on_band(band, rows):
            seen[band.index] = (band, rows.copy(), rows.flags.writeable)

        renderer = Renderer()
        renderer.set_band_callback(on_band)
        image = renderer.render(small_context(num_bands=3, num_threads=1))

        assert sorted(seen) == [0, 1, 2]
        for band, rows, writeable in seen.values():
            assert not writeable
            assert rows.shape == (band.rows, 8, 3)
            assert np.array_equal(rows, image[band.start_row:band.end_row])

    def test_completion_callback(self):
        finished = []
        renderer = Renderer()
        renderer.set_completion_callback(finished.append)
        image = renderer.render(small_context(num_bands=2))
        assert len(finished) == 1
        assert finished[0] is image


class TestImageOutput:
    """Test 8-bit conversion and file writing."""

    def test_to_ldr_clamps(self):
        image = np.array([[[-1.0, 0.5, 2.0]]])
        assert Renderer.to_ldr(image).tolist() == [[[0, 128, 255]]]

    def test_to_ldr_dtype(self):
        assert Renderer.to_ldr(np.zeros((2, 2, 3))).dtype == np.uint8

    def test_save_png_round_trip(self, tmp_path):
        image = np.zeros((2, 3, 3))
        image[0, :] = [1.0, 0.0, 0.0]   # bottom row red
        image[1, :] = [0.0, 0.0, 1.0]   # top row blue
        path = Renderer().save_image(image, tmp_path / "out.png")

        with Image.open(path) as loaded:
            assert loaded.size == (3, 2)
            data = np.asarray(loaded.convert('RGB'))
        # Files are stored top row first
        assert data[0, 0].tolist() == [0, 0, 255]
        assert data[1, 0].tolist() == [255, 0, 0]

    def test_save_creates_directories(self, tmp_path):
        path = Renderer().save_image(np.zeros((2, 2, 3)), tmp_path / "a" / "b" / "out.png")
        assert path.exists()

    def test_save_uint8_unchanged(self, tmp_path):
        image = np.full((2, 2, 3), 77, dtype=np.uint8)
        path = Renderer().save_image(image, tmp_path / "out.png")
        with Image.open(path) as loaded:
            assert np.asarray(loaded.convert('RGB'))[0, 0].tolist() == [77, 77, 77]

    def test_unknown_extension_written_as_png(self, tmp_path):
        path = Renderer().save_image(np.zeros((2, 2, 3)), tmp_path / "out.render")
        with Image.open(path) as loaded:
            assert loaded.format == 'PNG'

    def test_no_temp_files_left(self, tmp_path):
        Renderer().save_image(np.zeros((2, 2, 3)), tmp_path / "out.png")
        assert [p.name for p in tmp_path.iterdir()] == ["out.png"]

    def test_unwritable_path_raises(self, tmp_path):
        blocker = tmp_path / "file.txt"
        blocker.write_text("not a directory")
        with pytest.raises(ImageWriteError):
            Renderer().save_image(np.zeros((2, 2, 3)), blocker / "out.png")


class TestPlatformInfo:
    """Test platform detection."""

    def test_keys(self):
        info = get_platform_info()
        for key in ('system', 'machine', 'python_version', 'cpu_count', 'is_arm', 'is_x86', 'is_apple_silicon'):
            assert key in info
