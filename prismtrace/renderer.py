"""
Renderer module - schedules a render pass and writes the result.

Implements:
- Row-band partitioning of the image
- Multi-threaded band rendering into a shared pixel buffer
- Per-band, progress and completion callbacks for live display
- 8-bit conversion and PNG output
"""

from __future__ import annotations
import logging
import os
import platform
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional, Union

import numpy as np
from PIL import Image as PILImage

from .vec3 import Color
from .camera import Camera
from .scene import RenderContext, Scene
from .settings import RenderSettings
from .shading import Shader

logger = logging.getLogger(__name__)


class ImageWriteError(Exception):
    """Rendered image could not be encoded or written."""
    pass


class Band(NamedTuple):
    """A contiguous block of rows [start_row, end_row)."""
    index: int
    start_row: int
    end_row: int

    @property
    def rows(self) -> int:
        return self.end_row - self.start_row


class Renderer:
    """Whitted ray tracer driven by a pool of row-band workers."""

    def __init__(self):
        self._progress_callback: Optional[Callable[[float], None]] = None
        self._band_callback: Optional[Callable[[Band, np.ndarray], None]] = None
        self._completion_callback: Optional[Callable[[np.ndarray], None]] = None

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def set_band_callback(self, callback: Callable[[Band, np.ndarray], None]) -> None:
        """Set a callback invoked as each row-band finishes.

        Args:
            callback: Function taking the finished Band and a read-only
                view of its rows in the pixel buffer
        """
        self._band_callback = callback

    def set_completion_callback(self, callback: Callable[[np.ndarray], None]) -> None:
        """Set a callback invoked once with the finished image."""
        self._completion_callback = callback

    def render(self, context: RenderContext) -> np.ndarray:
        """Render the scene and return the image as a numpy array.

        Args:
            context: Scene, camera, settings and BVH to render

        Returns:
            Image as float64 array of shape (height, width, 3); row 0 is
            the bottom row of the picture
        """
        settings = context.settings
        width = settings.width
        height = settings.height
        shader = Shader(context)

        image = np.zeros((height, width, 3), dtype=np.float64)

        bands = self.generate_bands(height, settings.num_bands)
        total_bands = len(bands)
        completed = [0]
        lock = threading.Lock()

        logger.info(
            "Rendering %dx%d with %d bands on %d threads (max depth %d)",
            width, height, total_bands, settings.num_threads, settings.max_depth
        )
        start_time = time.perf_counter()

        def render_band(band: Band) -> Band:
            """Trace every pixel of one band into its rows of the buffer."""
            for y in range(band.start_row, band.end_row):
                row = image[y]
                for x in range(width):
                    ray = context.camera.screen_to_world_ray(x, y)
                    row[x] = shader.trace_ray(ray, 0).to_array()

            logger.debug("Band %d (rows %d-%d) done", band.index, band.start_row, band.end_row)

            if self._band_callback:
                view = image[band.start_row:band.end_row]
                view = view.view()
                view.setflags(write=False)
                self._band_callback(band, view)

            # Progress values are reported in increasing order
            with lock:
                completed[0] += 1
                if self._progress_callback:
                    self._progress_callback(completed[0] / total_bands)

            return band

        if settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=settings.num_threads) as executor:
                futures = [executor.submit(render_band, band) for band in bands]
                for future in futures:
                    future.result()
        else:
            for band in bands:
                render_band(band)

        logger.info("Render finished in %.2fs", time.perf_counter() - start_time)

        if self._completion_callback:
            self._completion_callback(image)

        return image

    def render_pixel(self, context: RenderContext, x: int, y: int) -> Color:
        """Trace the single camera ray through pixel (x, y)."""
        return Shader(context).trace_ray(context.camera.screen_to_world_ray(x, y), 0)

    @staticmethod
    def generate_bands(height: int, num_bands: int) -> List[Band]:
        """Split `height` rows into contiguous, near-equal bands.

        The first `height % num_bands` bands get one extra row. Bands
        that would be empty are left out.

        Args:
            height: Number of image rows
            num_bands: Requested number of bands

        Returns:
            List of bands covering every row exactly once
        """
        base, extra = divmod(height, num_bands)
        bands = []
        start = 0
        for i in range(num_bands):
            rows = base + (1 if i < extra else 0)
            if rows == 0:
                break
            bands.append(Band(i, start, start + rows))
            start += rows
        return bands

    @staticmethod
    def to_ldr(image: np.ndarray) -> np.ndarray:
        """Convert a float image to 8-bit, clamping to [0, 1].

        Args:
            image: Float image array

        Returns:
            Image as uint8 array
        """
        return (np.clip(image, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)

    def save_image(self, image: np.ndarray, filename: Union[str, Path]) -> Path:
        """Encode the image and write it to `filename`.

        The file is written to a temporary sibling first and moved into
        place, so a failed write never leaves a partial image behind.

        Args:
            image: Image from `render` (float) or `to_ldr` (uint8)
            filename: Output filename (extension determines format)

        Returns:
            The path written

        Raises:
            ImageWriteError: If the image cannot be encoded or written
        """
        path = Path(filename)

        if image.dtype != np.uint8:
            image = self.to_ldr(image)

        # Buffer row 0 is the bottom of the picture; files start at the top
        pil_image = PILImage.fromarray(np.ascontiguousarray(image[::-1]))
        image_format = PILImage.registered_extensions().get(path.suffix.lower(), 'PNG')

        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=path.parent, prefix=f".{path.stem}-", suffix=path.suffix, delete=False
            ) as tmp:
                tmp_name = tmp.name
                pil_image.save(tmp, format=image_format)
            os.replace(tmp_name, path)
        except (OSError, ValueError) as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ImageWriteError(f"Could not write image to {path}: {exc}") from exc

        logger.info("Rendered image saved to %s", path)
        return path


def render_scene(scene: Scene, camera: Camera, settings: RenderSettings = None) -> np.ndarray:
    """Build a render context and render it with a fresh Renderer.

    Args:
        scene: The scene to render
        camera: The camera to render from
        settings: Render configuration (uses defaults if None)

    Returns:
        Float image of shape (height, width, 3)
    """
    context = RenderContext(scene, camera, settings if settings else RenderSettings())
    return Renderer().render(context)


def get_platform_info() -> dict:
    """Get information about the current platform.

    Returns:
        Dictionary with platform details
    """
    info = {
        'system': platform.system(),
        'machine': platform.machine(),
        'processor': platform.processor(),
        'python_version': platform.python_version(),
        'cpu_count': os.cpu_count(),
        'is_arm': platform.machine().lower() in ('arm64', 'aarch64'),
        'is_x86': platform.machine().lower() in ('x86_64', 'amd64', 'x86'),
    }

    # Check for Apple Silicon
    info['is_apple_silicon'] = info['system'] == 'Darwin' and info['is_arm']

    return info
