"""Render configuration."""

from __future__ import annotations
import os
from dataclasses import dataclass

from .vec3 import Color

# Output size expected by the reference image comparison
DEFAULT_WIDTH = 512
DEFAULT_HEIGHT = 512


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    max_depth: int = 3
    num_bands: int = 16
    num_threads: int = 0  # 0 = auto-detect
    max_shadow_depth: int = 64
    background_color: Color = None

    def __post_init__(self):
        if self.background_color is None:
            self.background_color = Color(0.0, 0.0, 0.0)
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"image size must be positive, got {self.width}x{self.height}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.num_bands < 1:
            raise ValueError(f"num_bands must be >= 1, got {self.num_bands}")
        if self.max_shadow_depth < 1:
            raise ValueError(f"max_shadow_depth must be >= 1, got {self.max_shadow_depth}")
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4
        self.num_threads = max(1, min(self.num_threads, self.num_bands))
