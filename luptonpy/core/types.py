from typing import TypeAlias, Tuple
import numpy as np
import numpy.typing as npt
from dataclasses import dataclass


# Image Types
# Floating point image, nominally 0.0 - 1.0 but unbounded above (Height, Width, Channels)
ImageBuffer: TypeAlias = npt.NDArray[np.float32]
# 8-bit display raster (Height, Width, 3)
RGB8Raster: TypeAlias = npt.NDArray[np.uint8]

# Geometry Types
# (Width, Height)
Dimensions: TypeAlias = Tuple[int, int]
# (x, y)
Point: TypeAlias = Tuple[float, float]

# Domain Types
# (r, g, b)
PixelSample: TypeAlias = Tuple[float, float, float]


@dataclass
class AppConfig:
    preview_throttle_ms: float
    preview_skip_bound: int
    before_stretch_factor: float
    q_min_magnitude: float
    intensity_epsilon: float
    black_point_target_samples: int
    output_suffix: str
    default_export_dir: str
    cache_dir: str
    log_level: str
    perf_log_enabled: bool
