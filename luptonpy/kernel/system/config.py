import os
from typing import Dict, Tuple
from luptonpy.core.types import AppConfig
from luptonpy.features.stretch.models import EngineParameters, ClippingMode

# User dir env (cache, exports)
BASE_USER_DIR = os.path.abspath(os.getenv("LUPTONPY_USER_DIR", "user"))

# Global application constants
APP_CONFIG = AppConfig(
    preview_throttle_ms=80.0,
    preview_skip_bound=4,
    before_stretch_factor=10.0,
    q_min_magnitude=0.01,
    intensity_epsilon=1e-10,
    black_point_target_samples=10000,
    output_suffix="_lupton",
    default_export_dir=os.path.join(BASE_USER_DIR, "export"),
    cache_dir=os.path.join(BASE_USER_DIR, "cache"),
    log_level=os.getenv("LUPTONPY_LOG_LEVEL", "INFO").upper(),
    perf_log_enabled=os.getenv("LUPTONPY_PERF_LOG", "0") == "1",
)

# Reset values of the stretch dialog
DEFAULT_PARAMETERS = EngineParameters(
    alpha=5.0,
    q=8.0,
    black_point=0.0,
    black_r=0.0,
    black_g=0.0,
    black_b=0.0,
    linked=True,
    saturation=1.0,
    clipping_mode=ClippingMode.PRESERVE_COLOR,
)

# Slider ranges (min, max) exposed by the UI
PARAMETER_RANGES: Dict[str, Tuple[float, float]] = {
    "alpha": (0.1, 50.0),
    "q": (0.1, 30.0),
    "black_point": (-0.1, 0.5),
    "black_r": (-0.1, 0.5),
    "black_g": (-0.1, 0.5),
    "black_b": (-0.1, 0.5),
    "saturation": (0.5, 2.0),
    "split_position": (10.0, 90.0),
}
