import math
from dataclasses import replace
from typing import Callable, List

from luptonpy.core.interfaces import IChannelSource
from luptonpy.features.stretch.models import EngineParameters
from luptonpy.kernel.system.config import APP_CONFIG
from luptonpy.kernel.system.logging import get_logger

logger = get_logger(__name__)

LOW_POOL_FRACTION = 0.05
LOW_POOL_MIN_SAMPLES = 10
SAFETY_MARGIN = 0.9


def sampling_step(width: int, height: int) -> int:
    """
    Grid stride that keeps the number of samples near the configured target.
    """
    target = APP_CONFIG.black_point_target_samples
    return max(1, int(math.floor(math.sqrt(width * height / target))))


def low_floor(samples: List[float]) -> float:
    """
    Median of the lowest 5% (at least 10) of ``samples``, minus a 10% margin.
    """
    if not samples:
        return 0.0
    ordered = sorted(samples)
    pool = ordered[: max(LOW_POOL_MIN_SAMPLES, int(len(ordered) * LOW_POOL_FRACTION))]
    median = pool[len(pool) // 2]
    return max(0.0, median * SAFETY_MARGIN)


def estimate_black_point(
    accessor: Callable[[int, int], float], width: int, height: int
) -> float:
    """
    Estimates the noise floor of one channel from a regular sample grid.
    Degenerate images and sampling failures yield 0.0.
    """
    try:
        step = sampling_step(width, height)
        samples = [
            float(accessor(x, y))
            for y in range(0, height, step)
            for x in range(0, width, step)
        ]
        return low_floor(samples)
    except Exception as e:
        logger.warning(f"Auto black point calculation failed: {e}")
        return 0.0


def auto_black_point(source: IChannelSource, params: EngineParameters) -> EngineParameters:
    """
    Estimates black points for R, G and B.
    Linked parameters receive the mean of the three estimates.
    """
    w, h = source.width, source.height
    estimates = [
        estimate_black_point(lambda x, y, c=c: source.sample(x, y, c), w, h)
        for c in range(3)
    ]

    if params.linked:
        avg = sum(estimates) / 3.0
        logger.info(f"Auto black point (linked): {avg:.6f}")
        return replace(params, black_point=avg)

    bp_r, bp_g, bp_b = estimates
    logger.info(f"Auto black point R: {bp_r:.6f}, G: {bp_g:.6f}, B: {bp_b:.6f}")
    return replace(params, black_r=bp_r, black_g=bp_g, black_b=bp_b)
