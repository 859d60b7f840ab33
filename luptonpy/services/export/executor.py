import os
import time
from dataclasses import dataclass
from typing import Union

import numpy as np

from luptonpy.core.errors import ExecutionError, InvalidInputError
from luptonpy.core.interfaces import IChannelSource, IImageSink
from luptonpy.core.types import ImageBuffer
from luptonpy.core.validation import ensure_rgb_image
from luptonpy.features.stretch.logic import apply_stretch, is_rescale, rescale_to_max
from luptonpy.features.stretch.models import EngineParameters
from luptonpy.kernel.system.config import APP_CONFIG
from luptonpy.kernel.system.logging import get_logger

logger = get_logger(__name__)

SourceImage = Union[np.ndarray, IChannelSource]


@dataclass(frozen=True)
class ExecutionResult:
    """
    Output of a completed full-resolution run.
    """

    image: ImageBuffer
    global_max: float
    rescale_factor: float
    elapsed_s: float


def output_name(source_name: str, suffix: str = APP_CONFIG.output_suffix) -> str:
    stem = os.path.splitext(os.path.basename(source_name))[0]
    return f"{stem}{suffix}"


class FullResolutionExecutor:
    """
    Applies the stretch to every pixel of a source image.

    PRESERVE_COLOR and HARD_CLIP are resolved per pixel in a single pass.
    RESCALE needs the global maximum, so a second pass divides the whole
    output by it once the first pass has finished.
    """

    def _check_channels(self, source: SourceImage) -> None:
        if isinstance(source, np.ndarray):
            channels = source.shape[2] if source.ndim == 3 else 0
        else:
            channels = source.channel_count
        if channels < 3:
            raise InvalidInputError("Image must have at least 3 channels (RGB)")

    def _materialize(self, source: SourceImage) -> ImageBuffer:
        if isinstance(source, np.ndarray):
            return ensure_rgb_image(source)
        xs = np.arange(source.width, dtype=np.intp)
        ys = np.arange(source.height, dtype=np.intp)
        return ensure_rgb_image(source.gather(xs, ys))

    def execute(self, source: SourceImage, params: EngineParameters) -> ExecutionResult:
        self._check_channels(source)

        logger.info(f"Parameters: alpha={params.alpha:.2f}, Q={params.q:.2f}")
        start = time.perf_counter()

        try:
            img = self._materialize(source)
            h, w = img.shape[:2]
            logger.info(f"Processing {w}x{h} image")
            out, global_max = apply_stretch(img, params)
            factor = 1.0
            if is_rescale(params):
                factor = rescale_to_max(out, global_max)
                if factor != 1.0:
                    logger.info(f"Rescaling by factor: {factor:.4f}")
        except Exception as e:
            logger.error(f"Error during processing: {e}")
            raise ExecutionError(f"Full-resolution stretch failed: {e}", e) from e

        elapsed = time.perf_counter() - start
        logger.info(f"Processing completed in {elapsed:.2f} seconds")
        return ExecutionResult(
            image=out, global_max=global_max, rescale_factor=factor, elapsed_s=elapsed
        )

    def execute_to_sink(
        self,
        source: SourceImage,
        params: EngineParameters,
        sink: IImageSink,
        name: str,
    ) -> str:
        """
        Runs ``execute`` and hands the finished image to ``sink``.
        Returns the sink's reference to the written artifact.
        """
        result = self.execute(source, params)
        try:
            return sink.write(output_name(name), result.image)
        except Exception as e:
            logger.error(f"Failed to write output for {name}: {e}")
            raise ExecutionError(f"Could not write output: {e}", e) from e
