import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from luptonpy.core.errors import InvalidInputError
from luptonpy.core.interfaces import IChannelSource
from luptonpy.core.performance import time_function
from luptonpy.core.types import ImageBuffer, RGB8Raster
from luptonpy.features.stretch.logic import apply_stretch
from luptonpy.features.stretch.models import EngineParameters
from luptonpy.kernel.image.logic import float_to_uint8
from luptonpy.kernel.system.config import APP_CONFIG
from luptonpy.services.view.viewport import ViewportModel


class PreviewMode(Enum):
    AFTER = 0
    BEFORE = 1
    SPLIT = 2


@dataclass(frozen=True)
class PreviewRequest:
    """
    What to show: the stretched image, the linear original, or both split at a column.
    """

    mode: PreviewMode = PreviewMode.AFTER
    split_position: float = 50.0  # percent of raster width showing "before"


class PreviewRenderer:
    """
    Produces viewport-sized RGB8 rasters of the visible image region.
    Only the most recent raster is retained.
    """

    def __init__(self, before_factor: float = APP_CONFIG.before_stretch_factor):
        self.before_factor = before_factor
        self.last_raster: Optional[RGB8Raster] = None

    @staticmethod
    def split_column(width: int, request: PreviewRequest) -> int:
        """
        Number of leading raster columns rendered as "before".
        """
        if request.mode == PreviewMode.BEFORE:
            return width
        if request.mode == PreviewMode.AFTER:
            return 0
        pos = min(100.0, max(0.0, float(request.split_position)))
        return min(width, int(math.ceil(width * pos / 100.0)))

    def linear_preview(self, block: ImageBuffer) -> ImageBuffer:
        """
        Fixed, parameter-independent visualization of the linear data.
        """
        return np.minimum(1.0, block * self.before_factor)

    @time_function
    def render(
        self,
        source: IChannelSource,
        viewport: ViewportModel,
        request: PreviewRequest,
        params: EngineParameters,
    ) -> RGB8Raster:
        if source.channel_count < 3:
            raise InvalidInputError("Image must have at least 3 channels (RGB)")

        xs, ys = viewport.source_grid()
        block = source.gather(xs, ys)
        split_col = self.split_column(len(xs), request)

        result = np.empty(block.shape, dtype=np.float32)
        if split_col > 0:
            result[:, :split_col] = self.linear_preview(block[:, :split_col])
        if split_col < len(xs):
            stretched, _ = apply_stretch(block[:, split_col:], params)
            result[:, split_col:] = stretched

        self.last_raster = float_to_uint8(result)
        return self.last_raster
