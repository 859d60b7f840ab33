from typing import Protocol, runtime_checkable
import numpy as np
from luptonpy.core.types import ImageBuffer, RGB8Raster


@runtime_checkable
class IChannelSource(Protocol):
    """
    Read-only access to an existing image supplied by the host.
    """

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    @property
    def channel_count(self) -> int: ...

    def sample(self, x: int, y: int, channel: int) -> float: ...

    def gather(self, xs: np.ndarray, ys: np.ndarray) -> ImageBuffer:
        """
        Nearest-neighbor fetch of the first three channels on the grid ys x xs.
        Returns an array of shape (len(ys), len(xs), 3).
        """
        ...


class IImageSink(Protocol):
    """
    Receives a finished full-resolution output image.
    """

    def write(self, name: str, image: ImageBuffer) -> str: ...


class IRasterSink(Protocol):
    """
    Display surface for RGB8 preview rasters.
    """

    def show_raster(self, raster: RGB8Raster) -> None: ...
