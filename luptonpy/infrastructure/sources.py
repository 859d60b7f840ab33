from typing import Callable
import numpy as np
from luptonpy.core.types import ImageBuffer
from luptonpy.core.validation import ensure_image


class ArrayImageSource:
    """
    Channel source backed by an in-memory (H, W, C) or (H, W) array.
    """

    def __init__(self, data: np.ndarray):
        img = ensure_image(data)
        if img.ndim == 2:
            img = img[:, :, np.newaxis]
        self.data: ImageBuffer = img

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def channel_count(self) -> int:
        return int(self.data.shape[2])

    def sample(self, x: int, y: int, channel: int) -> float:
        return float(self.data[y, x, channel])

    def gather(self, xs: np.ndarray, ys: np.ndarray) -> ImageBuffer:
        return self.data[np.ix_(ys, xs, np.arange(3))]


class AccessorImageSource:
    """
    Adapts a host ``sample(x, y, channel)`` callable to the channel source interface.
    """

    def __init__(
        self,
        sample_fn: Callable[[int, int, int], float],
        width: int,
        height: int,
        channel_count: int,
    ):
        self._sample_fn = sample_fn
        self._width = width
        self._height = height
        self._channel_count = channel_count

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def channel_count(self) -> int:
        return self._channel_count

    def sample(self, x: int, y: int, channel: int) -> float:
        return float(self._sample_fn(x, y, channel))

    def gather(self, xs: np.ndarray, ys: np.ndarray) -> ImageBuffer:
        out = np.empty((len(ys), len(xs), 3), dtype=np.float32)
        for j, y in enumerate(ys):
            for i, x in enumerate(xs):
                for c in range(3):
                    out[j, i, c] = self._sample_fn(int(x), int(y), c)
        return out
