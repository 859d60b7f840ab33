import numpy as np
from luptonpy.core.types import ImageBuffer, RGB8Raster


def float_to_uint8(buffer: ImageBuffer) -> RGB8Raster:
    """
    Display quantization: clamp(c, 0, 1) * 255, rounded.
    """
    scaled = np.clip(np.nan_to_num(buffer, nan=0.0), 0.0, 1.0) * 255.0
    return np.round(scaled).astype(np.uint8)


def uint8_to_float32(buffer: np.ndarray) -> ImageBuffer:
    return buffer.astype(np.float32) / 255.0


def uint16_to_float32(buffer: np.ndarray) -> ImageBuffer:
    return buffer.astype(np.float32) / 65535.0


def to_float32_image(buffer: np.ndarray) -> ImageBuffer:
    """
    Normalizes integer images into [0, 1] float32; float data is kept as-is (HDR linear).
    """
    if buffer.dtype == np.uint8:
        return uint8_to_float32(buffer)
    if buffer.dtype == np.uint16:
        return uint16_to_float32(buffer)
    if np.issubdtype(buffer.dtype, np.integer):
        info = np.iinfo(buffer.dtype)
        return (buffer.astype(np.float64) / float(info.max)).astype(np.float32)
    return buffer.astype(np.float32, copy=False)
