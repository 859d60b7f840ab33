from typing import Any, cast
import numpy as np
from luptonpy.core.types import ImageBuffer
from luptonpy.core.errors import InvalidInputError


def ensure_image(arr: Any) -> ImageBuffer:
    """
    Ensures the input is a float32 numpy array and returns it as an ImageBuffer.
    This is preferred over a raw cast because it performs runtime validation.
    """
    if not isinstance(arr, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(arr)}")

    if arr.dtype != np.float32:
        arr = arr.astype(np.float32)

    return cast(ImageBuffer, arr)


def ensure_rgb_image(arr: Any) -> ImageBuffer:
    """
    Validates an (H, W, C>=3) image and returns its first three channels as float32.
    """
    img = ensure_image(arr)
    if img.ndim != 3 or img.shape[2] < 3:
        raise InvalidInputError(
            f"Image must have at least 3 channels (RGB), got shape {img.shape}"
        )
    if img.shape[2] > 3:
        img = img[:, :, :3]
    return img


def validate_float(val: Any, default: float = 0.0) -> float:
    """Ensures a value is a float, providing a default if None."""
    if val is None:
        return default
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def validate_bool(val: Any, default: bool = False) -> bool:
    """Ensures a value is a bool."""
    if val is None:
        return default
    return bool(val)
