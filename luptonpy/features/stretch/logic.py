import math
import threading
from typing import Tuple

import numpy as np
from numba import njit, prange  # type: ignore

from luptonpy.core.performance import time_function
from luptonpy.core.types import ImageBuffer, PixelSample
from luptonpy.core.validation import ensure_image
from luptonpy.features.stretch.models import ClippingMode, EngineParameters
from luptonpy.kernel.system.config import APP_CONFIG

# Parallel kernels must not be launched concurrently (workqueue layer aborts)
_KERNEL_LOCK = threading.Lock()


@njit
def _stretch_pixel_jit(
    r: float,
    g: float,
    b: float,
    min_r: float,
    min_g: float,
    min_b: float,
    alpha: float,
    q: float,
    saturation: float,
    mode: int,
    eps: float,
) -> Tuple[float, float, float]:
    """
    Lupton et al. (2004) color-preserving arcsinh stretch for a single pixel.
    """
    # Intensity is stretched against the averaged minimum,
    # channels are offset by their own minimum.
    minimum = (min_r + min_g + min_b) / 3.0
    intensity = (r + g + b) / 3.0

    scale = 0.0
    if intensity > minimum + eps:
        delta = intensity - minimum
        scale = (math.asinh(alpha * q * delta) / q) / delta

    r_out = (r - min_r) * scale
    g_out = (g - min_g) * scale
    b_out = (b - min_b) * scale

    if saturation != 1.0:
        lum = (r_out + g_out + b_out) / 3.0
        r_out = lum + (r_out - lum) * saturation
        g_out = lum + (g_out - lum) * saturation
        b_out = lum + (b_out - lum) * saturation

    if mode == 0:
        max_val = max(r_out, g_out, b_out)
        if max_val > 1.0:
            r_out /= max_val
            g_out /= max_val
            b_out /= max_val
    elif mode == 1:
        r_out = min(1.0, max(0.0, r_out))
        g_out = min(1.0, max(0.0, g_out))
        b_out = min(1.0, max(0.0, b_out))

    return max(0.0, r_out), max(0.0, g_out), max(0.0, b_out)


@njit(parallel=True)
def _stretch_image_jit(
    img: np.ndarray,
    mins: np.ndarray,
    alpha: float,
    q: float,
    saturation: float,
    mode: int,
    eps: float,
    out: np.ndarray,
    row_max: np.ndarray,
) -> None:
    """
    Fills ``out`` with the stretched image and ``row_max`` with the per-row channel maximum.
    """
    h, w, _ = img.shape
    for y in prange(h):
        m = 0.0
        for x in range(w):
            r_out, g_out, b_out = _stretch_pixel_jit(
                img[y, x, 0],
                img[y, x, 1],
                img[y, x, 2],
                mins[0],
                mins[1],
                mins[2],
                alpha,
                q,
                saturation,
                mode,
                eps,
            )
            out[y, x, 0] = r_out
            out[y, x, 1] = g_out
            out[y, x, 2] = b_out
            if r_out > m:
                m = r_out
            if g_out > m:
                m = g_out
            if b_out > m:
                m = b_out
        row_max[y] = m


@njit(parallel=True)
def _divide_image_jit(img: np.ndarray, divisor: float) -> None:
    h, w, c = img.shape
    for y in prange(h):
        for x in range(w):
            for ch in range(c):
                img[y, x, ch] = img[y, x, ch] / divisor


def resolve_q(q: float, min_magnitude: float = APP_CONFIG.q_min_magnitude) -> float:
    """
    Keeps Q away from zero, preserving its sign.
    """
    if abs(q) < min_magnitude:
        return math.copysign(min_magnitude, q)
    return float(q)


def stretch_function(x: float, alpha: float, q: float, minimum: float) -> float:
    """
    F(x) = asinh(alpha * Q * (x - minimum)) / Q, zero at or below the minimum.
    """
    val = x - minimum
    if val <= 0:
        return 0.0
    q = resolve_q(q)
    return math.asinh(alpha * q * val) / q


def _engine_args(params: EngineParameters) -> Tuple[np.ndarray, float, float, float, int, float]:
    mins = np.array(params.channel_minimums(), dtype=np.float64)
    return (
        mins,
        float(params.alpha),
        resolve_q(params.q),
        float(params.saturation),
        int(params.clipping_mode),
        APP_CONFIG.intensity_epsilon,
    )


def transform_pixel(r: float, g: float, b: float, params: EngineParameters) -> PixelSample:
    """
    Stretches one (r, g, b) sample. Pure and deterministic; ``params`` is never mutated.
    """
    mins, alpha, q, saturation, mode, eps = _engine_args(params)
    r_out, g_out, b_out = _stretch_pixel_jit(
        float(r),
        float(g),
        float(b),
        mins[0],
        mins[1],
        mins[2],
        alpha,
        q,
        saturation,
        mode,
        eps,
    )
    return float(r_out), float(g_out), float(b_out)


@time_function
def apply_stretch(img: ImageBuffer, params: EngineParameters) -> Tuple[ImageBuffer, float]:
    """
    Applies the per-pixel stretch to an (H, W, 3) image.

    Returns a freshly allocated output together with the maximum channel value
    found in it. In RESCALE mode values are left unclamped above 1.0.
    """
    src = np.ascontiguousarray(ensure_image(img)[:, :, :3])
    h = src.shape[0]
    out = np.empty(src.shape, dtype=np.float32)
    row_max = np.zeros(h, dtype=np.float64)

    mins, alpha, q, saturation, mode, eps = _engine_args(params)
    with _KERNEL_LOCK:
        _stretch_image_jit(src, mins, alpha, q, saturation, mode, eps, out, row_max)

    global_max = float(row_max.max()) if h > 0 else 0.0
    return out, global_max


@time_function
def rescale_to_max(img: ImageBuffer, global_max: float) -> float:
    """
    Divides ``img`` in place by ``global_max`` when it exceeds 1.0.
    Returns the applied factor (1.0 when nothing changed).
    """
    if global_max <= 1.0:
        return 1.0
    with _KERNEL_LOCK:
        _divide_image_jit(img, global_max)
    return 1.0 / global_max


def is_rescale(params: EngineParameters) -> bool:
    return params.clipping_mode == ClippingMode.RESCALE
