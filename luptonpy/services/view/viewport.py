import math
from typing import Optional, Tuple

import numpy as np

from luptonpy.core.types import Dimensions, Point

MAX_ZOOM_LEVEL = 2


def zoom_to_scale(level: int) -> float:
    """
    Positive levels magnify by ``level``; level <= 0 minifies by 1 / (-level + 2).
    """
    if level > 0:
        return float(level)
    return 1.0 / (-level + 2)


def scale_to_zoom(scale: float) -> int:
    """
    Largest zoom level whose scale does not exceed ``scale``.
    """
    if scale >= 1.0:
        return int(math.floor(scale))
    return 2 - int(math.ceil(1.0 / scale - 1e-9))


class ViewportModel:
    """
    Zoom/scroll state for a source raster shown in a fixed-size viewport.

    Scroll positions are kept in scaled (viewport) pixels, so a viewport pixel
    maps to ``(viewport_pixel - origin + scroll) / scale`` in source pixels.
    When the scaled image is smaller than the viewport it is centered and
    ``origin`` holds the centering offset.
    """

    def __init__(self, source_size: Dimensions, viewport_size: Dimensions):
        self.source_size: Dimensions = source_size
        self.viewport_size: Dimensions = viewport_size
        self.zoom_level: int = 1
        self.scale: float = 1.0
        self.scroll_x: float = 0.0
        self.scroll_y: float = 0.0
        self.max_scroll_x: float = 0.0
        self.max_scroll_y: float = 0.0
        self.zoom_out_limit: int = 1
        self.is_fitted: bool = False

        self._update_zoom_out_limit()
        self.fit_to_window()

    # --- Derived geometry ---

    @property
    def scaled_size(self) -> Dimensions:
        sw, sh = self.source_size
        return max(1, int(sw * self.scale)), max(1, int(sh * self.scale))

    @property
    def output_size(self) -> Dimensions:
        """
        Size of the rendered raster: the visible part of the scaled image.
        """
        scaled_w, scaled_h = self.scaled_size
        vw, vh = self._viewport_dims()
        return min(vw, scaled_w), min(vh, scaled_h)

    @property
    def origin(self) -> Point:
        """
        Top-left of the raster inside the viewport.
        """
        out_w, out_h = self.output_size
        vw, vh = self._viewport_dims()
        return float((vw - out_w) // 2), float((vh - out_h) // 2)

    @property
    def pan_offset(self) -> Point:
        """
        Scroll position expressed in source pixels.
        """
        return self.scroll_x / self.scale, self.scroll_y / self.scale

    @property
    def zoom_label(self) -> str:
        if self.is_fitted:
            return "Fit"
        if self.zoom_level > 0:
            return f"{self.zoom_level}:1"
        return f"1:{-self.zoom_level + 2}"

    # --- Transitions ---

    def set_zoom(self, level: int, reference: Optional[Point] = None) -> None:
        """
        Applies a zoom level, keeping the image point under ``reference``
        (viewport coordinates, default: viewport centre) in place.
        """
        vw, vh = self._viewport_dims()
        ref_x, ref_y = reference if reference is not None else (vw / 2.0, vh / 2.0)
        anchor_x, anchor_y = self.viewport_to_source(ref_x, ref_y)

        self.zoom_level = min(MAX_ZOOM_LEVEL, max(self.zoom_out_limit, int(level)))
        self.scale = zoom_to_scale(self.zoom_level)
        self.is_fitted = False
        self._update_bounds()

        origin_x, origin_y = self.origin
        self.set_scroll(
            anchor_x * self.scale - (ref_x - origin_x),
            anchor_y * self.scale - (ref_y - origin_y),
        )

    def zoom_by(self, delta: int, reference: Optional[Point] = None) -> None:
        self.set_zoom(self.zoom_level + delta, reference)

    def resize(self, viewport_size: Dimensions) -> None:
        was_fitted = self.is_fitted
        self.viewport_size = viewport_size
        self._update_zoom_out_limit()

        if self.zoom_level < self.zoom_out_limit:
            self.set_zoom(self.zoom_out_limit)
        else:
            self._update_bounds()
            self.set_scroll(self.scroll_x, self.scroll_y)

        self.is_fitted = was_fitted and self.zoom_level == self._fit_level()

    def fit_to_window(self) -> None:
        self.set_zoom(self._fit_level())
        self.is_fitted = True

    def set_source_size(self, source_size: Dimensions) -> None:
        """
        Resets the view for a new source image.
        """
        self.source_size = source_size
        self.scroll_x = self.scroll_y = 0.0
        self._update_zoom_out_limit()
        self.fit_to_window()

    def set_scroll(self, x: float, y: float) -> None:
        self.scroll_x = min(self.max_scroll_x, max(0.0, float(x)))
        self.scroll_y = min(self.max_scroll_y, max(0.0, float(y)))

    def pan_by(self, dx: float, dy: float) -> None:
        """
        Drags the image by (dx, dy) viewport pixels.
        """
        self.set_scroll(self.scroll_x - dx, self.scroll_y - dy)

    # --- Coordinate mapping ---

    def viewport_to_source(self, vx: float, vy: float) -> Point:
        origin_x, origin_y = self.origin
        return (
            (vx - origin_x + self.scroll_x) / self.scale,
            (vy - origin_y + self.scroll_y) / self.scale,
        )

    def source_to_viewport(self, sx: float, sy: float) -> Point:
        origin_x, origin_y = self.origin
        return (
            sx * self.scale - self.scroll_x + origin_x,
            sy * self.scale - self.scroll_y + origin_y,
        )

    def source_pixel_at(self, vx: float, vy: float) -> Optional[Tuple[int, int]]:
        """
        Source pixel shown at a viewport position, or None outside the raster.
        """
        origin_x, origin_y = self.origin
        out_w, out_h = self.output_size
        if not (origin_x <= vx < origin_x + out_w and origin_y <= vy < origin_y + out_h):
            return None
        sx, sy = self.viewport_to_source(vx, vy)
        sw, sh = self.source_size
        return min(sw - 1, max(0, int(math.floor(sx)))), min(sh - 1, max(0, int(math.floor(sy))))

    def source_grid(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Nearest-neighbor source indices for every raster column and row.
        """
        out_w, out_h = self.output_size
        sw, sh = self.source_size
        xs = np.floor((np.arange(out_w) + self.scroll_x) / self.scale).astype(np.intp)
        ys = np.floor((np.arange(out_h) + self.scroll_y) / self.scale).astype(np.intp)
        return np.clip(xs, 0, sw - 1), np.clip(ys, 0, sh - 1)

    # --- Internals ---

    def _viewport_dims(self) -> Dimensions:
        vw, vh = self.viewport_size
        return max(1, int(vw)), max(1, int(vh))

    def _fit_level(self) -> int:
        sw, sh = self.source_size
        vw, vh = self._viewport_dims()
        fit_scale = min(vw / max(1, sw), vh / max(1, sh))
        return min(MAX_ZOOM_LEVEL, max(self.zoom_out_limit, scale_to_zoom(fit_scale)))

    def _update_zoom_out_limit(self) -> None:
        sw, sh = self.source_size
        vw, vh = self._viewport_dims()
        ratio = max(sw / vw, sh / vh)
        self.zoom_out_limit = min(1, 2 - int(math.ceil(ratio)))

    def _update_bounds(self) -> None:
        sw, sh = self.source_size
        vw, vh = self._viewport_dims()
        self.max_scroll_x = max(0.0, sw * self.scale - vw)
        self.max_scroll_y = max(0.0, sh * self.scale - vh)
