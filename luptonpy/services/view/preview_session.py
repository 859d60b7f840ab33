import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

from luptonpy.core.errors import InvalidInputError
from luptonpy.core.interfaces import IChannelSource, IRasterSink
from luptonpy.core.types import Dimensions, RGB8Raster
from luptonpy.features.blackpoint.logic import auto_black_point
from luptonpy.features.stretch.models import EngineParameters
from luptonpy.kernel.system.config import APP_CONFIG, DEFAULT_PARAMETERS
from luptonpy.kernel.system.logging import get_logger
from luptonpy.services.rendering.preview_renderer import PreviewRenderer, PreviewRequest
from luptonpy.services.rendering.scheduler import UpdateScheduler
from luptonpy.services.view.viewport import ViewportModel

logger = get_logger(__name__)


@dataclass(frozen=True)
class CursorInfo:
    """
    Source pixel under the pointer and its raw channel values.
    """

    x: int
    y: int
    r: float
    g: float
    b: float


class PreviewSession:
    """
    Interactive preview state: source image, parameters, viewport and render throttling.

    Pointer, zoom and pan handlers take viewport coordinates. Continuous input
    (parameter drags, panning) goes through the scheduler; discrete actions
    (mode toggles, zoom steps, fit, reset) render immediately.
    """

    def __init__(
        self,
        viewport_size: Dimensions = (800, 600),
        params: EngineParameters = DEFAULT_PARAMETERS,
        raster_sink: Optional[IRasterSink] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.params = params
        self.request = PreviewRequest()
        self.source: Optional[IChannelSource] = None
        self.viewport: Optional[ViewportModel] = None
        self.renderer = PreviewRenderer()
        self.scheduler = UpdateScheduler(
            self.render,
            throttle_ms=APP_CONFIG.preview_throttle_ms,
            skip_bound=APP_CONFIG.preview_skip_bound,
            clock=clock,
        )
        self.raster_sink = raster_sink
        self.realtime = True
        self.last_render_seconds = 0.0
        self._viewport_size = viewport_size

    # --- Source / parameters ---

    def attach_source(self, source: IChannelSource) -> None:
        if source.channel_count < 3:
            raise InvalidInputError("Image must have at least 3 channels (RGB)")
        self.source = source
        size = (source.width, source.height)
        if self.viewport is None:
            self.viewport = ViewportModel(size, self._viewport_size)
        else:
            self.viewport.set_source_size(size)
        self.scheduler.force()

    def update_params(self, params: EngineParameters) -> None:
        self.params = params
        if self.realtime:
            self.scheduler.notify()

    def reset_parameters(self) -> None:
        self.params = DEFAULT_PARAMETERS
        self.scheduler.force()

    def set_request(self, request: PreviewRequest) -> None:
        self.request = request
        self.scheduler.force()

    def set_split_position(self, position: float) -> None:
        self.request = replace(self.request, split_position=position)
        self.scheduler.notify()

    def set_realtime(self, enabled: bool) -> None:
        self.realtime = enabled
        if enabled:
            self.scheduler.force()

    def auto_black_point(self) -> EngineParameters:
        if self.source is None:
            logger.warning("No image selected for auto black point calculation")
            return self.params
        self.params = auto_black_point(self.source, self.params)
        self.scheduler.force()
        return self.params

    def sample_black_point(self, vx: float, vy: float) -> EngineParameters:
        """
        Uses the source pixel under a viewport position as the black point.
        """
        info = self.handle_pointer_move(vx, vy)
        if info is None:
            return self.params
        if self.params.linked:
            self.params = replace(self.params, black_point=(info.r + info.g + info.b) / 3.0)
        else:
            self.params = replace(self.params, black_r=info.r, black_g=info.g, black_b=info.b)
        self.scheduler.force()
        return self.params

    # --- Rendering ---

    def render(self) -> Optional[RGB8Raster]:
        if self.source is None or self.viewport is None:
            return None
        start = time.perf_counter()
        raster = self.renderer.render(self.source, self.viewport, self.request, self.params)
        self.last_render_seconds = time.perf_counter() - start
        logger.debug(f"Preview: {self.last_render_seconds:.2f}s")
        if self.raster_sink is not None:
            self.raster_sink.show_raster(raster)
        return raster

    def flush(self) -> bool:
        return self.scheduler.flush()

    # --- Viewport interaction ---

    def handle_pointer_move(self, vx: float, vy: float) -> Optional[CursorInfo]:
        if self.source is None or self.viewport is None:
            return None
        pixel = self.viewport.source_pixel_at(vx, vy)
        if pixel is None:
            return None
        x, y = pixel
        return CursorInfo(
            x=x,
            y=y,
            r=self.source.sample(x, y, 0),
            g=self.source.sample(x, y, 1),
            b=self.source.sample(x, y, 2),
        )

    def handle_zoom_delta(
        self, delta: int, vx: Optional[float] = None, vy: Optional[float] = None
    ) -> None:
        if self.viewport is None:
            return
        reference = (vx, vy) if vx is not None and vy is not None else None
        self.viewport.zoom_by(delta, reference)
        self.scheduler.force()

    def handle_pan(self, dx: float, dy: float) -> None:
        if self.viewport is None:
            return
        self.viewport.pan_by(dx, dy)
        self.scheduler.notify()

    def fit_to_window(self) -> None:
        if self.viewport is None:
            return
        self.viewport.fit_to_window()
        self.scheduler.force()

    def resize(self, viewport_size: Dimensions) -> None:
        self._viewport_size = viewport_size
        if self.viewport is None:
            return
        self.viewport.resize(viewport_size)
        self.scheduler.force()
