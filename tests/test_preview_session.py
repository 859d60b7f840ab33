import unittest
from dataclasses import replace
import numpy as np

from luptonpy.core.errors import InvalidInputError
from luptonpy.infrastructure.sources import ArrayImageSource
from luptonpy.kernel.system.config import DEFAULT_PARAMETERS
from luptonpy.services.rendering.preview_renderer import PreviewMode, PreviewRequest
from luptonpy.services.view.preview_session import CursorInfo, PreviewSession


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingSink:
    def __init__(self):
        self.rasters = []

    def show_raster(self, raster: np.ndarray) -> None:
        self.rasters.append(raster)


class TestPreviewSession(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.sink = RecordingSink()
        self.session = PreviewSession(
            viewport_size=(200, 100), raster_sink=self.sink, clock=self.clock
        )
        img = np.zeros((50, 100, 3), dtype=np.float32)
        img[..., 0] = 0.01
        img[..., 1] = 0.02
        img[..., 2] = 0.03
        img[10, 5] = (0.4, 0.5, 0.6)
        self.source = ArrayImageSource(img)

    def test_render_without_source(self):
        self.assertIsNone(self.session.render())
        self.assertEqual(self.sink.rasters, [])

    def test_attach_renders_immediately(self):
        self.session.attach_source(self.source)
        self.assertEqual(len(self.sink.rasters), 1)
        self.assertEqual(self.sink.rasters[0].shape, (100, 200, 3))
        self.assertEqual(self.session.viewport.zoom_label, "Fit")

    def test_attach_rejects_two_channels(self):
        with self.assertRaises(InvalidInputError):
            self.session.attach_source(ArrayImageSource(np.zeros((4, 4, 2), dtype=np.float32)))

    def test_param_updates_are_throttled(self):
        self.session.attach_source(self.source)
        self.session.update_params(replace(DEFAULT_PARAMETERS, alpha=10.0))
        self.assertEqual(len(self.sink.rasters), 1)
        self.assertTrue(self.session.flush())
        self.assertEqual(len(self.sink.rasters), 2)

    def test_realtime_off_defers_updates(self):
        self.session.attach_source(self.source)
        self.session.set_realtime(False)
        self.clock.now = 1.0
        self.session.update_params(replace(DEFAULT_PARAMETERS, alpha=10.0))
        self.assertEqual(len(self.sink.rasters), 1)
        self.assertEqual(self.session.params.alpha, 10.0)
        self.session.set_realtime(True)
        self.assertEqual(len(self.sink.rasters), 2)

    def test_mode_change_renders_immediately(self):
        self.session.attach_source(self.source)
        self.session.set_request(PreviewRequest(PreviewMode.BEFORE))
        self.assertEqual(len(self.sink.rasters), 2)
        self.assertEqual(self.session.request.mode, PreviewMode.BEFORE)

    def test_cursor_info(self):
        self.session.attach_source(self.source)
        # 2:1 zoom, raster fills the viewport
        info = self.session.handle_pointer_move(10, 20)
        self.assertEqual(info.x, 5)
        self.assertEqual(info.y, 10)
        self.assertAlmostEqual(info.r, 0.4, places=6)
        self.assertAlmostEqual(info.b, 0.6, places=6)
        self.assertIsInstance(info, CursorInfo)

    def test_cursor_info_outside_image(self):
        self.session.attach_source(self.source)
        self.session.resize((400, 400))
        self.assertIsNone(self.session.handle_pointer_move(1, 1))

    def test_sample_black_point_linked(self):
        self.session.attach_source(self.source)
        params = self.session.sample_black_point(0, 0)
        self.assertAlmostEqual(params.black_point, 0.02, places=6)
        self.assertEqual(len(self.sink.rasters), 2)

    def test_sample_black_point_unlinked(self):
        self.session.attach_source(self.source)
        self.session.update_params(replace(DEFAULT_PARAMETERS, linked=False))
        params = self.session.sample_black_point(0, 0)
        self.assertAlmostEqual(params.black_r, 0.01, places=6)
        self.assertAlmostEqual(params.black_g, 0.02, places=6)
        self.assertAlmostEqual(params.black_b, 0.03, places=6)

    def test_auto_black_point(self):
        self.session.attach_source(self.source)
        params = self.session.auto_black_point()
        self.assertAlmostEqual(params.black_point, 0.018, places=6)

    def test_reset_parameters(self):
        self.session.attach_source(self.source)
        self.session.update_params(replace(DEFAULT_PARAMETERS, alpha=20.0))
        self.session.reset_parameters()
        self.assertEqual(self.session.params, DEFAULT_PARAMETERS)

    def test_zoom_and_fit(self):
        self.session.attach_source(self.source)
        self.session.handle_zoom_delta(-1)
        self.assertEqual(self.session.viewport.zoom_level, 1)
        self.assertEqual(self.sink.rasters[-1].shape, (50, 100, 3))
        self.session.fit_to_window()
        self.assertEqual(self.session.viewport.zoom_level, 2)
        self.assertEqual(len(self.sink.rasters), 3)


if __name__ == "__main__":
    unittest.main()
