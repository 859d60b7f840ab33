import os
import unittest
from unittest.mock import patch
import numpy as np
import pytest
import tifffile

from luptonpy.core.errors import ExecutionError, InvalidInputError
from luptonpy.features.stretch.logic import transform_pixel
from luptonpy.features.stretch.models import ClippingMode, EngineParameters
from luptonpy.infrastructure.image_io import TiffImageSink
from luptonpy.infrastructure.sources import AccessorImageSource
from luptonpy.services.export.executor import FullResolutionExecutor, output_name


class FailingSink:
    def write(self, name, image):
        raise OSError("disk full")


class TestFullResolutionExecutor(unittest.TestCase):
    def setUp(self):
        self.executor = FullResolutionExecutor()

    def test_output_name(self):
        self.assertEqual(output_name("/data/m42.tif"), "m42_lupton")
        self.assertEqual(output_name("ngc.7000.fits.tif"), "ngc.7000.fits_lupton")

    def test_rejects_fewer_than_three_channels(self):
        with self.assertRaises(InvalidInputError):
            self.executor.execute(np.zeros((4, 4, 2), dtype=np.float32), EngineParameters())
        with self.assertRaises(InvalidInputError):
            self.executor.execute(np.zeros((4, 4), dtype=np.float32), EngineParameters())

    def test_rejects_accessor_before_reading(self):
        calls = []
        source = AccessorImageSource(lambda x, y, c: calls.append(1) or 0.0, 4, 4, 1)
        with self.assertRaises(InvalidInputError):
            self.executor.execute(source, EngineParameters())
        self.assertEqual(calls, [])

    def test_matches_per_pixel_transform(self):
        img = np.array([[[0.1, 0.1, 0.1], [0.5, 0.1, 0.1]]], dtype=np.float32)
        params = EngineParameters()
        result = self.executor.execute(img, params)
        self.assertEqual(result.rescale_factor, 1.0)
        for x in range(2):
            np.testing.assert_allclose(
                result.image[0, x], transform_pixel(*img[0, x], params), rtol=1e-6
            )

    def test_accessor_source(self):
        source = AccessorImageSource(lambda x, y, c: 0.1, 3, 2, 4)
        result = self.executor.execute(source, EngineParameters())
        self.assertEqual(result.image.shape, (2, 3, 3))

    def test_rescale_mode_normalizes_to_one(self):
        rng = np.random.default_rng(3)
        img = rng.uniform(0.0, 2.0, size=(16, 16, 3)).astype(np.float32)
        params = EngineParameters(alpha=50.0, clipping_mode=ClippingMode.RESCALE)

        result = self.executor.execute(img, params)
        self.assertGreater(result.global_max, 1.0)
        self.assertLess(result.rescale_factor, 1.0)
        self.assertAlmostEqual(float(result.image.max()), 1.0, places=6)

    def test_failure_wrapped(self):
        with patch(
            "luptonpy.services.export.executor.apply_stretch",
            side_effect=MemoryError("out of memory"),
        ):
            with self.assertRaises(ExecutionError) as ctx:
                self.executor.execute(np.zeros((2, 2, 3), dtype=np.float32), EngineParameters())
        self.assertIsInstance(ctx.exception.original_error, MemoryError)

    def test_accessor_failure_mid_read_wrapped(self):
        def sample(x, y, c):
            if y == 3:
                raise RuntimeError("host read failed")
            return 0.1

        source = AccessorImageSource(sample, 8, 8, 3)
        with self.assertRaises(ExecutionError) as ctx:
            self.executor.execute(source, EngineParameters())
        self.assertIsInstance(ctx.exception.original_error, RuntimeError)

    def test_sink_failure_wrapped(self):
        with self.assertRaises(ExecutionError):
            self.executor.execute_to_sink(
                np.zeros((2, 2, 3), dtype=np.float32),
                EngineParameters(),
                FailingSink(),
                "m42.tif",
            )


def test_execute_to_tiff_sink(tmp_path):
    img = np.full((8, 6, 3), 0.1, dtype=np.float32)
    sink = TiffImageSink(str(tmp_path))

    path = FullResolutionExecutor().execute_to_sink(img, EngineParameters(), sink, "/x/m42.tif")

    assert path == os.path.join(str(tmp_path), "m42_lupton.tif")
    written = tifffile.imread(path)
    assert written.shape == (8, 6, 3)
    assert written.dtype == np.float32
    np.testing.assert_allclose(written, 0.261839, atol=1e-5)
    assert os.listdir(tmp_path) == ["m42_lupton.tif"]


def test_tiff_sink_leaves_nothing_on_failure(tmp_path):
    sink = TiffImageSink(str(tmp_path))
    with patch(
        "luptonpy.infrastructure.image_io.tifffile.imwrite",
        side_effect=OSError("disk full"),
    ):
        with pytest.raises(OSError):
            sink.write("m42_lupton", np.zeros((2, 2, 3), dtype=np.float32))
    assert os.listdir(tmp_path) == []
