import math
import threading
import unittest
import numpy as np
from dataclasses import replace

from luptonpy.features.stretch.logic import (
    apply_stretch,
    rescale_to_max,
    resolve_q,
    stretch_function,
    transform_pixel,
)
from luptonpy.features.stretch.models import ClippingMode, EngineParameters


class TestStretchFunction(unittest.TestCase):
    def test_zero_at_or_below_minimum(self):
        self.assertEqual(stretch_function(0.1, 5.0, 8.0, 0.1), 0.0)
        self.assertEqual(stretch_function(0.05, 5.0, 8.0, 0.1), 0.0)

    def test_known_value(self):
        self.assertAlmostEqual(stretch_function(0.1, 5.0, 8.0, 0.0), math.asinh(4.0) / 8.0)

    def test_q_guard(self):
        self.assertEqual(resolve_q(0.0), 0.01)
        self.assertEqual(resolve_q(-0.001), -0.01)
        self.assertEqual(resolve_q(8.0), 8.0)
        self.assertTrue(math.isfinite(stretch_function(0.5, 5.0, 0.0, 0.0)))


class TestTransformPixel(unittest.TestCase):
    def setUp(self):
        self.params = EngineParameters()

    def test_gray_pixel(self):
        """Defaults (alpha=5, Q=8) map gray 0.1 to asinh(4) / 8 per channel."""
        expected = math.asinh(4.0) / 8.0
        r, g, b = transform_pixel(0.1, 0.1, 0.1, self.params)
        for c in (r, g, b):
            self.assertAlmostEqual(c, expected, places=6)
        self.assertAlmostEqual(expected, 0.26184, places=4)

    def test_preserves_channel_ratios(self):
        r, g, b = transform_pixel(0.5, 0.1, 0.1, self.params)
        self.assertLessEqual(max(r, g, b), 1.0)
        self.assertAlmostEqual(r / g, 5.0, places=5)
        self.assertAlmostEqual(g, b)

    def test_black_pixel_stays_black(self):
        self.assertEqual(transform_pixel(0.0, 0.0, 0.0, self.params), (0.0, 0.0, 0.0))

    def test_at_black_point_is_black(self):
        params = replace(self.params, black_point=0.2)
        self.assertEqual(transform_pixel(0.2, 0.2, 0.2, params), (0.0, 0.0, 0.0))
        self.assertEqual(transform_pixel(0.1, 0.15, 0.05, params), (0.0, 0.0, 0.0))

    def test_monotonic_in_alpha(self):
        prev = 0.0
        for alpha in (0.5, 1.0, 2.0, 5.0, 10.0):
            r, _, _ = transform_pixel(0.01, 0.01, 0.01, replace(self.params, alpha=alpha))
            self.assertGreater(r, prev)
            prev = r

    def test_preserve_color_bright_pixel(self):
        """Overexposed pixels are scaled down together, keeping hue."""
        r, g, b = transform_pixel(10.0, 5.0, 1.0, replace(self.params, alpha=50.0))
        self.assertAlmostEqual(max(r, g, b), 1.0, places=6)
        self.assertAlmostEqual(r / g, 2.0, places=5)

    def test_hard_clip_breaks_ratios(self):
        params = replace(self.params, alpha=50.0, clipping_mode=ClippingMode.HARD_CLIP)
        r, g, b = transform_pixel(0.9, 0.1, 0.1, params)
        self.assertEqual(r, 1.0)
        self.assertLess(g, 1.0)
        self.assertNotAlmostEqual(r / g, 9.0, places=2)

    def test_rescale_mode_leaves_values_above_one(self):
        params = replace(self.params, alpha=50.0, clipping_mode=ClippingMode.RESCALE)
        r, _, _ = transform_pixel(0.9, 0.1, 0.1, params)
        self.assertGreater(r, 1.0)

    def test_outputs_finite_and_non_negative(self):
        rng = np.random.default_rng(0)
        for q in (0.0, 0.1, 8.0, 30.0):
            params = replace(self.params, q=q, black_point=0.05)
            for r, g, b in rng.uniform(-0.5, 5.0, size=(50, 3)):
                out = transform_pixel(r, g, b, params)
                for c in out:
                    self.assertTrue(math.isfinite(c))
                    self.assertGreaterEqual(c, 0.0)

    def test_per_channel_minimums(self):
        params = replace(
            self.params, linked=False, black_r=0.05, black_g=0.0, black_b=0.0
        )
        r, g, b = transform_pixel(0.05, 0.2, 0.2, params)
        self.assertEqual(r, 0.0)
        self.assertGreater(g, 0.0)
        self.assertAlmostEqual(g, b)

    def test_saturation_keeps_gray(self):
        params = replace(self.params, saturation=2.0)
        r, g, b = transform_pixel(0.1, 0.1, 0.1, params)
        self.assertAlmostEqual(r, g)
        self.assertAlmostEqual(g, b)

    def test_saturation_spreads_channels(self):
        base = transform_pixel(0.2, 0.1, 0.05, self.params)
        boosted = transform_pixel(0.2, 0.1, 0.05, replace(self.params, saturation=1.5))
        self.assertGreater(boosted[0] - boosted[2], base[0] - base[2])

    def test_params_not_mutated(self):
        params = EngineParameters(alpha=3.0)
        transform_pixel(0.3, 0.2, 0.1, params)
        self.assertEqual(params, EngineParameters(alpha=3.0))


class TestApplyStretch(unittest.TestCase):
    def test_matches_transform_pixel(self):
        rng = np.random.default_rng(42)
        img = rng.uniform(0.0, 0.5, size=(8, 10, 3)).astype(np.float32)
        params = EngineParameters(alpha=7.0, q=3.0, black_point=0.02, saturation=1.2)

        out, global_max = apply_stretch(img, params)

        self.assertEqual(out.shape, img.shape)
        self.assertEqual(out.dtype, np.float32)
        for y in range(img.shape[0]):
            for x in range(img.shape[1]):
                expected = transform_pixel(*img[y, x], params)
                np.testing.assert_allclose(out[y, x], expected, rtol=1e-5, atol=1e-6)
        self.assertAlmostEqual(global_max, float(out.max()), places=5)

    def test_input_untouched(self):
        img = np.full((4, 4, 3), 0.3, dtype=np.float32)
        original = img.copy()
        apply_stretch(img, EngineParameters())
        np.testing.assert_array_equal(img, original)

    def test_extra_channels_ignored(self):
        img = np.full((2, 2, 4), 0.1, dtype=np.float32)
        out, _ = apply_stretch(img, EngineParameters())
        self.assertEqual(out.shape, (2, 2, 3))

    def test_rescale_to_max(self):
        img = np.zeros((4, 4, 3), dtype=np.float32)
        img[0, 0] = (2.0, 1.0, 0.5)
        img[1, 1] = (0.2, 0.2, 0.2)
        params = EngineParameters(alpha=50.0, clipping_mode=ClippingMode.RESCALE)

        out, global_max = apply_stretch(img, params)
        self.assertGreater(global_max, 1.0)
        ratio_before = out[0, 0, 0] / out[1, 1, 0]

        factor = rescale_to_max(out, global_max)
        self.assertAlmostEqual(factor, 1.0 / global_max)
        self.assertAlmostEqual(float(out.max()), 1.0, places=6)
        self.assertAlmostEqual(out[0, 0, 0] / out[1, 1, 0], ratio_before, places=4)

    def test_concurrent_calls(self):
        """Preview and export threads can stretch at the same time."""
        rng = np.random.default_rng(5)
        img = rng.uniform(0.0, 1.0, size=(200, 200, 3)).astype(np.float32)
        params = EngineParameters(clipping_mode=ClippingMode.RESCALE)
        expected, expected_max = apply_stretch(img, params)
        errors = []

        def worker():
            try:
                for _ in range(10):
                    out, global_max = apply_stretch(img, params)
                    rescale_to_max(out, global_max)
                    np.testing.assert_allclose(out, expected / max(1.0, expected_max), rtol=1e-5)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(errors, [])

    def test_rescale_noop_when_in_range(self):
        img = np.full((2, 2, 3), 0.5, dtype=np.float32)
        self.assertEqual(rescale_to_max(img, 0.9), 1.0)
        np.testing.assert_array_equal(img, 0.5)


if __name__ == "__main__":
    unittest.main()
