"""Tests for luptonpy.cli.stretch: CLI batch stretcher."""

import os

os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

import json

import numpy as np
import pytest
import tifffile

from luptonpy.cli.stretch import build_parameters, build_parser, discover_files, main
from luptonpy.features.stretch.models import ClippingMode


class TestBuildParser:
    def test_minimal_args(self):
        args = build_parser().parse_args(["m42.tif"])
        assert args.inputs == ["m42.tif"]
        assert args.alpha is None
        assert args.q is None
        assert args.black_point is None
        assert args.black_rgb is None
        assert args.auto_black is False
        assert args.clipping is None
        assert args.output is None

    def test_black_options_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["m42.tif", "--black-point", "0.1", "--auto-black"])

    def test_invalid_clipping(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["m42.tif", "--clipping", "sideways"])

    def test_unlinked_requires_auto_black(self):
        with pytest.raises(SystemExit):
            main(["m42.tif", "--unlinked"])


class TestBuildParameters:
    def _params(self, argv):
        return build_parameters(build_parser().parse_args(argv))

    def test_defaults(self):
        p = self._params(["m42.tif"])
        assert p.alpha == 5.0
        assert p.q == 8.0
        assert p.linked is True
        assert p.clipping_mode == ClippingMode.PRESERVE_COLOR

    def test_flags(self):
        p = self._params(
            ["m42.tif", "--alpha", "12", "--q", "2", "--saturation", "1.5", "--clipping", "rescale"]
        )
        assert (p.alpha, p.q, p.saturation) == (12.0, 2.0, 1.5)
        assert p.clipping_mode == ClippingMode.RESCALE

    def test_black_rgb_unlinks(self):
        p = self._params(["m42.tif", "--black-rgb", "0.01", "0.02", "0.03"])
        assert p.linked is False
        assert p.channel_minimums() == (0.01, 0.02, 0.03)

    def test_out_of_range_clamped(self):
        p = self._params(["m42.tif", "--alpha", "500", "--q", "0"])
        assert p.alpha == 50.0
        assert p.q == 0.1

    def test_settings_file_then_flags(self, tmp_path):
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"alpha": 3.0, "q": 4.0, "clipping_mode": "clip"}))
        p = self._params(["m42.tif", "--settings", str(settings), "--q", "6"])
        assert p.alpha == 3.0
        assert p.q == 6.0
        assert p.clipping_mode == ClippingMode.HARD_CLIP


def _write_input(directory, name="m42.tif", value=0.1):
    path = directory / name
    tifffile.imwrite(str(path), np.full((10, 12, 3), value, dtype=np.float32), photometric="rgb")
    return path


class TestDiscoverFiles:
    def test_files_and_directories(self, tmp_path):
        _write_input(tmp_path, "a.tif")
        _write_input(tmp_path, "b.tiff")
        (tmp_path / "notes.txt").write_text("ignored")
        files = discover_files([str(tmp_path)])
        assert [os.path.basename(f) for f in files] == ["a.tif", "b.tiff"]

    def test_missing_path(self, tmp_path):
        assert discover_files([str(tmp_path / "missing.tif")]) == []


class TestMain:
    def test_no_inputs(self):
        assert main([]) == 1

    def test_stretches_to_output(self, tmp_path):
        src = _write_input(tmp_path)
        out_dir = tmp_path / "out"

        assert main([str(src), "--output", str(out_dir)]) == 0

        result = tifffile.imread(str(out_dir / "m42_lupton.tif"))
        assert result.shape == (10, 12, 3)
        np.testing.assert_allclose(result, 0.261839, atol=1e-5)

    def test_auto_black(self, tmp_path):
        src = _write_input(tmp_path, value=0.05)
        out_dir = tmp_path / "out"

        assert main([str(src), "--output", str(out_dir), "--auto-black"]) == 0
        result = tifffile.imread(str(out_dir / "m42_lupton.tif"))
        # Constant image stretched against 90% of itself
        assert np.all(result > 0)

    def test_failure_reported(self, tmp_path):
        bad = tmp_path / "broken.tif"
        bad.write_bytes(b"not a tiff")
        assert main([str(bad), "--output", str(tmp_path / "out")]) == 1
