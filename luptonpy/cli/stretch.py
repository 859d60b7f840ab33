"""luptonpy CLI batch stretcher.

Applies the color-preserving arcsinh stretch to linear RGB images without a GUI.
"""

import os

os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

import argparse
import dataclasses
import json
import logging
import sys
from typing import List, Optional

from luptonpy.core.errors import LuptonError
from luptonpy.features.blackpoint.logic import auto_black_point
from luptonpy.features.stretch.models import EngineParameters, ClippingMode
from luptonpy.infrastructure.image_io import SUPPORTED_EXTENSIONS, TiffImageSink, load_image
from luptonpy.infrastructure.sources import ArrayImageSource
from luptonpy.kernel.system.config import APP_CONFIG, DEFAULT_PARAMETERS, PARAMETER_RANGES
from luptonpy.kernel.system.logging import setup_logging
from luptonpy.services.export.executor import FullResolutionExecutor

CLIPPING_MAP = {
    "preserve": ClippingMode.PRESERVE_COLOR,
    "clip": ClippingMode.HARD_CLIP,
    "rescale": ClippingMode.RESCALE,
}

CLIPPING_CHOICES = tuple(CLIPPING_MAP.keys())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="luptonpy",
        description="luptonpy -- Lupton RGB arcsinh stretch for linear images",
        epilog="Example: luptonpy --alpha 5 --q 8 --auto-black --output ./export m42.tif",
    )

    parser.add_argument(
        "inputs",
        nargs="*",
        metavar="FILE_OR_DIR",
        help="Input images or directories containing linear RGB images",
    )

    parser.add_argument(
        "--alpha",
        type=float,
        default=None,
        metavar="FLOAT",
        help="Stretch (linear amplification), range 0.1..50 (default: 5.0)",
    )

    parser.add_argument(
        "--q",
        type=float,
        default=None,
        metavar="FLOAT",
        help="Q softening, lower = earlier log transition, range 0.1..30 (default: 8.0)",
    )

    black = parser.add_mutually_exclusive_group()
    black.add_argument(
        "--black-point",
        type=float,
        default=None,
        metavar="FLOAT",
        help="Linked black point subtracted from all channels (default: 0.0)",
    )
    black.add_argument(
        "--black-rgb",
        type=float,
        nargs=3,
        default=None,
        metavar=("R", "G", "B"),
        help="Independent per-channel black points",
    )
    black.add_argument(
        "--auto-black",
        action="store_true",
        default=False,
        help="Estimate black point(s) from image statistics",
    )

    parser.add_argument(
        "--unlinked",
        action="store_true",
        default=False,
        help="With --auto-black, estimate each channel separately",
    )

    parser.add_argument(
        "--saturation",
        type=float,
        default=None,
        metavar="FLOAT",
        help="Post-stretch saturation, range 0.5..2.0 (default: 1.0)",
    )

    parser.add_argument(
        "--clipping",
        choices=CLIPPING_CHOICES,
        default=None,
        help="Handling of values above 1.0 (default: preserve)",
    )

    parser.add_argument(
        "--output",
        default=None,
        metavar="DIR",
        help=f"Output directory (default: {APP_CONFIG.default_export_dir})",
    )

    parser.add_argument(
        "--settings",
        default=None,
        metavar="JSON_FILE",
        help="Load stretch parameters from a JSON settings file",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )

    return parser


def discover_files(inputs: List[str]) -> List[str]:
    """Resolves input paths to a sorted list of supported image files."""
    files = []
    for input_path in inputs:
        path = os.path.abspath(input_path)
        if os.path.isfile(path):
            ext = os.path.splitext(path)[1].lower()
            if ext in SUPPORTED_EXTENSIONS:
                files.append(path)
            else:
                print(f"Warning: Skipping unsupported file: {path}", file=sys.stderr)
        elif os.path.isdir(path):
            for root, _dirs, filenames in os.walk(path):
                for fname in sorted(filenames):
                    if os.path.splitext(fname)[1].lower() in SUPPORTED_EXTENSIONS:
                        files.append(os.path.join(root, fname))
        else:
            print(f"Warning: Path not found: {path}", file=sys.stderr)
    return files


def build_parameters(args: argparse.Namespace) -> EngineParameters:
    """Builds EngineParameters with loading priority:
    DEFAULT -> --settings -> CLI flags
    """
    base_dict = DEFAULT_PARAMETERS.to_dict()

    if args.settings:
        with open(os.path.abspath(args.settings), "r") as f:
            base_dict.update(json.load(f))

    params = EngineParameters.from_flat_dict(base_dict)

    overrides: dict = {}
    if args.alpha is not None:
        overrides["alpha"] = args.alpha
    if args.q is not None:
        overrides["q"] = args.q
    if args.saturation is not None:
        overrides["saturation"] = args.saturation
    if args.clipping is not None:
        overrides["clipping_mode"] = CLIPPING_MAP[args.clipping]
    if args.black_point is not None:
        overrides["black_point"] = args.black_point
        overrides["linked"] = True
    if args.black_rgb is not None:
        overrides["black_r"], overrides["black_g"], overrides["black_b"] = args.black_rgb
        overrides["linked"] = False
    if args.unlinked:
        overrides["linked"] = False

    params = dataclasses.replace(params, **overrides) if overrides else params
    return params.clamped(PARAMETER_RANGES)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns 0 on success, 1 on failure."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.unlinked and not args.auto_black:
        parser.error("--unlinked requires --auto-black")

    setup_logging(logging.DEBUG if args.verbose else getattr(logging, APP_CONFIG.log_level, logging.INFO))

    files = discover_files(args.inputs)
    if not files:
        print("Error: No supported image files found.", file=sys.stderr)
        return 1

    try:
        params = build_parameters(args)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: Invalid settings: {e}", file=sys.stderr)
        return 1

    sink = TiffImageSink(os.path.abspath(args.output or APP_CONFIG.default_export_dir))
    executor = FullResolutionExecutor()

    failures = 0
    for i, path in enumerate(files, start=1):
        print(f"[{i}/{len(files)}] {os.path.basename(path)}", file=sys.stderr)
        try:
            img = load_image(path)
            file_params = params
            if args.auto_black:
                file_params = auto_black_point(ArrayImageSource(img), params)
            out_path = executor.execute_to_sink(img, file_params, sink, path)
            print(f"  -> {out_path}", file=sys.stderr)
        except (LuptonError, OSError, ValueError) as e:
            failures += 1
            print(f"  Error: {e}", file=sys.stderr)

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
