import logging

import numpy as np

import luptonpy
from luptonpy.core.performance import time_function
from luptonpy.kernel.system.config import APP_CONFIG, PARAMETER_RANGES
from luptonpy.kernel.system.logging import get_logger, setup_logging


def test_version():
    assert isinstance(luptonpy.__version__, str)
    assert luptonpy.__version__.count(".") == 2


def test_get_logger_namespacing():
    assert get_logger().name == "luptonpy"
    assert get_logger("perf").name == "luptonpy.perf"
    assert get_logger("luptonpy.services.view").name == "luptonpy.services.view"


def test_setup_logging_idempotent():
    logger = setup_logging(logging.INFO)
    handlers = list(logger.handlers)
    assert setup_logging(logging.DEBUG) is logger
    assert logger.handlers == handlers
    assert logger.level == logging.DEBUG


def test_time_function_passthrough(caplog):
    @time_function
    def double(img):
        return img * 2

    with caplog.at_level(logging.DEBUG, logger="luptonpy"):
        out = double(np.ones((2, 3)))
    assert out.sum() == 12
    assert double.__name__ == "double"
    assert any("PERF: double" in r.message for r in caplog.records)


def test_config_defaults():
    assert APP_CONFIG.preview_throttle_ms == 80.0
    assert APP_CONFIG.preview_skip_bound == 4
    assert APP_CONFIG.before_stretch_factor == 10.0
    assert APP_CONFIG.output_suffix == "_lupton"
    assert PARAMETER_RANGES["alpha"] == (0.1, 50.0)
    assert PARAMETER_RANGES["q"] == (0.1, 30.0)
