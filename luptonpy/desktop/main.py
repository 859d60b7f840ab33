import os

# Numba TBB refuses to fork from a non-main thread
os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

import sys
import logging
from typing import Optional, List
from PyQt6.QtWidgets import QApplication

from luptonpy.core.performance import clear_perf_log
from luptonpy.desktop.controller import AppController
from luptonpy.desktop.session import AppState
from luptonpy.desktop.view.main_window import MainWindow
from luptonpy.kernel.system.config import APP_CONFIG, BASE_USER_DIR
from luptonpy.kernel.system.logging import setup_logging


def _bootstrap_environment() -> None:
    """Ensure user directories exist."""
    for d in (BASE_USER_DIR, APP_CONFIG.cache_dir, APP_CONFIG.default_export_dir):
        os.makedirs(d, exist_ok=True)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Desktop entry point. An optional image path opens on startup.
    """
    argv = list(sys.argv if argv is None else argv)
    setup_logging(level=getattr(logging, APP_CONFIG.log_level.upper(), logging.INFO))
    _bootstrap_environment()
    if APP_CONFIG.perf_log_enabled:
        clear_perf_log()

    app = QApplication(argv)
    app.setApplicationName("LuptonPy")
    app.setStyle("Fusion")

    controller = AppController(AppState())
    window = MainWindow(controller)
    window.show()

    if len(argv) > 1 and os.path.isfile(argv[1]):
        window.open_file(argv[1])

    # Handle graceful exit
    exit_code = app.exec()
    controller.cleanup()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
