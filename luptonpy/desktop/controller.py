import os
from dataclasses import replace
from typing import Optional

import numpy as np
from PyQt6.QtCore import QObject, QThread, QTimer, pyqtSignal

from luptonpy.core.errors import LuptonError
from luptonpy.desktop.session import AppState, ToolMode
from luptonpy.desktop.workers.export import ExportTask, ExportWorker
from luptonpy.features.stretch.models import EngineParameters
from luptonpy.infrastructure.image_io import load_image
from luptonpy.infrastructure.sources import ArrayImageSource
from luptonpy.kernel.system.config import APP_CONFIG
from luptonpy.kernel.system.logging import get_logger
from luptonpy.services.rendering.preview_renderer import PreviewMode, PreviewRequest
from luptonpy.services.view.preview_session import CursorInfo, PreviewSession

logger = get_logger(__name__)


class AppController(QObject):
    """
    Bridges Qt widgets to the preview session and the export worker.
    """

    image_updated = pyqtSignal(object)  # RGB8 raster
    params_changed = pyqtSignal()
    view_changed = pyqtSignal()
    status_message = pyqtSignal(str)
    export_requested = pyqtSignal(ExportTask)
    export_started = pyqtSignal()
    export_finished = pyqtSignal(str)
    tool_sync_requested = pyqtSignal()

    def __init__(self, state: AppState):
        super().__init__()
        self.state = state
        self.preview = PreviewSession(raster_sink=self)

        # Trailing update so the last throttled change is always rendered
        self._flush_timer = QTimer(self)
        self._flush_timer.setSingleShot(True)
        self._flush_timer.setInterval(int(APP_CONFIG.preview_throttle_ms))
        self._flush_timer.timeout.connect(self._flush_preview)

        # Export Thread
        self.export_thread = QThread()
        self.export_worker = ExportWorker()
        self.export_worker.moveToThread(self.export_thread)
        self.export_thread.start()

        self._connect_signals()

    def _connect_signals(self) -> None:
        self.export_requested.connect(self.export_worker.run)
        self.export_worker.finished.connect(self._on_export_finished)
        self.export_worker.error.connect(self._on_export_error)

    @property
    def params(self) -> EngineParameters:
        return self.preview.params

    # --- Raster sink ---

    def show_raster(self, raster: np.ndarray) -> None:
        self.image_updated.emit(raster)
        self.view_changed.emit()

    # --- Files ---

    def load_file(self, file_path: str) -> None:
        try:
            img = load_image(file_path)
            self.preview.attach_source(ArrayImageSource(img))
        except (LuptonError, OSError, ValueError) as e:
            logger.error(f"Loading error: {e}")
            self.status_message.emit(f"Could not open {os.path.basename(file_path)}: {e}")
            return

        self.state.current_file_path = file_path
        self.state.source_image = img
        h, w = img.shape[:2]
        self.status_message.emit(f"{w} x {h} px | 32-bit")

    # --- Parameters ---

    def update_param(self, field: str, value: object) -> None:
        self.update_params(replace(self.preview.params, **{field: value}))

    def update_params(self, params: EngineParameters) -> None:
        self.preview.update_params(params)
        self._schedule_flush()

    def reset_parameters(self) -> None:
        self.preview.reset_parameters()
        self.params_changed.emit()

    def auto_black_point(self) -> None:
        self.preview.auto_black_point()
        self.params_changed.emit()

    def set_realtime(self, enabled: bool) -> None:
        self.preview.set_realtime(enabled)

    def set_active_tool(self, mode: ToolMode) -> None:
        self.state.active_tool = mode
        self.tool_sync_requested.emit()

    # --- Preview mode / viewport ---

    def set_preview_mode(self, mode: PreviewMode) -> None:
        self.preview.set_request(replace(self.preview.request, mode=mode))

    def set_split_position(self, position: float) -> None:
        self.preview.set_split_position(position)
        self._schedule_flush()

    def zoom_in(self) -> None:
        self.preview.handle_zoom_delta(1)

    def zoom_out(self) -> None:
        self.preview.handle_zoom_delta(-1)

    def fit_to_window(self) -> None:
        self.preview.fit_to_window()

    def handle_wheel(self, steps: int, x: float, y: float) -> None:
        self.preview.handle_zoom_delta(steps, x, y)

    def handle_drag(self, dx: float, dy: float) -> None:
        self.preview.handle_pan(dx, dy)
        self._schedule_flush()

    def handle_resize(self, width: int, height: int) -> None:
        self.preview.resize((width, height))

    def handle_canvas_clicked(self, x: float, y: float) -> None:
        if self.state.active_tool == ToolMode.SAMPLE_BLACK:
            self.preview.sample_black_point(x, y)
            self.state.active_tool = ToolMode.NONE
            self.tool_sync_requested.emit()
            self.params_changed.emit()

    def cursor_info(self, x: float, y: float) -> Optional[CursorInfo]:
        return self.preview.handle_pointer_move(x, y)

    # --- Export ---

    def request_export(self) -> None:
        if self.state.source_image is None or not self.state.current_file_path:
            self.status_message.emit("No target image selected.")
            return

        task = ExportTask(
            image=self.state.source_image,
            params=self.preview.params,
            source_name=self.state.current_file_path,
            output_dir=self.state.export_dir
            or os.path.dirname(os.path.abspath(self.state.current_file_path)),
        )
        self.state.is_processing = True
        self.export_started.emit()
        self.export_requested.emit(task)

    def _on_export_finished(self, path: str, elapsed: float) -> None:
        self.state.is_processing = False
        self.status_message.emit(f"Applied successfully in {elapsed:.2f}s: {path}")
        self.export_finished.emit(path)

    def _on_export_error(self, message: str) -> None:
        self.state.is_processing = False
        logger.error(f"Export Error: {message}")
        self.status_message.emit(f"Error during processing: {message}")
        self.export_finished.emit("")

    # --- Internals ---

    def _schedule_flush(self) -> None:
        if self.preview.scheduler.pending:
            self._flush_timer.start()

    def _flush_preview(self) -> None:
        self.preview.flush()

    def cleanup(self) -> None:
        self._flush_timer.stop()
        self.export_thread.quit()
        self.export_thread.wait()
