import os
from typing import Optional
from PyQt6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QDockWidget,
    QScrollArea,
    QStatusBar,
    QLabel,
    QFileDialog,
)
from PyQt6.QtGui import QAction
from PyQt6.QtCore import Qt

from luptonpy.desktop.controller import AppController
from luptonpy.desktop.view.canvas.widget import PreviewCanvas
from luptonpy.desktop.view.canvas.toolbar import PreviewToolbar
from luptonpy.desktop.view.sidebar.stretch import StretchSidebar
from luptonpy.desktop.view.keyboard_shortcuts import setup_keyboard_shortcuts
from luptonpy.infrastructure.image_io import SUPPORTED_EXTENSIONS
from luptonpy.services.view.preview_session import CursorInfo


class MainWindow(QMainWindow):
    """
    Main application window hosting the preview canvas and the stretch controls.
    """

    def __init__(self, controller: AppController):
        super().__init__()
        self.controller = controller
        self.state = controller.state

        self.setWindowTitle("LuptonPy")
        self.resize(1280, 860)

        self._init_ui()
        self._connect_signals()
        setup_keyboard_shortcuts(self)

    def _init_ui(self) -> None:
        """Setup widgets and layout."""
        self.central_widget = QWidget()
        self.central_layout = QVBoxLayout(self.central_widget)
        self.central_layout.setContentsMargins(0, 0, 0, 0)
        self.central_layout.setSpacing(0)

        self.toolbar = PreviewToolbar(self.controller)
        self.canvas = PreviewCanvas(self.controller)

        self.central_layout.addWidget(self.toolbar)
        self.central_layout.addWidget(self.canvas, stretch=1)
        self.setCentralWidget(self.central_widget)

        self.drawer = QDockWidget("Controls", self)
        self.drawer.setAllowedAreas(
            Qt.DockWidgetArea.LeftDockWidgetArea | Qt.DockWidgetArea.RightDockWidgetArea
        )
        self.scroll = QScrollArea()
        self.scroll.setWidgetResizable(True)
        self.scroll.setStyleSheet("QScrollArea { border: none; }")
        self.sidebar = StretchSidebar(self.controller)
        self.scroll.setWidget(self.sidebar)
        self.drawer.setWidget(self.scroll)
        self.addDockWidget(Qt.DockWidgetArea.LeftDockWidgetArea, self.drawer)

        # Status bar: cursor | image size | preview time
        self.setStatusBar(QStatusBar())
        self.cursor_label = QLabel("")
        self.size_label = QLabel("No image")
        self.timing_label = QLabel("")
        self.statusBar().addWidget(self.cursor_label, 1)
        self.statusBar().addPermanentWidget(self.size_label)
        self.statusBar().addPermanentWidget(self.timing_label)

        file_menu = self.menuBar().addMenu("&File")
        self.open_action = QAction("&Open...", self)
        self.open_action.setShortcut("Ctrl+O")
        file_menu.addAction(self.open_action)
        self.apply_action = QAction("&Apply to Full Image", self)
        self.apply_action.setShortcut("Ctrl+E")
        file_menu.addAction(self.apply_action)
        file_menu.addSeparator()
        quit_action = QAction("&Quit", self)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

    def _connect_signals(self) -> None:
        """Wire controller and view."""
        self.open_action.triggered.connect(self.open_file_dialog)
        self.apply_action.triggered.connect(self.controller.request_export)

        self.controller.image_updated.connect(self._on_image_updated)
        self.controller.status_message.connect(self._on_status_message)
        self.canvas.cursor_moved.connect(self._on_cursor_moved)

    def open_file_dialog(self) -> None:
        patterns = " ".join(f"*{ext}" for ext in SUPPORTED_EXTENSIONS)
        start_dir = (
            os.path.dirname(self.state.current_file_path) if self.state.current_file_path else ""
        )
        path, _ = QFileDialog.getOpenFileName(
            self, "Open Image", start_dir, f"Images ({patterns})"
        )
        if path:
            self.open_file(path)

    def open_file(self, path: str) -> None:
        self.controller.load_file(path)
        if self.state.source_image is not None:
            h, w = self.state.source_image.shape[:2]
            self.size_label.setText(f"{w} x {h}")
            self.setWindowTitle(f"LuptonPy - {os.path.basename(path)}")

    def _on_image_updated(self, raster) -> None:
        """Refreshes canvas when a new render pass completes."""
        self.canvas.update_buffer(raster)
        elapsed = self.controller.preview.last_render_seconds
        self.timing_label.setText(f"Preview: {elapsed * 1000:.0f} ms")

    def _on_cursor_moved(self, info: Optional[CursorInfo]) -> None:
        if info is None:
            self.cursor_label.setText("")
            return
        self.cursor_label.setText(
            f"X: {info.x}  Y: {info.y}  R: {info.r:.5f}  G: {info.g:.5f}  B: {info.b:.5f}"
        )

    def _on_status_message(self, message: str) -> None:
        self.statusBar().showMessage(message, 5000)
