from PyQt6.QtWidgets import (
    QWidget,
    QHBoxLayout,
    QVBoxLayout,
    QPushButton,
    QToolButton,
    QCheckBox,
    QLabel,
    QSlider,
)
from PyQt6.QtCore import Qt
from luptonpy.desktop.controller import AppController
from luptonpy.kernel.system.config import PARAMETER_RANGES
from luptonpy.services.rendering.preview_renderer import PreviewMode


class PreviewToolbar(QWidget):
    """
    Preview controls: real-time toggle, Before/Split/After, zoom and split position.
    """

    def __init__(self, controller: AppController):
        super().__init__()
        self.controller = controller

        self._init_ui()
        self._connect_signals()
        self.sync_ui()

    def _init_ui(self) -> None:
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(6, 6, 6, 6)
        main_layout.setSpacing(6)

        row = QHBoxLayout()
        self.realtime_check = QCheckBox("Real-Time Preview")
        self.realtime_check.setChecked(True)
        row.addWidget(self.realtime_check)
        row.addStretch()

        self.mode_buttons = {}
        for mode, text in (
            (PreviewMode.BEFORE, "Before"),
            (PreviewMode.SPLIT, "Split"),
            (PreviewMode.AFTER, "After"),
        ):
            btn = QPushButton(text)
            btn.setCheckable(True)
            btn.setFixedWidth(60)
            self.mode_buttons[mode] = btn
            row.addWidget(btn)

        row.addSpacing(10)
        self.btn_zoom_out = QToolButton()
        self.btn_zoom_out.setText("-")
        self.zoom_label = QLabel("Fit")
        self.zoom_label.setFixedWidth(40)
        self.zoom_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.btn_zoom_in = QToolButton()
        self.btn_zoom_in.setText("+")
        self.btn_fit = QPushButton("Fit")
        self.btn_fit.setFixedWidth(40)

        row.addWidget(self.btn_zoom_out)
        row.addWidget(self.zoom_label)
        row.addWidget(self.btn_zoom_in)
        row.addWidget(self.btn_fit)
        main_layout.addLayout(row)

        self.split_row = QWidget()
        split_layout = QHBoxLayout(self.split_row)
        split_layout.setContentsMargins(0, 0, 0, 0)
        split_layout.addWidget(QLabel("Split:"))
        lo, hi = PARAMETER_RANGES["split_position"]
        self.split_slider = QSlider(Qt.Orientation.Horizontal)
        self.split_slider.setRange(int(lo), int(hi))
        self.split_slider.setValue(int(self.controller.preview.request.split_position))
        split_layout.addWidget(self.split_slider, stretch=1)
        main_layout.addWidget(self.split_row)

    def _connect_signals(self) -> None:
        self.realtime_check.toggled.connect(self.controller.set_realtime)
        for mode, btn in self.mode_buttons.items():
            btn.clicked.connect(lambda _checked, m=mode: self._on_mode_clicked(m))
        self.btn_zoom_in.clicked.connect(self.controller.zoom_in)
        self.btn_zoom_out.clicked.connect(self.controller.zoom_out)
        self.btn_fit.clicked.connect(self.controller.fit_to_window)
        self.split_slider.valueChanged.connect(
            lambda v: self.controller.set_split_position(float(v))
        )
        self.controller.view_changed.connect(self.sync_ui)

    def _on_mode_clicked(self, mode: PreviewMode) -> None:
        self.controller.set_preview_mode(mode)
        self.sync_ui()

    def sync_ui(self) -> None:
        mode = self.controller.preview.request.mode
        for m, btn in self.mode_buttons.items():
            btn.setChecked(m == mode)
        self.split_row.setVisible(mode == PreviewMode.SPLIT)

        viewport = self.controller.preview.viewport
        self.zoom_label.setText(viewport.zoom_label if viewport else "Fit")
