from dataclasses import replace
from PyQt6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QPushButton,
    QComboBox,
    QCheckBox,
    QLabel,
    QGroupBox,
)
from luptonpy.desktop.controller import AppController
from luptonpy.desktop.session import ToolMode
from luptonpy.desktop.view.styles.theme import THEME
from luptonpy.desktop.view.widgets.sliders import SignalSlider
from luptonpy.features.stretch.models import ClippingMode
from luptonpy.kernel.system.config import PARAMETER_RANGES


class StretchSidebar(QWidget):
    """
    Stretch, black point and color controls.
    """

    def __init__(self, controller: AppController):
        super().__init__()
        self.controller = controller
        self.setFixedWidth(THEME.sidebar_width)

        self._init_ui()
        self._connect_signals()
        self.sync_ui()

    def _slider(self, label: str, field: str, precision: int = 2) -> SignalSlider:
        lo, hi = PARAMETER_RANGES[field]
        return SignalSlider(label, lo, hi, getattr(self.controller.params, field), precision)

    def _init_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(8)

        # 1. Stretch
        stretch_group = QGroupBox("Stretch Parameters")
        stretch_layout = QVBoxLayout(stretch_group)
        self.alpha_slider = self._slider("Stretch (α):", "alpha")
        self.q_slider = self._slider("Q (softening):", "q")
        q_help = QLabel("Lower Q = earlier log transition")
        q_help.setStyleSheet(f"color: {THEME.text_secondary}; font-size: {THEME.font_size_small}px;")
        stretch_layout.addWidget(self.alpha_slider)
        stretch_layout.addWidget(self.q_slider)
        stretch_layout.addWidget(q_help)
        layout.addWidget(stretch_group)

        # 2. Black Point
        black_group = QGroupBox("Black Point")
        black_layout = QVBoxLayout(black_group)
        self.linked_check = QCheckBox("Link RGB channels")
        self.black_slider = self._slider("Black Point:", "black_point", 4)
        self.black_r_slider = self._slider("Black (R):", "black_r", 4)
        self.black_g_slider = self._slider("Black (G):", "black_g", 4)
        self.black_b_slider = self._slider("Black (B):", "black_b", 4)

        btn_row = QHBoxLayout()
        self.auto_black_btn = QPushButton("Auto")
        self.sample_black_btn = QPushButton("Sample")
        self.sample_black_btn.setCheckable(True)
        btn_row.addStretch()
        btn_row.addWidget(self.auto_black_btn)
        btn_row.addWidget(self.sample_black_btn)

        black_layout.addWidget(self.linked_check)
        black_layout.addWidget(self.black_slider)
        black_layout.addWidget(self.black_r_slider)
        black_layout.addWidget(self.black_g_slider)
        black_layout.addWidget(self.black_b_slider)
        black_layout.addLayout(btn_row)
        layout.addWidget(black_group)

        # 3. Color
        color_group = QGroupBox("Color Options")
        color_layout = QVBoxLayout(color_group)
        self.saturation_slider = self._slider("Saturation:", "saturation")
        self.clipping_combo = QComboBox()
        self.clipping_combo.addItems(["Preserve Color (Lupton)", "Hard Clip", "Rescale to Max"])
        clip_row = QHBoxLayout()
        clip_row.addWidget(QLabel("Clipping:"))
        clip_row.addWidget(self.clipping_combo, stretch=1)
        color_layout.addWidget(self.saturation_slider)
        color_layout.addLayout(clip_row)
        layout.addWidget(color_group)

        layout.addStretch()

        # 4. Actions
        action_row = QHBoxLayout()
        self.reset_btn = QPushButton("Reset")
        self.apply_btn = QPushButton("Apply")
        self.apply_btn.setStyleSheet(f"background-color: {THEME.accent_primary}; font-weight: bold;")
        action_row.addStretch()
        action_row.addWidget(self.reset_btn)
        action_row.addWidget(self.apply_btn)
        layout.addLayout(action_row)

    def _connect_signals(self) -> None:
        update = self.controller.update_param
        self.alpha_slider.valueChanged.connect(lambda v: update("alpha", v))
        self.q_slider.valueChanged.connect(lambda v: update("q", v))
        self.black_slider.valueChanged.connect(lambda v: update("black_point", v))
        self.black_r_slider.valueChanged.connect(lambda v: update("black_r", v))
        self.black_g_slider.valueChanged.connect(lambda v: update("black_g", v))
        self.black_b_slider.valueChanged.connect(lambda v: update("black_b", v))
        self.saturation_slider.valueChanged.connect(lambda v: update("saturation", v))
        self.linked_check.toggled.connect(self._on_linked_toggled)
        self.clipping_combo.currentIndexChanged.connect(
            lambda i: update("clipping_mode", ClippingMode(i))
        )

        self.auto_black_btn.clicked.connect(self.controller.auto_black_point)
        self.sample_black_btn.toggled.connect(self._on_sample_toggled)
        self.reset_btn.clicked.connect(self.controller.reset_parameters)
        self.apply_btn.clicked.connect(self._on_apply)

        self.controller.params_changed.connect(self.sync_ui)
        self.controller.tool_sync_requested.connect(self._sync_tool)
        self.controller.export_finished.connect(lambda _path: self.apply_btn.setEnabled(True))

    def _on_linked_toggled(self, checked: bool) -> None:
        self.controller.update_params(replace(self.controller.params, linked=checked))
        self._sync_black_visibility(checked)

    def _on_sample_toggled(self, checked: bool) -> None:
        self.controller.set_active_tool(ToolMode.SAMPLE_BLACK if checked else ToolMode.NONE)

    def _on_apply(self) -> None:
        self.apply_btn.setEnabled(False)
        self.controller.request_export()
        if not self.controller.state.is_processing:
            self.apply_btn.setEnabled(True)

    def _sync_tool(self) -> None:
        self.sample_black_btn.blockSignals(True)
        self.sample_black_btn.setChecked(self.controller.state.active_tool == ToolMode.SAMPLE_BLACK)
        self.sample_black_btn.blockSignals(False)

    def _sync_black_visibility(self, linked: bool) -> None:
        self.black_slider.setVisible(linked)
        self.black_r_slider.setVisible(not linked)
        self.black_g_slider.setVisible(not linked)
        self.black_b_slider.setVisible(not linked)

    def sync_ui(self) -> None:
        """
        Updates widgets from the current parameters.
        """
        p = self.controller.params
        self.alpha_slider.setValue(p.alpha)
        self.q_slider.setValue(p.q)
        self.black_slider.setValue(p.black_point)
        self.black_r_slider.setValue(p.black_r)
        self.black_g_slider.setValue(p.black_g)
        self.black_b_slider.setValue(p.black_b)
        self.saturation_slider.setValue(p.saturation)

        self.linked_check.blockSignals(True)
        self.clipping_combo.blockSignals(True)
        try:
            self.linked_check.setChecked(p.linked)
            self.clipping_combo.setCurrentIndex(int(p.clipping_mode))
        finally:
            self.linked_check.blockSignals(False)
            self.clipping_combo.blockSignals(False)

        self._sync_black_visibility(p.linked)
