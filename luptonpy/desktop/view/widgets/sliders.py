from PyQt6.QtWidgets import QWidget, QHBoxLayout, QLabel, QSlider
from PyQt6.QtCore import Qt, pyqtSignal
from luptonpy.desktop.view.styles.theme import THEME


class SignalSlider(QWidget):
    """
    Labelled float slider mapping a [min, max] range onto integer steps.
    """

    valueChanged = pyqtSignal(float)

    def __init__(
        self,
        label: str,
        min_val: float,
        max_val: float,
        value: float,
        precision: int = 2,
        steps: int = THEME.slider_steps,
        parent=None,
    ):
        super().__init__(parent)
        self._min = min_val
        self._max = max_val
        self._steps = steps
        self._precision = precision

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        self.label = QLabel(label)
        self.label.setFixedWidth(90)
        self.label.setStyleSheet(f"font-size: {THEME.font_size_base}px;")

        self.slider = QSlider(Qt.Orientation.Horizontal)
        self.slider.setRange(0, steps)
        self.slider.setMinimumWidth(150)

        self.value_label = QLabel()
        self.value_label.setFixedWidth(55)
        self.value_label.setAlignment(Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter)

        layout.addWidget(self.label)
        layout.addWidget(self.slider, stretch=1)
        layout.addWidget(self.value_label)

        self.setValue(value)
        self.slider.valueChanged.connect(self._on_slider_changed)

    def value(self) -> float:
        return self._to_value(self.slider.value())

    def setValue(self, value: float) -> None:
        """Sets the value without emitting valueChanged."""
        self.slider.blockSignals(True)
        self.slider.setValue(self._to_step(value))
        self.slider.blockSignals(False)
        self._update_label(value)

    def _to_step(self, value: float) -> int:
        span = self._max - self._min
        ratio = (min(self._max, max(self._min, value)) - self._min) / span
        return int(round(ratio * self._steps))

    def _to_value(self, step: int) -> float:
        return self._min + (self._max - self._min) * step / self._steps

    def _update_label(self, value: float) -> None:
        self.value_label.setText(f"{value:.{self._precision}f}")

    def _on_slider_changed(self, step: int) -> None:
        val = self._to_value(step)
        self._update_label(val)
        self.valueChanged.emit(val)
