"""Widget factory for the controls used by the preview window."""

import math
from typing import Tuple

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QDoubleSpinBox, QHBoxLayout, QLabel, QSlider, QWidget


class WidgetFactory:
    """Factory class for creating commonly used widget patterns."""

    @staticmethod
    def create_double_spinbox(
        range_min: float,
        range_max: float,
        value: float,
        decimals: int = 4,
        step: float = 0.01,
        tooltip: str = "",
    ) -> QDoubleSpinBox:
        """Create a configured QDoubleSpinBox.

        Args:
            range_min: Minimum value
            range_max: Maximum value
            value: Initial value
            decimals: Number of decimal places
            step: Single step increment
            tooltip: Tooltip text

        Returns:
            Configured QDoubleSpinBox
        """
        spinbox = QDoubleSpinBox()
        spinbox.setDecimals(decimals)
        spinbox.setRange(range_min, range_max)
        spinbox.setValue(value)
        spinbox.setSingleStep(step)
        if tooltip:
            spinbox.setToolTip(tooltip)
        return spinbox

    @staticmethod
    def create_log_slider(
        value_min: float,
        value_max: float,
        value: float,
        steps: int = 1000,
        tooltip: str = "",
    ) -> Tuple[QSlider, "LogScale"]:
        """Create a horizontal slider moving over a logarithmic value range.

        Args:
            value_min: Smallest value (must be > 0)
            value_max: Largest value
            value: Initial value
            steps: Slider resolution
            tooltip: Tooltip text

        Returns:
            Tuple of (slider, scale converting slider positions to values)
        """
        scale = LogScale(value_min, value_max, steps)
        slider = QSlider(Qt.Orientation.Horizontal)
        slider.setRange(0, steps)
        slider.setValue(scale.to_position(value))
        if tooltip:
            slider.setToolTip(tooltip)
        return slider, scale

    @staticmethod
    def create_labeled_row(
        label_text: str,
        widget: QWidget,
        stretch_after: bool = False,
    ) -> QHBoxLayout:
        """Create a horizontal layout with label and widget.

        Args:
            label_text: Text for the label
            widget: Widget to place after label
            stretch_after: Whether to add stretch after widget

        Returns:
            QHBoxLayout with label and widget
        """
        layout = QHBoxLayout()
        layout.addWidget(QLabel(label_text))
        layout.addWidget(widget)
        if stretch_after:
            layout.addStretch()
        return layout


class LogScale:
    """Maps integer slider positions onto a logarithmic value range."""

    def __init__(self, value_min: float, value_max: float, steps: int):
        self.log_min = math.log10(value_min)
        self.log_max = math.log10(value_max)
        self.steps = steps

    def to_value(self, position: int) -> float:
        fraction = position / self.steps
        return 10 ** (self.log_min + fraction * (self.log_max - self.log_min))

    def to_position(self, value: float) -> int:
        if value <= 0:
            return 0
        fraction = (math.log10(value) - self.log_min) / (self.log_max - self.log_min)
        return int(round(min(max(fraction, 0.0), 1.0) * self.steps))
