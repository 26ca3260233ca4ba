"""Rectangle density controls component."""

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QCheckBox, QComboBox, QVBoxLayout, QWidget

from models import OutputFormat, RectanglifyConfig
from ui.widgets import WidgetFactory

# Slider range; the spin box accepts anything up to DENSITY_MAX
SLIDER_MIN = 0.0001
SLIDER_MAX = 10.0
DENSITY_MAX = 1000.0


class DensityControlsWidget(QWidget):
    """Controls for the rectanglify effect.

    This component provides UI controls for:
    - Density (rectangles per unit of darkness), as a log slider plus spin box
    - Output pixel layout
    - Whether saving also writes an SVG
    """

    # Signal emitted when any control value changes
    config_changed = pyqtSignal()
    density_changed = pyqtSignal(float)

    def __init__(self, config: RectanglifyConfig, parent=None):
        """Initialize density controls.

        Args:
            config: Shared config (modified directly by this widget)
            parent: Parent widget
        """
        super().__init__(parent)
        self.config = config
        self._syncing = False
        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self):
        """Create and layout UI controls."""
        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)

        self.density_slider, self.density_scale = WidgetFactory.create_log_slider(
            value_min=SLIDER_MIN,
            value_max=SLIDER_MAX,
            value=self.config.rects_per_pixel,
            tooltip="Rectangles drawn per fully black pixel's worth of darkness",
        )
        self.density_spin = WidgetFactory.create_double_spinbox(
            range_min=0.0,
            range_max=DENSITY_MAX,
            value=self.config.rects_per_pixel,
            tooltip="Rectangles per unit of darkness",
        )
        density_row = WidgetFactory.create_labeled_row("Density:", self.density_slider)
        density_row.addWidget(self.density_spin)
        layout.addLayout(density_row)

        self.format_combo = QComboBox()
        self.format_combo.addItems([fmt.value.upper() for fmt in OutputFormat])
        self.format_combo.setCurrentIndex(list(OutputFormat).index(self.config.output_format))
        layout.addLayout(WidgetFactory.create_labeled_row("Output:", self.format_combo, True))

        self.svg_check = QCheckBox("Also save as SVG")
        self.svg_check.setChecked(self.config.export_svg)
        layout.addWidget(self.svg_check)

        self.setLayout(layout)

    def _connect_signals(self):
        """Connect widget signals to config updates."""
        self.density_slider.valueChanged.connect(self._on_slider_changed)
        self.density_spin.valueChanged.connect(self._on_spin_changed)
        self.format_combo.currentIndexChanged.connect(
            lambda i: self._update_config("output_format", list(OutputFormat)[i])
        )
        self.svg_check.toggled.connect(lambda v: self._update_config("export_svg", v))

    def _on_slider_changed(self, position: int):
        """Handle slider movement, mirroring the value into the spin box."""
        if self._syncing:
            return
        self._set_density(self.density_scale.to_value(position))

    def _on_spin_changed(self, value: float):
        """Handle typed density, moving the slider to match."""
        if self._syncing:
            return
        self._set_density(value)

    def _set_density(self, value: float):
        self._syncing = True
        try:
            self.density_spin.setValue(value)
            self.density_slider.setValue(self.density_scale.to_position(value))
        finally:
            self._syncing = False

        self.config.rects_per_pixel = self.density_spin.value()
        self.density_changed.emit(self.config.rects_per_pixel)
        self.config_changed.emit()

    def _update_config(self, attr: str, value):
        """Update config attribute and emit signal.

        Args:
            attr: Config attribute name
            value: New value
        """
        setattr(self.config, attr, value)
        self.config_changed.emit()
