"""UI components package for modular control widgets."""

from ui.components.density_controls import DensityControlsWidget

__all__ = ["DensityControlsWidget"]
