"""UI components for the rectanglify preview.

This package contains the preview window and its control widgets.
"""

from ui.main_window import PreviewWindow

__all__ = ["PreviewWindow"]
