"""Rectanglify Preview - Main entry point."""

import logging
import os
import sys

from PyQt6.QtWidgets import QApplication

from ui.main_window import PreviewWindow


def main():
    """Launch the rectanglify preview application."""
    level_name = os.environ.get("RECTANGLIFY_LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)

    app.setApplicationDisplayName("Rectanglify Preview")
    app.setApplicationName("RectanglifyPreview")

    window = PreviewWindow()
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
