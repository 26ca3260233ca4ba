"""Preview window: live rectanglify preview with a density control."""

import logging
from pathlib import Path
from typing import Optional

from PIL import Image
from PIL.ImageQt import ImageQt
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QPixmap
from PyQt6.QtWidgets import (
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from config_manager import ConfigManager
from frame_filter import (
    SUPPORTED_FORMATS,
    FrameCaps,
    FrameWorker,
    NegotiationError,
    RectanglifyFilter,
    VideoFrame,
    VideoInfo,
)
from models import RectanglifyResult
from rectanglify import PixelFormat, RectanglifyProcessor, separator_lines_to_svg
from rectanglify.utils import (
    gray16_to_gray8,
    image_to_raster,
    pixel_format_for,
    raster_to_image,
)
from ui.components import DensityControlsWidget

logger = logging.getLogger(__name__)

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.tif *.tiff *.webp);;All Files (*)"


class PreviewWindow(QMainWindow):
    """Main application window: open an image, tune density, save."""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Rectanglify Preview")
        self.setMinimumSize(900, 600)

        # Application state
        self.config_manager = ConfigManager()
        self.config = self.config_manager.load()
        self.processor = RectanglifyProcessor(self.config)

        self.source_frame: Optional[VideoFrame] = None
        self.source_path: Optional[Path] = None
        self.output_image: Optional[Image.Image] = None
        self.last_result: Optional[RectanglifyResult] = None

        # Frame pipeline
        self.frame_filter = RectanglifyFilter(self.config.rects_per_pixel)
        self.worker = FrameWorker(self.frame_filter)

        self._setup_ui()
        self._connect_signals()
        self.worker.start()

    def _setup_ui(self):
        """Initialize the user interface."""
        self._create_toolbar()

        central = QWidget()
        layout = QHBoxLayout(central)

        self.preview_label = QLabel("Open an image to start")
        self.preview_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.preview_label.setMinimumSize(400, 300)
        self.preview_label.setStyleSheet("border: 1px solid gray; background-color: #2a2a2a;")
        layout.addWidget(self.preview_label, stretch=1)

        controls_group = QGroupBox("Rectangles")
        controls_layout = QVBoxLayout()
        self.density_controls = DensityControlsWidget(self.config)
        controls_layout.addWidget(self.density_controls)
        controls_layout.addStretch()
        controls_group.setLayout(controls_layout)
        controls_group.setMinimumWidth(280)
        layout.addWidget(controls_group)

        self.setCentralWidget(central)
        self.statusBar().showMessage("Ready")

    def _create_toolbar(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        self.open_action = QAction("Open...", self)
        self.open_action.setShortcut("Ctrl+O")
        toolbar.addAction(self.open_action)

        self.save_action = QAction("Save...", self)
        self.save_action.setShortcut("Ctrl+S")
        self.save_action.setEnabled(False)
        toolbar.addAction(self.save_action)

    def _connect_signals(self):
        self.open_action.triggered.connect(self._on_open)
        self.save_action.triggered.connect(self._on_save)

        self.density_controls.density_changed.connect(self._on_density_changed)
        self.density_controls.config_changed.connect(self._on_config_changed)

        self.frame_filter.frame_processed.connect(self._on_frame_processed)
        self.worker.frame_ready.connect(self._on_frame_ready)
        self.worker.error_occurred.connect(self._on_worker_error)

    # -------------------------------------------------------------
    # Frame pipeline
    # -------------------------------------------------------------

    def _renegotiate(self) -> bool:
        """Negotiate caps for the current source and output format."""
        if self.source_frame is None:
            return False

        info = self.source_frame.info
        output_format = pixel_format_for(self.config.output_format)
        try:
            self.frame_filter.negotiate(
                FrameCaps.fixed([info.format], info.width, info.height),
                FrameCaps.fixed([output_format], info.width, info.height),
            )
        except NegotiationError as e:
            self._show_error(f"Cannot process this image: {e}")
            return False
        return True

    def _submit(self):
        if self.source_frame is None:
            return
        self.worker.clear_queue()
        self.worker.submit_frame(self.source_frame)
        self.statusBar().showMessage("Rendering...")

    def _on_frame_processed(self, result: RectanglifyResult):
        self.last_result = result

    def _on_frame_ready(self, frame: VideoFrame):
        self.output_image = raster_to_image(frame.data, frame.info.format)
        self._show_preview(self.output_image)
        self.save_action.setEnabled(True)

        if self.last_result is not None:
            self.statusBar().showMessage(
                f"{self.last_result.num_rects} rectangles, "
                f"{len(self.last_result.lines)} lines"
            )

    def _on_worker_error(self, message: str):
        logger.error("%s", message)
        self.statusBar().showMessage(message)

    def _show_preview(self, image: Image.Image):
        pixmap = QPixmap.fromImage(ImageQt(image))
        self.preview_label.setPixmap(
            pixmap.scaled(
                self.preview_label.size(),
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
        )

    # -------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------

    def _on_open(self):
        file_path, _ = QFileDialog.getOpenFileName(self, "Open Image", "", IMAGE_FILTER)
        if not file_path:
            return

        try:
            image = self.processor.load_image(file_path)
        except ValueError as e:
            self._show_error(str(e))
            return

        raster, fmt = image_to_raster(image)
        if fmt not in SUPPORTED_FORMATS:
            raster, fmt = gray16_to_gray8(raster), PixelFormat.GRAY8

        height, width = raster.shape[:2]
        self.source_frame = VideoFrame(VideoInfo(fmt, width, height), raster)
        self.source_path = Path(file_path)
        self.setWindowTitle(f"Rectanglify Preview - {self.source_path.name}")

        if self._renegotiate():
            self._submit()

    def _on_save(self):
        if self.output_image is None:
            return

        default_name = ""
        if self.source_path is not None:
            default_name = str(self.source_path.with_name(f"{self.source_path.stem}_rects.png"))
        file_path, _ = QFileDialog.getSaveFileName(self, "Save Image", default_name, IMAGE_FILTER)
        if not file_path:
            return

        try:
            self.output_image.save(file_path)
            if self.config.export_svg and self.last_result is not None:
                content = separator_lines_to_svg(
                    self.last_result.lines, self.last_result.width, self.last_result.height
                )
                Path(file_path).with_suffix(".svg").write_text(content, encoding="utf-8")
        except (OSError, ValueError) as e:
            self._show_error(f"Failed to save: {e}")
            return

        self.statusBar().showMessage(f"Saved {file_path}")

    def _on_density_changed(self, value: float):
        self.frame_filter.rects_per_pixel = value
        self._submit()

    def _on_config_changed(self):
        # Density changes are handled by _on_density_changed
        if self.frame_filter.output_info is None:
            return
        if self.frame_filter.output_info.format is not pixel_format_for(self.config.output_format):
            if self._renegotiate():
                self._submit()

    def _show_error(self, message: str):
        logger.error("%s", message)
        QMessageBox.critical(self, "Error", message)

    def closeEvent(self, event):
        """Stop the worker and persist settings on close."""
        self.worker.stop()
        self.worker.wait()

        success, error = self.config_manager.save(self.config)
        if not success:
            logger.warning("Could not save config: %s", error)

        super().closeEvent(event)
