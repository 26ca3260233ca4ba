"""Video frame filter running rectanglify on every frame of a stream.

AIDEV-NOTE: RectanglifyFilter is the streaming adapter: it owns the Settings,
negotiates formats with its peers and calls the core once per frame.
FrameWorker runs that filter on a background thread so a host (the preview
window) never blocks on a frame.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from PyQt6.QtCore import QMutex, QMutexLocker, QObject, QThread, pyqtProperty, pyqtSignal

from models import DEFAULT_RECTS_PER_PIXEL, RectanglifyResult, Settings, validate_rects_per_pixel
from rectanglify import PixelFormat, rectanglify
from rectanglify.utils import new_raster

logger = logging.getLogger(__name__)

MAX_DIMENSION = 2**31 - 1

SUPPORTED_FORMATS = (
    PixelFormat.GRAY8,
    PixelFormat.RGB,
    PixelFormat.BGR,
    PixelFormat.RGBA,
    PixelFormat.BGRA,
)


class NegotiationError(ValueError):
    """Peers could not agree on a format or resolution."""


def _intersect_range(a: tuple[float, float], b: tuple[float, float]):
    low, high = max(a[0], b[0]), min(a[1], b[1])
    if low > high:
        return None
    return (low, high)


@dataclass(frozen=True)
class FrameCaps:
    """Formats and size ranges a pad can handle, in order of preference."""

    formats: tuple[PixelFormat, ...] = SUPPORTED_FORMATS
    width_range: tuple[int, int] = (1, MAX_DIMENSION)
    height_range: tuple[int, int] = (1, MAX_DIMENSION)
    framerate_range: tuple[float, float] = (0.0, float(MAX_DIMENSION))

    @classmethod
    def fixed(
        cls,
        formats: Sequence[PixelFormat],
        width: int,
        height: int,
        framerate: float = 0.0,
    ) -> "FrameCaps":
        """Caps describing a single resolution and framerate."""
        return cls(
            formats=tuple(formats),
            width_range=(width, width),
            height_range=(height, height),
            framerate_range=(framerate, framerate),
        )

    def intersect(self, other: "FrameCaps") -> "FrameCaps | None":
        """Caps acceptable to both sides, keeping this side's format order."""
        formats = tuple(fmt for fmt in self.formats if fmt in other.formats)
        width = _intersect_range(self.width_range, other.width_range)
        height = _intersect_range(self.height_range, other.height_range)
        framerate = _intersect_range(self.framerate_range, other.framerate_range)
        if not formats or width is None or height is None or framerate is None:
            return None
        return FrameCaps(formats, width, height, framerate)

    def fixate(self) -> "VideoInfo":
        """Pick the preferred format and the lowest value of every range."""
        return VideoInfo(
            format=self.formats[0],
            width=int(self.width_range[0]),
            height=int(self.height_range[0]),
            framerate=float(self.framerate_range[0]),
        )


@dataclass(frozen=True)
class VideoInfo:
    """Negotiated layout of the frames on one pad."""

    format: PixelFormat
    width: int
    height: int
    framerate: float = 0.0

    def matches(self, frame: "VideoFrame") -> bool:
        info = frame.info
        return (
            info.format is self.format
            and info.width == self.width
            and info.height == self.height
        )


@dataclass
class VideoFrame:
    """A frame buffer viewed as a numpy raster."""

    info: VideoInfo
    data: np.ndarray

    @classmethod
    def allocate(cls, info: VideoInfo) -> "VideoFrame":
        return cls(info, new_raster(info.format, info.width, info.height))

    @classmethod
    def from_buffer(cls, info: VideoInfo, buffer) -> "VideoFrame":
        """Wrap a raw buffer (bytes, bytearray, memoryview) without copying.

        Raises:
            ValueError: If the buffer size does not match info
        """
        shape = info.format.shape(info.width, info.height)
        data = np.frombuffer(buffer, dtype=info.format.dtype)
        if data.size != int(np.prod(shape)):
            raise ValueError(
                f"Buffer holds {data.size} values, expected {int(np.prod(shape))} "
                f"for {info.width}x{info.height} {info.format.label}"
            )
        return cls(info, data.reshape(shape))


class RectanglifyFilter(QObject):
    """Streaming element: rectanglifies each frame passing through it."""

    settings_changed = pyqtSignal(float)
    frame_processed = pyqtSignal(object)  # RectanglifyResult

    def __init__(self, rects_per_pixel: float = DEFAULT_RECTS_PER_PIXEL, parent=None):
        super().__init__(parent)
        self._settings = Settings(rects_per_pixel=validate_rects_per_pixel(rects_per_pixel))
        self._settings_lock = QMutex()

        self.input_info: Optional[VideoInfo] = None
        self.output_info: Optional[VideoInfo] = None

    # -------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------

    def get_rects_per_pixel(self) -> float:
        with QMutexLocker(self._settings_lock):
            return self._settings.rects_per_pixel

    def set_rects_per_pixel(self, value: float):
        value = validate_rects_per_pixel(value)
        with QMutexLocker(self._settings_lock):
            previous = self._settings.rects_per_pixel
            self._settings = Settings(rects_per_pixel=value)
        logger.info("Changing rects-per-pixel from %s to %s", previous, value)
        self.settings_changed.emit(value)

    # Mutable while frames are flowing; each frame reads it once.
    rects_per_pixel = pyqtProperty(
        float, fget=get_rects_per_pixel, fset=set_rects_per_pixel, notify=settings_changed
    )

    def snapshot(self) -> Settings:
        """Settings to use for one frame."""
        with QMutexLocker(self._settings_lock):
            return self._settings

    # -------------------------------------------------------------
    # Caps negotiation
    # -------------------------------------------------------------

    @staticmethod
    def caps() -> FrameCaps:
        """Everything this element accepts on either pad."""
        return FrameCaps()

    def transform_caps(self, filter_caps: Optional[FrameCaps] = None) -> FrameCaps:
        """Caps possible on the opposite pad of either pad.

        Input and output are independent, so this is always the full caps,
        narrowed by filter_caps when given.
        """
        full = self.caps()
        if filter_caps is None:
            return full
        return full.intersect(filter_caps) or FrameCaps(formats=())

    def negotiate(self, upstream: FrameCaps, downstream: FrameCaps) -> tuple[VideoInfo, VideoInfo]:
        """Settle on input and output layouts with both peers.

        The input format is the first upstream format this element supports,
        the output format the first such downstream format. Both pads share
        one resolution.

        Raises:
            NegotiationError: If a pad has no supported format or the peers
                have no resolution in common
        """
        full = self.caps()

        sink = upstream.intersect(full)
        if sink is None:
            raise NegotiationError(
                f"Upstream caps not supported: {[f.label for f in upstream.formats]}"
            )
        src = downstream.intersect(full)
        if src is None:
            raise NegotiationError(
                f"Downstream caps not supported: {[f.label for f in downstream.formats]}"
            )

        width = _intersect_range(sink.width_range, src.width_range)
        height = _intersect_range(sink.height_range, src.height_range)
        if width is None or height is None:
            raise NegotiationError("Upstream and downstream resolutions do not overlap")

        input_info = VideoInfo(
            format=sink.formats[0],
            width=int(width[0]),
            height=int(height[0]),
            framerate=float(sink.framerate_range[0]),
        )
        output_info = VideoInfo(
            format=src.formats[0],
            width=input_info.width,
            height=input_info.height,
            framerate=input_info.framerate,
        )
        self.set_info(input_info, output_info)
        return input_info, output_info

    def set_info(self, input_info: VideoInfo, output_info: VideoInfo):
        """Accept already-fixated layouts for both pads.

        Raises:
            NegotiationError: If a format is unsupported or the sizes differ
        """
        for info in (input_info, output_info):
            if info.format not in SUPPORTED_FORMATS:
                raise NegotiationError(f"Unsupported format: {info.format.label}")
            if not (1 <= info.width <= MAX_DIMENSION and 1 <= info.height <= MAX_DIMENSION):
                raise NegotiationError(f"Unsupported resolution: {info.width}x{info.height}")
        if (input_info.width, input_info.height) != (output_info.width, output_info.height):
            raise NegotiationError(
                f"Input {input_info.width}x{input_info.height} and output "
                f"{output_info.width}x{output_info.height} sizes differ"
            )

        self.input_info = input_info
        self.output_info = output_info
        logger.info(
            "Negotiated %dx%d: %s -> %s",
            input_info.width,
            input_info.height,
            input_info.format.label,
            output_info.format.label,
        )

    # -------------------------------------------------------------
    # Frame processing
    # -------------------------------------------------------------

    def allocate_output(self, input_frame: VideoFrame) -> VideoFrame:
        """Output buffer for a frame, in the negotiated output layout."""
        if self.output_info is not None:
            return VideoFrame.allocate(self.output_info)
        return VideoFrame.allocate(input_frame.info)

    def transform_frame(self, input_frame: VideoFrame, output_frame: VideoFrame) -> RectanglifyResult:
        """Rectanglify one frame into output_frame.

        Raises:
            ValueError: If a frame does not match the negotiated layout
        """
        if self.input_info is not None and not self.input_info.matches(input_frame):
            raise ValueError("Input frame does not match negotiated caps")
        if self.output_info is not None and not self.output_info.matches(output_frame):
            raise ValueError("Output frame does not match negotiated caps")

        settings = self.snapshot()
        result = rectanglify(
            input_frame.data,
            output_frame.data,
            settings,
            input_format=input_frame.info.format,
            output_format=output_frame.info.format,
        )
        self.frame_processed.emit(result)
        return result


class FrameWorker(QThread):
    """Background thread feeding queued frames through a RectanglifyFilter."""

    frame_ready = pyqtSignal(object)  # VideoFrame
    error_occurred = pyqtSignal(str)

    def __init__(self, frame_filter: RectanglifyFilter, max_pending: int = 2):
        super().__init__()
        self.frame_filter = frame_filter
        self.running = True

        # Oldest frames are dropped once the worker falls behind
        self.frame_queue: deque[VideoFrame] = deque(maxlen=max_pending)
        self.queue_lock = QMutex()

    def run(self):
        while self.running:
            if not self.process_next():
                self.msleep(10)

    def process_next(self) -> bool:
        """Process one queued frame; False if the queue was empty."""
        with QMutexLocker(self.queue_lock):
            if not self.frame_queue:
                return False
            frame = self.frame_queue.popleft()

        try:
            output = self.frame_filter.allocate_output(frame)
            self.frame_filter.transform_frame(frame, output)
        except ValueError as e:
            self.error_occurred.emit(f"Frame error: {e}")
            return True

        self.frame_ready.emit(output)
        return True

    # -------------------------------------------------------------
    # API methods
    # -------------------------------------------------------------

    def submit_frame(self, frame: VideoFrame):
        """Thread-safe enqueue."""
        with QMutexLocker(self.queue_lock):
            self.frame_queue.append(frame)

    def pending(self) -> int:
        with QMutexLocker(self.queue_lock):
            return len(self.frame_queue)

    def clear_queue(self):
        with QMutexLocker(self.queue_lock):
            self.frame_queue.clear()

    def stop(self):
        self.running = False
