"""
Document detector for segmentation masks and camera frames using OpenCV
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import cv2
import numpy as np

from .buffers import ScratchArena
from .config import DetectorConfig
from .contours import find_contours, select_quadrilateral
from .edges import CannyEdgeExtractor, create_edge_extractor
from .errors import DetectorNotReady, DocumentDetectionError, InvalidDimensions
from .geometry import scale_points
from .mask import SampleBuffer, to_matrix
from .rectifier import four_point_transform

logger = logging.getLogger(__name__)


FRAME_SCALE = 0.5
KERNEL_SIZE = (5, 5)
CLOSE_ITERATIONS = 3
GRABCUT_MARGIN = 20
GRABCUT_ITERATIONS = 5


def _empty_corners() -> np.ndarray:
    return np.empty((0, 2), dtype=np.float32)


class DetectorState(Enum):
    IDLE = "idle"
    BUSY = "busy"


@dataclass
class DetectionResult:
    """Outcome of one mask cycle."""
    corners: np.ndarray
    edge_map: Optional[np.ndarray] = None
    dropped: bool = False

    @property
    def found(self) -> bool:
        return len(self.corners) == 4


@dataclass
class FrameResult:
    """Outcome of one camera frame cycle."""
    frame: np.ndarray
    corners: np.ndarray
    rectified: bool = False
    dropped: bool = False

    @property
    def found(self) -> bool:
        return len(self.corners) == 4


class DocumentDetector:
    """
    Class for document detection in live camera pipelines.

    Finds the largest quadrilateral in a foreground mask or camera frame.
    Only one cycle runs at a time: a call that arrives while another cycle
    is still running is dropped and returns the last detected contour.
    Scratch matrices are allocated by initialize() and freed by release().
    """

    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        edge_extractor=None,
        edge_method: Optional[str] = None
    ):
        """
        Initialize the detector.

        Args:
            config: Detector configuration (defaults to DetectorConfig())
            edge_extractor: Edge extractor applied to masks before contour search
            edge_method: Edge method name used when edge_extractor is not given
                (defaults to config.edge_method)
        """
        self.config = config or DetectorConfig()

        if edge_extractor is None:
            edge_extractor = create_edge_extractor(edge_method or self.config.edge_method)
        self.edge_extractor = edge_extractor

        self._canny = CannyEdgeExtractor()
        self._lock = threading.Lock()
        self._state = DetectorState.IDLE
        self._current_contour: Optional[np.ndarray] = None

        self._arena: Optional[ScratchArena] = None
        self._kernel: Optional[np.ndarray] = None
        self._bgd_model: Optional[np.ndarray] = None
        self._fgd_model: Optional[np.ndarray] = None

    def initialize(self):
        """
        Allocate scratch buffers. Must be called before the first cycle.
        Calling it again on an initialized detector does nothing.

        Raises:
            DetectorNotReady: If the buffers cannot be allocated
            DocumentDetectionError: If called while a cycle is running
        """
        with self._lock:
            if self._state is DetectorState.BUSY:
                raise DocumentDetectionError("Cannot initialize detector while a cycle is running")
            if self._arena is not None:
                return

            try:
                self._arena = ScratchArena()
                self._kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, KERNEL_SIZE)
                self._bgd_model = np.zeros((1, 65), dtype=np.float64)
                self._fgd_model = np.zeros((1, 65), dtype=np.float64)
            except (cv2.error, MemoryError) as e:
                self._arena = None
                self._kernel = None
                self._bgd_model = None
                self._fgd_model = None
                raise DetectorNotReady(f"Failed to allocate detector buffers: {e}") from e

            self._current_contour = None

    def release(self):
        """Free scratch buffers and forget the last contour."""
        with self._lock:
            if self._state is DetectorState.BUSY:
                raise DocumentDetectionError("Cannot release detector while a cycle is running")

            if self._arena is not None:
                self._arena.release()

            self._arena = None
            self._kernel = None
            self._bgd_model = None
            self._fgd_model = None
            self._current_contour = None

    def __enter__(self) -> "DocumentDetector":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()

    @property
    def state(self) -> DetectorState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._state is DetectorState.BUSY

    @property
    def initialized(self) -> bool:
        return self._arena is not None

    @property
    def current_contour(self) -> Optional[np.ndarray]:
        """Last detected quadrilateral, or None."""
        contour = self._current_contour
        return None if contour is None else contour.copy()

    def _last_corners(self) -> np.ndarray:
        contour = self._current_contour
        return _empty_corners() if contour is None else contour.copy()

    @contextmanager
    def _cycle(self):
        """Yield True if this call owns the cycle, False if it must be dropped."""
        with self._lock:
            if self._arena is None:
                raise DetectorNotReady("Detector is not initialized")

            if self._state is DetectorState.BUSY:
                owner = False
            else:
                self._state = DetectorState.BUSY
                owner = True

        if not owner:
            logger.debug("Dropped frame, previous cycle still running")
            yield False
            return

        try:
            yield True
        finally:
            with self._lock:
                self._state = DetectorState.IDLE

    def run(self, buffer: SampleBuffer, keep_edge_map: bool = False) -> DetectionResult:
        """
        Run one detection cycle on a foreground mask.

        Args:
            buffer: Foreground confidence (0.0-1.0) or binary (0/255) mask
            keep_edge_map: Return a copy of the edge map the contours were traced in

        Returns:
            DetectionResult with 4 unordered corners, or no corners when nothing was found
        """
        if not isinstance(buffer, SampleBuffer):
            raise InvalidDimensions(f"Expected SampleBuffer, got {type(buffer).__name__}")

        with self._cycle() as owner:
            if not owner:
                return DetectionResult(corners=self._last_corners(), dropped=True)

            matrix = self._arena.matrix("mask", (buffer.height, buffer.width))
            if self.edge_extractor is None:
                to_matrix(buffer, out=matrix)
                # Integer masks keep their intensities, the edge map is 0/255
                cv2.threshold(matrix, 0, 255, cv2.THRESH_BINARY, dst=matrix)
            else:
                self.edge_extractor.extract_edges(buffer, out=matrix)

            contours = find_contours(matrix)
            try:
                candidate = select_quadrilateral(
                    contours,
                    frame_area=buffer.width * buffer.height,
                    min_area_fraction=self.config.min_area_fraction
                )
            finally:
                contours.clear()

            if candidate is None:
                logger.debug("No quadrilateral found")
                self._current_contour = None
            else:
                self._current_contour = candidate.corners.astype(np.float32)

            return DetectionResult(
                corners=self._last_corners(),
                edge_map=matrix.copy() if keep_edge_map else None
            )

    def detect(self, buffer: SampleBuffer) -> np.ndarray:
        """
        Detect a document in a foreground mask.

        Args:
            buffer: Foreground confidence (0.0-1.0) or binary (0/255) mask

        Returns:
            Array with 4 corners [[x1,y1], [x2,y2], [x3,y3], [x4,y4]] in mask
            coordinates, or an empty (0, 2) array if no document was found
        """
        return self.run(buffer).corners

    def debug(self, buffer: SampleBuffer) -> Optional[np.ndarray]:
        """Edge map traced for contours in this cycle, or None if the frame was dropped."""
        return self.run(buffer, keep_edge_map=True).edge_map

    def process_frame(
        self,
        frame: np.ndarray,
        apply_background_removal: Optional[bool] = None,
        apply_perspective_rectification: Optional[bool] = None
    ) -> FrameResult:
        """
        Detect a document in a camera frame.

        The frame is processed at half resolution. Corners are scaled back to
        frame coordinates.

        Args:
            frame: RGB or RGBA uint8 image of shape (height, width, channels)
            apply_background_removal: Run GrabCut first (defaults to config)
            apply_perspective_rectification: Return the rectified document (defaults to config)

        Returns:
            FrameResult holding either the input frame and the detected corners,
            or the rectified document when rectification was requested and a
            document was found

        Raises:
            InvalidDimensions: If the frame is not an RGB/RGBA uint8 image
            DegenerateQuad: If the detected corners give an empty rectified size
        """
        frame = np.asarray(frame)
        if frame.ndim != 3 or frame.shape[2] not in (3, 4) or frame.dtype != np.uint8:
            raise InvalidDimensions(f"Expected RGB/RGBA uint8 frame, got {frame.shape} {frame.dtype}")
        if frame.shape[0] < 2 or frame.shape[1] < 2:
            raise InvalidDimensions(f"Frame {frame.shape[1]}x{frame.shape[0]} is too small")

        if apply_background_removal is None:
            apply_background_removal = self.config.apply_background_removal
        if apply_perspective_rectification is None:
            apply_perspective_rectification = self.config.apply_perspective_rectification

        with self._cycle() as owner:
            if not owner:
                return FrameResult(frame=frame, corners=self._last_corners(), dropped=True)

            height, width, channels = frame.shape
            small_w = max(1, int(width * FRAME_SCALE))
            small_h = max(1, int(height * FRAME_SCALE))

            resized = self._arena.matrix("resized", (small_h, small_w, channels))
            cv2.resize(frame, (small_w, small_h), dst=resized)

            # Remove alpha channel
            rgb = self._arena.matrix("rgb", (small_h, small_w, 3))
            if channels == 4:
                cv2.cvtColor(resized, cv2.COLOR_RGBA2RGB, dst=rgb)
            else:
                np.copyto(rgb, resized)

            if apply_background_removal:
                self._remove_background(rgb)

            gray = self._arena.matrix("gray", (small_h, small_w))
            cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY, dst=gray)
            self._canny.apply(gray, out=gray)

            edges = self._arena.matrix("edges", (small_h, small_w))
            cv2.dilate(gray, self._kernel, dst=edges)

            contours = find_contours(edges)
            try:
                candidate = select_quadrilateral(
                    contours,
                    frame_area=small_w * small_h,
                    min_area_fraction=self.config.frame_min_area_fraction
                )
            finally:
                contours.clear()

            if candidate is None:
                logger.debug("No quadrilateral found in frame")
                self._current_contour = None
                return FrameResult(frame=frame, corners=_empty_corners())

            corners = scale_points(candidate.corners, (width / small_w, height / small_h))
            self._current_contour = corners

            if apply_perspective_rectification:
                warped = four_point_transform(frame, corners)
                return FrameResult(frame=warped, corners=corners.copy(), rectified=True)

            return FrameResult(frame=frame, corners=corners.copy())

    def _remove_background(self, rgb: np.ndarray):
        """
        Zero out background pixels using GrabCut.

        A GRABCUT_MARGIN wide border of the frame is treated as background.
        GrabCut takes seconds per frame, so live cycles during it are dropped.
        """
        height, width = rgb.shape[:2]
        if width <= 2 * GRABCUT_MARGIN or height <= 2 * GRABCUT_MARGIN:
            logger.warning(f"Frame {width}x{height} too small for background removal, skipping")
            return

        # Close the document foreground so text does not split it
        cv2.morphologyEx(rgb, cv2.MORPH_CLOSE, self._kernel, dst=rgb, iterations=CLOSE_ITERATIONS)

        mask = self._arena.matrix("grabcut_mask", (height, width))
        mask.fill(0)
        self._bgd_model.fill(0)
        self._fgd_model.fill(0)

        rect = (GRABCUT_MARGIN, GRABCUT_MARGIN, width - 2 * GRABCUT_MARGIN, height - 2 * GRABCUT_MARGIN)
        cv2.grabCut(
            rgb,
            mask,
            rect,
            self._bgd_model,
            self._fgd_model,
            GRABCUT_ITERATIONS,
            cv2.GC_INIT_WITH_RECT
        )

        rgb[(mask == cv2.GC_BGD) | (mask == cv2.GC_PR_BGD)] = 0
