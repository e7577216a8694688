"""
Edge extraction strategies.

Both extractors expose extract_edges(buffer, out=None) and return a
(height, width) uint8 edge map holding 0 or 255.
"""

import logging
import threading
from enum import Enum
from typing import Optional

import cv2
import numpy as np

from .errors import InvalidDimensions
from .mask import SampleBuffer, to_matrix

logger = logging.getLogger(__name__)


SOBEL_EDGE_THRESHOLD = 128 * 128

CANNY_BLUR_SIZE = (5, 5)
CANNY_LOW_THRESHOLD = 75
CANNY_HIGH_THRESHOLD = 200


class EdgeMethod(Enum):
    """Edge extraction applied before contour search"""
    NONE = "none"
    SOBEL = "sobel"
    CANNY = "canny"


def _check_output(out: Optional[np.ndarray], height: int, width: int) -> np.ndarray:
    if out is None:
        return np.zeros((height, width), dtype=np.uint8)
    if out.shape != (height, width) or out.dtype != np.uint8:
        raise InvalidDimensions(
            f"Output edge map must be {height}x{width} uint8, got {out.shape} {out.dtype}"
        )
    return out


class SobelEdgeExtractor:
    """
    Gradient-magnitude edge detector working directly on a sample buffer.

    Input samples are copied into a scratch array that is reused across calls
    and only reallocated when stride * height exceeds its capacity.
    """

    def __init__(self):
        self._input_pixels = np.zeros(0, dtype=np.float32)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._input_pixels.size

    def extract_edges(self, buffer: SampleBuffer, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Detect edges with the 3x3 Sobel kernels.

        Args:
            buffer: Single channel input, integer 0-255 or normalized 0.0-1.0
            out: Optional (height, width) uint8 array to write into

        Returns:
            Edge map where a pixel is 255 if the squared gradient magnitude
            exceeds 128^2, else 0. Border pixels are always 0.

        Raises:
            InvalidDimensions: If stride < width or height <= 0
        """
        if buffer.stride < buffer.width or buffer.height <= 0 or buffer.width <= 0:
            raise InvalidDimensions(
                f"Invalid buffer {buffer.width}x{buffer.height} with stride {buffer.stride}"
            )

        width, height, stride = buffer.width, buffer.height, buffer.stride
        out = _check_output(out, height, width)

        with self._lock:
            required = stride * height
            if required > self._input_pixels.size:
                logger.debug(f"Growing Sobel scratch buffer {self._input_pixels.size} -> {required}")
                self._input_pixels = np.zeros(required, dtype=np.float32)

            pixels = self._input_pixels[:required]
            np.copyto(pixels, buffer.data[:required], casting='unsafe')
            if buffer.is_normalized:
                pixels *= 255

            p = pixels.reshape(height, stride)[:, :width]

            # Neighbours of every interior pixel
            a00, a01, a02 = p[:-2, :-2], p[:-2, 1:-1], p[:-2, 2:]
            a10, a12 = p[1:-1, :-2], p[1:-1, 2:]
            a20, a21, a22 = p[2:, :-2], p[2:, 1:-1], p[2:, 2:]

            # Sobel X: [-1 0 1; -2 0 2; -1 0 1]
            x_sum = -a00 - 2 * a10 - a20 + a02 + 2 * a12 + a22
            # Sobel Y: [1 2 1; 0 0 0; -1 -2 -1]
            y_sum = a00 + 2 * a01 + a02 - a20 - 2 * a21 - a22

            magnitude = x_sum.astype(np.float64) ** 2 + y_sum.astype(np.float64) ** 2

        out.fill(0)
        out[1:-1, 1:-1] = np.where(magnitude > SOBEL_EDGE_THRESHOLD, 255, 0)
        return out


class CannyEdgeExtractor:
    """
    Gaussian blur followed by Canny edge detection on the adapted matrix.
    """

    def __init__(
        self,
        low_threshold: int = CANNY_LOW_THRESHOLD,
        high_threshold: int = CANNY_HIGH_THRESHOLD
    ):
        self.low_threshold = low_threshold
        self.high_threshold = high_threshold

    def apply(self, gray: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Blur and run Canny on a grayscale matrix.

        Args:
            gray: (height, width) uint8 matrix
            out: Optional (height, width) uint8 array to write into (may be gray itself)

        Returns:
            Binary edge map
        """
        height, width = gray.shape[:2]
        out = _check_output(out, height, width)

        blurred = cv2.GaussianBlur(gray, CANNY_BLUR_SIZE, 0)
        edges = cv2.Canny(blurred, self.low_threshold, self.high_threshold)
        np.copyto(out, edges)
        return out

    def extract_edges(self, buffer: SampleBuffer, out: Optional[np.ndarray] = None) -> np.ndarray:
        out = to_matrix(buffer, out=out)
        return self.apply(out, out=out)


def create_edge_extractor(method):
    """
    Create the extractor for an edge method.

    Args:
        method: EdgeMethod or its string value

    Returns:
        Extractor instance, or None for EdgeMethod.NONE
    """
    method = EdgeMethod(method)

    if method is EdgeMethod.SOBEL:
        return SobelEdgeExtractor()
    if method is EdgeMethod.CANNY:
        return CannyEdgeExtractor()
    return None
