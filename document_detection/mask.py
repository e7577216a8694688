"""
Conversion between flat sample buffers and OpenCV matrices.

A matrix is a (height, width) uint8 array and element [y, x] holds logical
pixel (x, y). Flat buffers are row-major with an optional row stride.
"""

import numpy as np
from typing import Optional

from .errors import InvalidDimensions


# Confidence above this value is foreground
BINARIZE_THRESHOLD = 0.3


class SampleBuffer:
    """
    One channel of an image stored as a flat, row-major sequence of samples.

    Samples are either integer intensities (0-255) or normalized floats (0.0-1.0).
    When stride > width, the trailing stride - width samples of each row are padding.
    """

    def __init__(self, data, width: int, height: int, stride: Optional[int] = None):
        """
        Initialize the buffer.

        Args:
            data: Flat sequence or array of samples
            width: Image width in pixels
            height: Image height in pixels
            stride: Samples per row including padding (defaults to width)

        Raises:
            InvalidDimensions: If the size, stride or length of data is inconsistent
        """
        stride = width if stride is None else stride

        if width <= 0 or height <= 0:
            raise InvalidDimensions(f"Invalid size {width}x{height}")
        if stride < width:
            raise InvalidDimensions(f"Stride {stride} is smaller than width {width}")

        self.data = np.asarray(data).reshape(-1)
        self.width = width
        self.height = height
        self.stride = stride

        if self.data.size < stride * height:
            raise InvalidDimensions(
                f"Buffer holds {self.data.size} samples, {stride * height} required "
                f"for {width}x{height} with stride {stride}"
            )

    def __str__(self) -> str:
        return f"SampleBuffer({self.width}x{self.height}, stride={self.stride}, dtype={self.data.dtype})"

    @property
    def is_normalized(self) -> bool:
        """True for floating-point samples in the 0.0-1.0 range."""
        return self.data.dtype.kind == 'f'

    @property
    def capacity(self) -> int:
        """Number of samples covered by stride * height."""
        return self.stride * self.height

    def rows(self) -> np.ndarray:
        """(height, width) view of the samples with row padding skipped."""
        return self.data[:self.capacity].reshape(self.height, self.stride)[:, :self.width]


def binarize(samples: np.ndarray, out: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Map samples to 0/255.

    Float confidence c becomes 255 if c > 0.3, else 0. Integer samples are
    already intensities and are only clipped into the uint8 range.

    Args:
        samples: Array of samples
        out: Optional uint8 array with the same shape to write into

    Returns:
        uint8 array
    """
    samples = np.asarray(samples)
    if out is None:
        out = np.empty(samples.shape, dtype=np.uint8)

    if samples.dtype.kind == 'f':
        np.copyto(out, np.where(samples > BINARIZE_THRESHOLD, 255, 0), casting='unsafe')
    else:
        np.copyto(out, np.clip(samples, 0, 255), casting='unsafe')

    return out


def to_matrix(
    buffer,
    width: Optional[int] = None,
    height: Optional[int] = None,
    out: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Convert a sample buffer into a (height, width) uint8 matrix.

    Args:
        buffer: SampleBuffer, or flat samples together with width and height
        width: Image width (required when buffer is not a SampleBuffer)
        height: Image height (required when buffer is not a SampleBuffer)
        out: Optional (height, width) uint8 matrix to reuse

    Returns:
        Binarized matrix, element [y, x] is pixel (x, y)
    """
    if not isinstance(buffer, SampleBuffer):
        if width is None or height is None:
            raise InvalidDimensions("width and height are required for raw sample data")
        buffer = SampleBuffer(buffer, width, height)

    if out is not None and out.shape != (buffer.height, buffer.width):
        raise InvalidDimensions(
            f"Output matrix {out.shape} does not match {buffer.height}x{buffer.width}"
        )

    return binarize(buffer.rows(), out=out)


def to_sample_buffer(matrix: np.ndarray) -> SampleBuffer:
    """
    Convert a (height, width) matrix back into a flat, unpadded SampleBuffer.

    Args:
        matrix: Single channel matrix

    Returns:
        SampleBuffer with stride == width
    """
    matrix = np.asarray(matrix)
    if matrix.ndim != 2:
        raise InvalidDimensions(f"Expected a single channel matrix, got shape {matrix.shape}")

    height, width = matrix.shape
    return SampleBuffer(matrix.astype(np.uint8).ravel(), width, height)
