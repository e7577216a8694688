"""
Perspective rectification of a detected quadrilateral
"""

import cv2
import numpy as np
from typing import Optional, Tuple

from .errors import DegenerateQuad
from .geometry import destination_size, order_corners


def compute_transform(
    ordered: np.ndarray,
    dest_size: Optional[Tuple[int, int]] = None
) -> Tuple[np.ndarray, Tuple[int, int]]:
    """
    Compute the perspective transform from ordered corners to a flat rectangle.

    Args:
        ordered: Corners ordered top-left, top-right, bottom-right, bottom-left
        dest_size: Output (width, height); computed from the corners if omitted

    Returns:
        Tuple (3x3 transform matrix, (width, height))

    Raises:
        DegenerateQuad: If width or height is not positive
    """
    src = np.asarray(ordered, dtype=np.float32).reshape(4, 2)
    width, height = dest_size if dest_size is not None else destination_size(src)

    if width <= 0 or height <= 0:
        raise DegenerateQuad(f"Rectified size {width}x{height} is empty")

    dst = np.array([
        [0, 0],
        [width - 1, 0],
        [width - 1, height - 1],
        [0, height - 1]
    ], dtype=np.float32)

    matrix = cv2.getPerspectiveTransform(src, dst)
    return matrix, (width, height)


def warp(frame: np.ndarray, transform: np.ndarray, dest_size: Tuple[int, int]) -> np.ndarray:
    """
    Apply a perspective transform.

    Args:
        frame: Source image
        transform: 3x3 perspective matrix
        dest_size: Output (width, height)

    Returns:
        Warped image of size dest_size
    """
    width, height = dest_size
    if width <= 0 or height <= 0:
        raise DegenerateQuad(f"Rectified size {width}x{height} is empty")

    return cv2.warpPerspective(frame, transform, (width, height))


def four_point_transform(frame: np.ndarray, corners: np.ndarray) -> np.ndarray:
    """
    Rectify the region bounded by four corners (in any order) to a top-down view.

    Args:
        frame: Source image
        corners: 4 corner points in frame coordinates

    Returns:
        Rectified image
    """
    ordered = order_corners(corners)
    transform, size = compute_transform(ordered)
    return warp(frame, transform, size)
