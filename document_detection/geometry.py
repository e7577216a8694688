"""
Geometry helpers for quadrilateral corners
"""

import math
import numpy as np
from typing import Tuple


def hypotenuse(a: float, b: float) -> float:
    """Length of the hypotenuse for legs a and b."""
    return math.hypot(a, b)


def distance(p: np.ndarray, q: np.ndarray) -> float:
    """Euclidean distance between two (x, y) points."""
    return hypotenuse(float(p[0]) - float(q[0]), float(p[1]) - float(q[1]))


def order_corners(points: np.ndarray) -> np.ndarray:
    """
    Order corners: top-left, top-right, bottom-right, bottom-left.

    The two points with the smallest x form the left pair, the other two the
    right pair. The left pair is split by y (smaller y is top-left). The right
    pair is split by distance from top-left (nearer point is top-right).

    Args:
        points: Array with 4 points [[x1,y1], [x2,y2], [x3,y3], [x4,y4]] in any order

    Returns:
        Ordered corners as float32 array of shape (4, 2)
    """
    pts = np.asarray(points, dtype=np.float32).reshape(-1, 2)
    if len(pts) != 4:
        raise ValueError(f"Expected 4 points, got {len(pts)}")

    # lexsort sorts by the last key first; y breaks ties on x
    x_sorted = pts[np.lexsort((pts[:, 1], pts[:, 0]))]
    left_most = x_sorted[:2]
    right_most = x_sorted[2:]

    tl, bl = left_most[np.lexsort((left_most[:, 0], left_most[:, 1]))]

    distances = np.array([distance(tl, p) for p in right_most])
    tr, br = right_most[np.lexsort((right_most[:, 1], distances))]

    return np.array([tl, tr, br, bl], dtype=np.float32)


def destination_size(ordered: np.ndarray) -> Tuple[int, int]:
    """
    Calculate rectified output size from ordered corners.

    Args:
        ordered: Corners ordered top-left, top-right, bottom-right, bottom-left

    Returns:
        Tuple (width, height) in whole pixels
    """
    tl, tr, br, bl = np.asarray(ordered, dtype=np.float32).reshape(4, 2)

    width = max(int(distance(br, bl)), int(distance(tr, tl)))
    height = max(int(distance(tr, br)), int(distance(tl, bl)))

    return width, height


def scale_points(points: np.ndarray, factor) -> np.ndarray:
    """Scale point coordinates by a uniform factor or a per-axis (sx, sy) pair."""
    return np.asarray(points, dtype=np.float32).reshape(-1, 2) * np.asarray(factor, dtype=np.float32)
