"""
Contour discovery and quadrilateral selection on binary edge maps
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import cv2
import numpy as np

logger = logging.getLogger(__name__)


APPROX_EPSILON = 0.02


@dataclass
class QuadCandidate:
    """Four-vertex polygon approximation together with its enclosed area."""
    corners: np.ndarray
    area: float


def find_contours(edge_map: np.ndarray) -> List[np.ndarray]:
    """
    Trace every closed boundary in a binary edge map.

    Args:
        edge_map: (height, width) uint8 binary image

    Returns:
        List of contours (no hierarchy), straight runs compressed to their end points
    """
    contours, _ = cv2.findContours(
        edge_map,
        cv2.RETR_LIST,
        cv2.CHAIN_APPROX_SIMPLE
    )
    return list(contours)


def approximate_polygon(contour: np.ndarray, epsilon_ratio: float = APPROX_EPSILON) -> np.ndarray:
    """
    Simplify a contour to a coarser closed polygon.

    Args:
        contour: Contour points (any shape reducible to (N, 2))
        epsilon_ratio: Tolerance as ratio of the contour perimeter

    Returns:
        Polygon vertices as float32 array of shape (M, 2)
    """
    points = np.asarray(contour, dtype=np.float32).reshape(-1, 1, 2)
    peri = cv2.arcLength(points, True)
    approx = cv2.approxPolyDP(points, epsilon_ratio * peri, True)
    return approx.reshape(-1, 2)


def select_quadrilateral(
    contours: Sequence[np.ndarray],
    frame_area: float,
    min_area_fraction: Optional[float] = None,
    epsilon_ratio: float = APPROX_EPSILON
) -> Optional[QuadCandidate]:
    """
    Pick the largest polygon approximation with exactly 4 vertices.

    Args:
        contours: Contours returned by find_contours
        frame_area: Area of the image the contours were found in
        min_area_fraction: Reject quads smaller than this fraction of frame_area (None disables the gate)
        epsilon_ratio: Polygon approximation tolerance as ratio of perimeter

    Returns:
        Winning QuadCandidate or None when no 4-vertex polygon qualifies
    """
    min_area = 0.0 if min_area_fraction is None else min_area_fraction * frame_area
    best = None
    quads = 0

    for contour in contours:
        approx = approximate_polygon(contour, epsilon_ratio)
        if len(approx) != 4:
            continue

        quads += 1
        area = abs(cv2.contourArea(approx))
        if area <= 0 or area < min_area:
            continue

        if best is None or area > best.area:
            best = QuadCandidate(corners=approx, area=float(area))

    logger.debug(
        f"{len(contours)} contours, {quads} quadrilaterals, "
        f"selected area {best.area if best else None}"
    )
    return best
