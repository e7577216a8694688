"""
Debug drawing of detected documents and edge maps
"""

import cv2
import numpy as np
from typing import Tuple

from .geometry import destination_size, order_corners


class ContourVisualizer:
    """
    Class for drawing detection results on images.

    Used by the command line tool to inspect what the detector found.
    """

    def __init__(
        self,
        contour_color: Tuple[int, int, int] = (0, 255, 0),
        contour_thickness: int = 2,
        overlay_alpha: float = 0.3,
        edge_color: Tuple[int, int, int] = (255, 0, 0)
    ):
        """
        Initialize the visualizer.

        Args:
            contour_color: Contour color in the channel order of the image drawn on
            contour_thickness: Contour thickness in pixels
            overlay_alpha: Fill transparency (0.0 = transparent, 1.0 = opaque)
            edge_color: Color used for edge pixels in edge map overlays
        """
        self.contour_color = contour_color
        self.contour_thickness = contour_thickness
        self.overlay_alpha = overlay_alpha
        self.edge_color = edge_color

    def draw_contour(self, image: np.ndarray, corners: np.ndarray, fill: bool = False) -> np.ndarray:
        """
        Draw a detected quadrilateral on a copy of the image.

        Args:
            image: Input image (3 or 4 channels)
            corners: Array with 4 corners in any order, or an empty array
            fill: Whether to fill the quadrilateral with a transparent overlay

        Returns:
            Image with the contour drawn (unchanged copy if corners is empty)
        """
        result = image.copy()
        if corners is None or len(corners) != 4:
            return result

        color = self._color_for(result)
        polygon = [order_corners(corners).astype(np.int32)]

        if fill:
            overlay = result.copy()
            cv2.fillPoly(overlay, polygon, color)
            result = cv2.addWeighted(overlay, self.overlay_alpha, result, 1 - self.overlay_alpha, 0)

        cv2.polylines(result, polygon, True, color, self.contour_thickness)
        return result

    def draw_info(self, image: np.ndarray, corners: np.ndarray) -> np.ndarray:
        """Draw the contour plus the rectified size and area of the document."""
        result = self.draw_contour(image, corners)
        if corners is None or len(corners) != 4:
            return result

        width, height = destination_size(order_corners(corners))
        area = cv2.contourArea(order_corners(corners))

        info_text = [
            f"Width: {width}px",
            f"Height: {height}px",
            f"Area: {int(area)}px2"
        ]

        for i, text in enumerate(info_text):
            position = (10, 30 + i * 30)
            # White outline, black text
            cv2.putText(result, text, position, cv2.FONT_HERSHEY_SIMPLEX, 0.7,
                        self._color_for(result, (255, 255, 255)), 2, cv2.LINE_AA)
            cv2.putText(result, text, position, cv2.FONT_HERSHEY_SIMPLEX, 0.7,
                        self._color_for(result, (0, 0, 0)), 1, cv2.LINE_AA)

        return result

    def edge_overlay(self, edge_map: np.ndarray) -> np.ndarray:
        """
        Turn a binary edge map into a 4 channel image.

        Edge pixels get edge_color with the edge strength as alpha, other
        pixels are fully transparent.
        """
        height, width = edge_map.shape[:2]
        overlay = np.zeros((height, width, 4), dtype=np.uint8)
        overlay[:, :, :3] = self.edge_color
        overlay[:, :, 3] = edge_map
        return overlay

    def _color_for(self, image: np.ndarray, color: Tuple[int, int, int] = None) -> Tuple[int, ...]:
        color = self.contour_color if color is None else color
        if image.ndim == 3 and image.shape[2] == 4:
            return tuple(color) + (255,)
        return tuple(color)
