"""
Tests for contour discovery and quadrilateral selection
"""

import cv2
import numpy as np
import pytest

from document_detection.contours import (
    approximate_polygon,
    find_contours,
    select_quadrilateral,
)


def canvas(width, height):
    return np.zeros((height, width), dtype=np.uint8)


class TestFindContours:
    """Tests for find_contours"""

    def test_empty(self):
        assert find_contours(canvas(10, 10)) == []

    def test_square_compressed(self):
        """Straight runs are compressed to the four corners"""
        mask = canvas(10, 10)
        mask[2:8, 2:8] = 255

        contours = find_contours(mask)
        assert len(contours) == 1
        assert len(contours[0]) == 4

    def test_ring_lists_all(self):
        """Outer and inner boundaries of a ring are both returned"""
        mask = canvas(50, 50)
        mask[5:45, 5:45] = 255
        mask[15:35, 15:35] = 0

        assert len(find_contours(mask)) == 2


class TestApproximatePolygon:
    """Tests for approximate_polygon"""

    def test_triangle(self):
        mask = canvas(100, 100)
        cv2.fillPoly(mask, [np.array([[10, 90], [50, 10], [90, 90]], dtype=np.int32)], 255)

        approx = approximate_polygon(find_contours(mask)[0])
        assert approx.shape == (3, 2)
        assert approx.dtype == np.float32


class TestSelectQuadrilateral:
    """Tests for select_quadrilateral"""

    def test_square_scenario(self):
        """10x10 mask with a 6x6 square at (2, 2)"""
        mask = canvas(10, 10)
        mask[2:8, 2:8] = 255

        quad = select_quadrilateral(find_contours(mask), frame_area=100)
        assert quad is not None
        assert quad.corners.shape == (4, 2)
        assert sorted(map(tuple, quad.corners.tolist())) == [(2, 2), (2, 7), (7, 2), (7, 7)]
        assert quad.area == pytest.approx(25.0)

    def test_square_area(self):
        """Centered square of side s has area within 5% of s^2"""
        side = 100
        mask = canvas(300, 240)
        mask[70:70 + side, 100:100 + side] = 255

        quad = select_quadrilateral(find_contours(mask), frame_area=mask.size)
        assert quad is not None
        assert abs(quad.area - side ** 2) <= 0.05 * side ** 2

    def test_nothing_found(self):
        assert select_quadrilateral([], frame_area=100) is None

    def test_triangle_is_not_quad(self):
        mask = canvas(100, 100)
        cv2.fillPoly(mask, [np.array([[10, 90], [50, 10], [90, 90]], dtype=np.int32)], 255)
        assert select_quadrilateral(find_contours(mask), frame_area=mask.size) is None

    def test_largest_wins(self):
        """Largest of several quadrilaterals is selected"""
        mask = canvas(200, 200)
        mask[10:40, 10:40] = 255
        mask[60:180, 60:160] = 255
        mask[10:30, 150:190] = 255

        quad = select_quadrilateral(find_contours(mask), frame_area=mask.size)
        assert quad is not None
        xs, ys = quad.corners[:, 0], quad.corners[:, 1]
        assert (xs.min(), xs.max(), ys.min(), ys.max()) == (60, 159, 60, 179)

    def test_quad_preferred_over_larger_triangle(self):
        """Only 4-vertex polygons qualify"""
        mask = canvas(200, 200)
        cv2.fillPoly(mask, [np.array([[5, 195], [100, 5], [195, 195]], dtype=np.int32)], 255)
        mask[2:12, 2:12] = 255

        quad = select_quadrilateral(find_contours(mask), frame_area=mask.size)
        assert quad is not None
        assert quad.area == pytest.approx(81.0)

    def test_min_area_gate(self):
        """Gate rejects quads smaller than the fraction of the frame"""
        mask = canvas(10, 10)
        mask[2:8, 2:8] = 255
        contours = find_contours(mask)

        assert select_quadrilateral(contours, frame_area=100, min_area_fraction=0.5) is None
        assert select_quadrilateral(contours, frame_area=100, min_area_fraction=0.2) is not None
        assert select_quadrilateral(contours, frame_area=100, min_area_fraction=None) is not None
